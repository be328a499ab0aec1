"""Liveness and readiness probes."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.engine import get_db
from app.dependencies import get_vision
from app.services.vision import VisionClient

logger = logging.getLogger(__name__)

SERVICE_NAME = "damage-tracking"
_started = time.monotonic()

router = APIRouter(prefix="/health", tags=["health"])


async def _database_ok(db: AsyncSession) -> str | None:
    """Returns None when the database answers, else the error text."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        return str(e)
    return None


@router.get("")
async def health(db: AsyncSession = Depends(get_db), vision: VisionClient = Depends(get_vision)):
    now = datetime.now(timezone.utc).isoformat()
    error = await _database_ok(db)
    if error is not None:
        return JSONResponse(status_code=503, content={
            "status": "unhealthy",
            "service": SERVICE_NAME,
            "timestamp": now,
            "error": error,
        })
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": now,
        "uptime": round(time.monotonic() - _started, 3),
        "database": "connected",
        "computer_vision": "available" if await vision.health_check() else "unavailable",
    }


@router.get("/ready")
async def ready(db: AsyncSession = Depends(get_db)):
    if await _database_ok(db) is not None:
        return JSONResponse(status_code=503, content={"ready": False})
    return {"ready": True}


@router.get("/live")
async def live():
    return {"alive": True}
