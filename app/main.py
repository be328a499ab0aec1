"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.config import get_settings
from app.db.engine import create_tables, engine
from app.dependencies import close_clients
from app.logging_config import RequestLoggingMiddleware, configure_logging
from app.utils.exceptions import register_exception_handlers

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Damage tracking service started (%s)", settings.environment)
    yield
    logger.info("Shutting down, closing connections")
    await close_clients()
    await engine.dispose()


app = FastAPI(
    title="Damage Tracking Service",
    description="Inspections, damage reports, repair work orders and vendor management for short-term rentals.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

app.include_router(api_router)
