"""Serves stored objects to holders of a signed URL or a bearer token."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from app.dependencies import get_storage
from app.services.auth import get_current_user
from app.services.storage import StorageGateway, content_type_for

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{key:path}")
async def serve_object(
    key: str,
    request: Request,
    expires: int | None = None,
    signature: str | None = None,
    storage: StorageGateway = Depends(get_storage),
):
    if expires is not None and signature:
        if not storage.verify_signature(key, expires, signature):
            raise HTTPException(403, "Invalid or expired signature")
    else:
        await get_current_user(request)

    data = await storage.read(key)
    return Response(content=data, media_type=content_type_for(key))
