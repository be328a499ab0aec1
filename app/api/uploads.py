"""Multipart upload validation shared by the photo and detection endpoints."""

from __future__ import annotations

from fastapi import UploadFile

from app.config import get_settings
from app.utils.exceptions import ValidationError


async def read_upload(file: UploadFile, images_only: bool = True) -> bytes:
    """Read an uploaded file, enforcing the configured size and content-type limits."""
    upload_cfg = get_settings().upload
    content_type = (file.content_type or "").lower()
    if content_type not in upload_cfg.allowed_file_types:
        raise ValidationError(f"Unsupported file type: {content_type or 'unknown'}")
    if images_only and not content_type.startswith("image/"):
        raise ValidationError("An image file is required")

    data = await file.read(upload_cfg.max_file_size + 1)
    if len(data) > upload_cfg.max_file_size:
        raise ValidationError(f"File exceeds the {upload_cfg.max_file_size} byte limit")
    if not data:
        raise ValidationError("Uploaded file is empty")
    return data
