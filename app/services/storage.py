"""Object storage gateway: images, documents and signed download URLs.

Objects live under ``<base_dir>/<bucket>/<key>``; the public URL of an
object is ``<public_base_url>/<key>``.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import io
import logging
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from PIL import Image, UnidentifiedImageError
from ulid import ULID

from app.config import StorageConfig, get_settings
from app.utils.exceptions import NotFound, UpstreamUnavailable, ValidationError

logger = logging.getLogger(__name__)

_EXTENSIONS = {"JPEG": ".jpg", "PNG": ".png", "WEBP": ".webp"}
_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
}


@dataclass(frozen=True)
class UploadResult:
    url: str
    key: str
    bucket: str


def content_type_for(key: str) -> str:
    return _CONTENT_TYPES.get(PurePosixPath(key).suffix.lower(), "application/octet-stream")


def _process_image(data: bytes, max_dimension: int | None, quality: int, fmt: str) -> bytes:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Invalid image data: {e}") from e
    if max_dimension:
        img.thumbnail((max_dimension, max_dimension))
    if fmt == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, fmt, quality=quality)
    return buf.getvalue()


class StorageGateway:
    def __init__(self, config: StorageConfig | None = None):
        self._config = config or get_settings().storage
        self._root = Path(self._config.base_dir)
        self.bucket = self._config.bucket

    def _safe_path(self, key: str) -> Path:
        key_path = PurePosixPath(key)
        if key_path.is_absolute() or ".." in key_path.parts or not key_path.parts:
            raise ValidationError("Invalid object key")
        return self._root / self.bucket / Path(*key_path.parts)

    def public_url(self, key: str) -> str:
        return f"{self._config.public_base_url.rstrip('/')}/{key}"

    def _put_sync(self, key: str, content: bytes) -> None:
        path = self._safe_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def _put(self, key: str, content: bytes) -> UploadResult:
        try:
            await asyncio.to_thread(self._put_sync, key, content)
        except OSError as e:
            logger.error("Failed to store object %s: %s", key, e)
            raise UpstreamUnavailable(f"Failed to store object {key}") from e
        logger.info("Stored %s (%d bytes)", key, len(content))
        return UploadResult(url=self.public_url(key), key=key, bucket=self.bucket)

    async def upload_image(
        self,
        data: bytes,
        folder: str,
        resize: bool = True,
        quality: int | None = None,
        format: str = "JPEG",
    ) -> UploadResult:
        """Re-encode an image (bounded to the configured max dimension) and store it."""
        fmt = format.upper()
        if fmt not in _EXTENSIONS:
            raise ValidationError(f"Unsupported image format: {format}")
        max_dimension = self._config.max_image_dimension if resize else None
        processed = await asyncio.to_thread(
            _process_image, data, max_dimension, quality or self._config.jpeg_quality, fmt
        )
        key = f"{folder.strip('/')}/{ULID()}{_EXTENSIONS[fmt]}"
        return await self._put(key, processed)

    async def upload_file(self, data: bytes, folder: str, filename: str, content_type: str) -> UploadResult:
        safe_name = Path(filename).name.replace("\\", "_").strip() or "file.bin"
        key = f"{folder.strip('/')}/{int(time.time() * 1000)}-{safe_name}"
        logger.debug("Uploading %s as %s", key, content_type)
        return await self._put(key, data)

    async def read(self, key: str) -> bytes:
        path = self._safe_path(key)
        if not path.is_file():
            raise NotFound("Object not found")
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise UpstreamUnavailable(f"Failed to read object {key}") from e

    async def delete(self, key: str) -> None:
        path = self._safe_path(key)
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as e:
            raise UpstreamUnavailable(f"Failed to delete object {key}") from e

    def _signature(self, key: str, expires: int) -> str:
        msg = f"{key}:{expires}".encode()
        return hmac.new(self._config.signing_secret.encode(), msg, hashlib.sha256).hexdigest()

    def signed_url(self, key: str, ttl_seconds: int | None = None) -> str:
        expires = int(time.time()) + (ttl_seconds or self._config.signed_url_ttl)
        return f"{self.public_url(key)}?expires={expires}&signature={self._signature(key, expires)}"

    def verify_signature(self, key: str, expires: int, signature: str) -> bool:
        if expires < int(time.time()):
            return False
        return hmac.compare_digest(self._signature(key, expires), signature)
