"""Forwards confirmed AI detections to the knowledge service as learning patterns."""

from __future__ import annotations

import logging

import httpx

from app.config import get_settings

logger = logging.getLogger(__name__)


class PatternStore:
    def __init__(self, base_url: str | None = None, timeout: float = 10.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        self._client = httpx.AsyncClient(
            base_url=base_url or get_settings().services.knowledge,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def store_pattern(self, pattern_type: str, pattern: dict, tags: list[str],
                            importance: float) -> bool:
        payload = {
            "type": pattern_type,
            "pattern": pattern,
            "tags": tags,
            "importance": importance,
        }
        try:
            resp = await self._client.post("/api/v1/patterns", json=payload)
            resp.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning("Failed to store %s pattern: %s", pattern_type, e)
            return False
