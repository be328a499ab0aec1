"""Notification sender backed by the communication service."""

from __future__ import annotations

import logging

import httpx

from app.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_CHANNELS = ["email", "push"]


class NotificationSender:
    def __init__(self, base_url: str | None = None, timeout: float = 10.0,
                 transport: httpx.AsyncBaseTransport | None = None):
        self._client = httpx.AsyncClient(
            base_url=base_url or get_settings().services.communication,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def notify(self, type: str, recipients: list[str], data: dict,
                     channels: list[str] | None = None) -> bool:
        """POST a notification. Returns True on success; failures are only logged."""
        payload = {
            "type": type,
            "recipients": recipients,
            "data": data,
            "channels": channels or DEFAULT_CHANNELS,
        }
        try:
            resp = await self._client.post("/api/v1/notifications", json=payload)
            resp.raise_for_status()
            return True
        except httpx.HTTPError:
            logger.exception("Failed to send %s notification to %s", type, recipients)
            return False
