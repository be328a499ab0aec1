"""Domain event publisher.

Events are routed as ``<prefix>.<entity_type>.<event_type>`` to in-process
subscribers bound with topic patterns (``*`` matches one word, ``#`` zero or
more) and recorded in the ``event_log`` outbox through a dedicated session.
Publishing is best-effort: failures are logged and never reach the caller.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.db import crud
from app.models.base import utcnow

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    event_type: str
    entity_type: str
    entity_id: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventType": self.event_type,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


EventHandler = Callable[[str, DomainEvent], Any]


def topic_matches(pattern: str, routing_key: str) -> bool:
    """AMQP topic matching over dot-separated words."""
    return _match(pattern.split("."), routing_key.split("."))


def _match(pattern: list[str], words: list[str]) -> bool:
    if not pattern:
        return not words
    head, rest = pattern[0], pattern[1:]
    if head == "#":
        return any(_match(rest, words[i:]) for i in range(len(words) + 1))
    if not words:
        return False
    if head == "*" or head == words[0]:
        return _match(rest, words[1:])
    return False


class EventPublisher:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        routing_prefix: str | None = None,
    ):
        self._session_factory = session_factory
        self._prefix = routing_prefix or get_settings().events.routing_prefix
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)

    def routing_key(self, entity_type: str, event_type: str) -> str:
        return f"{self._prefix}.{entity_type}.{event_type}"

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._subscribers[pattern].append(handler)

    def unsubscribe(self, pattern: str, handler: EventHandler) -> None:
        if handler in self._subscribers.get(pattern, []):
            self._subscribers[pattern].remove(handler)

    async def publish(self, event: DomainEvent) -> bool:
        """Record and dispatch an event. Returns False if anything failed."""
        key = self.routing_key(event.entity_type, event.event_type)
        ok = True

        if self._session_factory is not None:
            try:
                async with self._session_factory() as session:
                    await crud.create_event_record(
                        session,
                        routing_key=key,
                        event_type=event.event_type,
                        entity_type=event.entity_type,
                        entity_id=event.entity_id,
                        payload=event.data,
                        timestamp=event.timestamp,
                    )
            except Exception:
                logger.exception("Failed to record event %s for %s", key, event.entity_id)
                ok = False

        for pattern, handlers in list(self._subscribers.items()):
            if not topic_matches(pattern, key):
                continue
            for handler in list(handlers):
                try:
                    result = handler(key, event)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception("Event handler for %s failed on %s", pattern, key)
                    ok = False

        logger.debug("Published %s for %s", key, event.entity_id)
        return ok

    async def emit(self, entity_type: str, event_type: str, entity_id: str, data: dict | None = None) -> bool:
        return await self.publish(DomainEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            data=data or {},
        ))
