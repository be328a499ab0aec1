"""FastAPI dependency providers for auth, shared clients and domain services."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.engine import async_session_factory, get_db
from app.services.auth import AuthContext, get_current_user
from app.services.damage_service import DamageService
from app.services.events import EventPublisher
from app.services.inspection_service import InspectionService
from app.services.knowledge import PatternStore
from app.services.notifications import NotificationSender
from app.services.storage import StorageGateway
from app.services.vendor_service import VendorService
from app.services.vision import VisionClient
from app.services.work_order_service import WorkOrderService


async def require_auth(request: Request) -> AuthContext:
    """Require a valid bearer token. Returns AuthContext."""
    return await get_current_user(request)


# ── Shared clients (one per process) ──────────────────────

@lru_cache
def get_storage() -> StorageGateway:
    return StorageGateway()


@lru_cache
def get_vision() -> VisionClient:
    return VisionClient()


@lru_cache
def get_notifier() -> NotificationSender:
    return NotificationSender()


@lru_cache
def get_patterns() -> PatternStore:
    return PatternStore()


@lru_cache
def get_events() -> EventPublisher:
    return EventPublisher(session_factory=async_session_factory)


async def close_clients() -> None:
    for getter in (get_vision, get_notifier, get_patterns):
        if getter.cache_info().currsize:
            await getter().aclose()
        getter.cache_clear()


# ── Domain services (per request) ─────────────────────────

def get_inspection_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
    events: EventPublisher = Depends(get_events),
) -> InspectionService:
    return InspectionService(db, storage, events)


def get_damage_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
    vision: VisionClient = Depends(get_vision),
    events: EventPublisher = Depends(get_events),
    notifier: NotificationSender = Depends(get_notifier),
    patterns: PatternStore = Depends(get_patterns),
) -> DamageService:
    return DamageService(db, storage, vision, events, notifier, patterns)


def get_work_order_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageGateway = Depends(get_storage),
    events: EventPublisher = Depends(get_events),
    notifier: NotificationSender = Depends(get_notifier),
) -> WorkOrderService:
    return WorkOrderService(db, storage, events, notifier)


def get_vendor_service(
    db: AsyncSession = Depends(get_db),
    events: EventPublisher = Depends(get_events),
) -> VendorService:
    return VendorService(db, events)
