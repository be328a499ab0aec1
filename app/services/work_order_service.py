"""Work order lifecycle with damage cascades and vendor statistics."""

from __future__ import annotations

import logging
import math
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.models import WorkOrder
from app.models.base import as_utc, null_fields, utcnow
from app.models.enums import DamageStatus, Priority, WorkOrderStatus, can_transition
from app.services.events import EventPublisher
from app.services.notifications import NotificationSender
from app.services.storage import StorageGateway
from app.utils.exceptions import InvalidTransition, NotFound, ValidationError

logger = logging.getLogger(__name__)

ENTITY = "work_order"

UPDATABLE_FIELDS = frozenset({
    "unit_id", "work_order_type", "category", "title", "description", "priority",
    "estimated_cost", "actual_cost", "labor_cost", "materials_cost",
    "completion_notes", "vendor_notes",
})


def _check_rating(name: str, value: int | None) -> None:
    if value is not None and not 1 <= value <= 5:
        raise ValidationError(f"{name} must be between 1 and 5")


def completion_days(started_at: datetime | None, completed_at: datetime | None) -> int | None:
    if not started_at or not completed_at:
        return None
    return math.ceil((as_utc(completed_at) - as_utc(started_at)).total_seconds() / 86400)


def response_hours(assigned_at: datetime | None, started_at: datetime | None) -> int | None:
    if not assigned_at or not started_at:
        return None
    return math.ceil((as_utc(started_at) - as_utc(assigned_at)).total_seconds() / 3600)


def completed_on_time(scheduled_at: datetime | None, completed_at: datetime | None) -> bool | None:
    if not scheduled_at or not completed_at:
        return None
    return as_utc(completed_at).date() <= as_utc(scheduled_at).date()


class WorkOrderService:
    def __init__(
        self,
        db: AsyncSession,
        storage: StorageGateway,
        events: EventPublisher,
        notifier: NotificationSender,
    ):
        self.db = db
        self.storage = storage
        self.events = events
        self.notifier = notifier

    async def get(self, work_order_id: str) -> WorkOrder:
        work_order = await crud.get_work_order(self.db, work_order_id)
        if not work_order:
            raise NotFound(f"Work order {work_order_id} not found")
        return work_order

    async def list(self, page: int = 1, limit: int = 20, **filters) -> tuple[list[WorkOrder], int]:
        return await crud.list_work_orders(self.db, page=page, limit=limit, **filters)

    async def _require_vendor(self, vendor_id: str) -> None:
        if not await crud.get_vendor(self.db, vendor_id):
            raise NotFound(f"Vendor {vendor_id} not found")

    def _transition(self, work_order: WorkOrder, target: WorkOrderStatus) -> None:
        if not can_transition(WorkOrderStatus(work_order.status), target):
            raise InvalidTransition(ENTITY, work_order.status, target)

    async def _set_damage_status(self, damage_id: str | None, status: DamageStatus, **extra) -> None:
        if not damage_id:
            return
        damage = await crud.get_damage(self.db, damage_id)
        if not damage:
            logger.warning("Work order references missing damage %s", damage_id)
            return
        await crud.update_damage(self.db, damage, status=status, **extra)
        await self.events.emit("damage", "updated", damage.id, {"fields": sorted(["status", *extra])})

    async def _notify_vendor(self, work_order: WorkOrder, notification_type: str) -> None:
        await self.notifier.notify(notification_type, [work_order.vendor_id], {
            "work_order_id": work_order.id,
            "title": work_order.title,
            "priority": work_order.priority,
            "scheduled_at": work_order.scheduled_at.isoformat() if work_order.scheduled_at else None,
        }, channels=["email", "sms"])

    async def create(
        self,
        property_id: str,
        work_order_type: str,
        category: str,
        title: str,
        description: str,
        priority: str = Priority.NORMAL,
        unit_id: str | None = None,
        damage_id: str | None = None,
        vendor_id: str | None = None,
        scheduled_at: datetime | None = None,
        estimated_cost: float | None = None,
    ) -> WorkOrder:
        if damage_id and not await crud.get_damage(self.db, damage_id):
            raise NotFound(f"Damage {damage_id} not found")
        if vendor_id:
            await self._require_vendor(vendor_id)

        work_order = await crud.create_work_order(
            self.db,
            property_id=property_id,
            unit_id=unit_id,
            damage_id=damage_id,
            work_order_type=str(work_order_type),
            category=str(category),
            title=title,
            description=description,
            priority=str(priority),
            vendor_id=vendor_id,
            status=WorkOrderStatus.ASSIGNED if vendor_id else WorkOrderStatus.PENDING,
            assigned_at=utcnow() if vendor_id else None,
            scheduled_at=scheduled_at,
            estimated_cost=estimated_cost,
        )
        logger.info("Created work order %s (%s, %s)", work_order.id, work_order.status, priority)
        await self._set_damage_status(damage_id, DamageStatus.REPAIR_SCHEDULED)
        await self.events.emit(ENTITY, "created", work_order.id, {"damage_id": damage_id, "vendor_id": vendor_id})
        if vendor_id:
            await self._notify_vendor(work_order, "work_order_assigned")
        return await self.get(work_order.id)

    async def update(self, work_order_id: str, changes: dict) -> WorkOrder:
        work_order = await self.get(work_order_id)
        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        nulls = null_fields(WorkOrder, fields)
        if nulls:
            raise ValidationError(f"{', '.join(nulls)} cannot be null")
        if fields.get("actual_cost") is not None and work_order.status not in (
            WorkOrderStatus.COMPLETED, WorkOrderStatus.VERIFIED,
        ):
            raise ValidationError("actual_cost can only be set once the work order is completed")
        for key in ("work_order_type", "category", "priority"):
            if fields.get(key) is not None:
                fields[key] = str(fields[key])
        work_order = await crud.update_work_order(self.db, work_order, **fields)
        await self.events.emit(ENTITY, "updated", work_order.id, {"fields": sorted(fields)})
        return work_order

    async def assign_to_vendor(self, work_order_id: str, vendor_id: str) -> WorkOrder:
        work_order = await self.get(work_order_id)
        self._transition(work_order, WorkOrderStatus.ASSIGNED)
        await self._require_vendor(vendor_id)
        work_order = await crud.update_work_order(
            self.db, work_order,
            vendor_id=vendor_id,
            status=WorkOrderStatus.ASSIGNED,
            assigned_at=utcnow(),
        )
        logger.info("Assigned work order %s to vendor %s", work_order.id, vendor_id)
        await self.events.emit(ENTITY, "updated", work_order.id, {"fields": ["assigned_at", "status", "vendor_id"]})
        await self._notify_vendor(work_order, "work_order_assigned")
        return await self.get(work_order.id)

    async def schedule(self, work_order_id: str, scheduled_at: datetime) -> WorkOrder:
        work_order = await self.get(work_order_id)
        self._transition(work_order, WorkOrderStatus.SCHEDULED)
        work_order = await crud.update_work_order(
            self.db, work_order,
            status=WorkOrderStatus.SCHEDULED,
            scheduled_at=scheduled_at,
        )
        await self.events.emit(ENTITY, "updated", work_order.id, {"fields": ["scheduled_at", "status"]})
        if work_order.vendor_id:
            await self._notify_vendor(work_order, "work_order_scheduled")
        return work_order

    async def start(self, work_order_id: str) -> WorkOrder:
        work_order = await self.get(work_order_id)
        self._transition(work_order, WorkOrderStatus.IN_PROGRESS)
        work_order = await crud.update_work_order(
            self.db, work_order,
            status=WorkOrderStatus.IN_PROGRESS,
            started_at=utcnow(),
        )
        await self.events.emit(ENTITY, "updated", work_order.id, {"fields": ["started_at", "status"]})
        return work_order

    async def complete(
        self,
        work_order_id: str,
        actual_cost: float | None = None,
        labor_cost: float | None = None,
        materials_cost: float | None = None,
        completion_notes: str | None = None,
        vendor_notes: str | None = None,
        completed_at: datetime | None = None,
    ) -> WorkOrder:
        work_order = await self.get(work_order_id)
        self._transition(work_order, WorkOrderStatus.COMPLETED)
        fields = {
            "status": WorkOrderStatus.COMPLETED,
            "completed_at": completed_at or utcnow(),
            "actual_cost": actual_cost,
            "labor_cost": labor_cost,
            "materials_cost": materials_cost,
            "completion_notes": completion_notes,
            "vendor_notes": vendor_notes,
        }
        fields = {k: v for k, v in fields.items() if v is not None}
        work_order = await crud.update_work_order(self.db, work_order, **fields)
        logger.info("Completed work order %s", work_order.id)

        # Keep a cost already settled on the damage (e.g. by dispute resolution) when the job reports none.
        cost = {"actual_cost": work_order.actual_cost} if work_order.actual_cost is not None else {}
        await self._set_damage_status(work_order.damage_id, DamageStatus.REPAIRED, **cost)
        if work_order.vendor_id:
            await crud.record_vendor_completion(
                self.db,
                work_order.vendor_id,
                completion_days=completion_days(work_order.started_at, work_order.completed_at),
                response_hours=response_hours(work_order.assigned_at, work_order.started_at),
                on_time=completed_on_time(work_order.scheduled_at, work_order.completed_at),
            )
            await self.events.emit("vendor", "updated", work_order.vendor_id, {
                "fields": ["avg_completion_time", "avg_response_time", "completed_jobs", "on_time_rate", "total_jobs"],
            })

        await self.events.emit(ENTITY, "updated", work_order.id, {"fields": sorted(fields)})
        await self.notifier.notify("work_order_completed", ["property-manager"], {
            "work_order_id": work_order.id,
            "property_id": work_order.property_id,
            "title": work_order.title,
            "actual_cost": work_order.actual_cost,
        })
        return await self.get(work_order.id)

    async def verify(
        self,
        work_order_id: str,
        verified_by: str,
        quality_rating: int,
        vendor_rating: int,
    ) -> WorkOrder:
        _check_rating("quality_rating", quality_rating)
        _check_rating("vendor_rating", vendor_rating)
        work_order = await self.get(work_order_id)
        self._transition(work_order, WorkOrderStatus.VERIFIED)
        work_order = await crud.update_work_order(
            self.db, work_order,
            status=WorkOrderStatus.VERIFIED,
            verified_by=verified_by,
            verified_at=utcnow(),
            quality_rating=quality_rating,
            vendor_rating=vendor_rating,
        )
        await self._set_damage_status(work_order.damage_id, DamageStatus.VERIFIED)

        if work_order.vendor_id:
            # Verification is recorded as a review so vendor ratings derive from review history alone.
            await crud.create_vendor_review(
                self.db,
                vendor_id=work_order.vendor_id,
                work_order_id=work_order.id,
                property_id=work_order.property_id,
                reviewer_id=verified_by,
                rating=vendor_rating,
                quality_rating=quality_rating,
            )
            await crud.recompute_vendor_rating(self.db, work_order.vendor_id)
            await self.events.emit("vendor", "updated", work_order.vendor_id, {"fields": ["quality_score", "rating"]})

        await self.events.emit(ENTITY, "updated", work_order.id, {
            "fields": ["quality_rating", "status", "vendor_rating", "verified_at", "verified_by"],
        })
        return await self.get(work_order.id)

    async def cancel(self, work_order_id: str, reason: str | None = None) -> WorkOrder:
        work_order = await self.get(work_order_id)
        self._transition(work_order, WorkOrderStatus.CANCELLED)
        work_order = await crud.update_work_order(
            self.db, work_order,
            status=WorkOrderStatus.CANCELLED,
            cancellation_reason=reason,
        )
        if work_order.vendor_id:
            await crud.record_vendor_cancellation(self.db, work_order.vendor_id)
        # TODO: revert a REPAIR_SCHEDULED damage to REPORTED once product confirms the intended behaviour.
        logger.info("Cancelled work order %s", work_order.id)
        await self.events.emit(ENTITY, "updated", work_order.id, {"fields": ["cancellation_reason", "status"]})
        return await self.get(work_order.id)

    async def _add_photo(self, work_order_id: str, data: bytes, stage: str) -> WorkOrder:
        work_order = await self.get(work_order_id)
        upload = await self.storage.upload_image(data, f"work-orders/{work_order.id}/{stage}")
        column = f"photos_{stage}"
        work_order = await crud.update_work_order(
            self.db, work_order, **{column: [*getattr(work_order, column), upload.url]}
        )
        await self.events.emit(ENTITY, "updated", work_order.id, {"fields": [column]})
        return work_order

    async def add_photo_before(self, work_order_id: str, data: bytes) -> WorkOrder:
        return await self._add_photo(work_order_id, data, "before")

    async def add_photo_after(self, work_order_id: str, data: bytes) -> WorkOrder:
        return await self._add_photo(work_order_id, data, "after")

    async def delete(self, work_order_id: str) -> None:
        work_order = await self.get(work_order_id)
        await crud.delete_work_order(self.db, work_order)
        await self.events.emit(ENTITY, "deleted", work_order_id)
