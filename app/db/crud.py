"""CRUD operations for inspections, damages, work orders and vendors."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Float, Integer, Select, case, cast, delete, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Damage, EventRecord, Inspection, Vendor, VendorReview, VendorSpecialty, WorkOrder
from app.models.enums import ACTIVE_WORK_ORDER_STATUSES, PRIORITY_RANK, VendorStatus


async def _page(db: AsyncSession, stmt: Select, page: int, limit: int) -> tuple[list, int]:
    total = (await db.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))).scalar_one()
    result = await db.execute(stmt.offset((page - 1) * limit).limit(limit))
    return list(result.scalars().all()), total


async def _save(db: AsyncSession, obj):
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


async def _update(db: AsyncSession, obj, **kwargs):
    for k, v in kwargs.items():
        setattr(obj, k, v)
    await db.commit()
    await db.refresh(obj)
    return obj


async def _delete(db: AsyncSession, obj) -> None:
    await db.delete(obj)
    await db.commit()


# ── Inspection ────────────────────────────────────────────

async def create_inspection(db: AsyncSession, **fields) -> Inspection:
    return await _save(db, Inspection(**fields))


async def get_inspection(db: AsyncSession, inspection_id: str) -> Inspection | None:
    return await db.get(Inspection, inspection_id, populate_existing=True)


async def list_inspections(
    db: AsyncSession,
    property_id: str | None = None,
    inspector_id: str | None = None,
    status: str | None = None,
    inspection_type: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Inspection], int]:
    stmt = select(Inspection)
    if property_id:
        stmt = stmt.where(Inspection.property_id == property_id)
    if inspector_id:
        stmt = stmt.where(Inspection.inspector_id == inspector_id)
    if status:
        stmt = stmt.where(Inspection.status == status)
    if inspection_type:
        stmt = stmt.where(Inspection.inspection_type == inspection_type)
    if start_date:
        stmt = stmt.where(Inspection.scheduled_at >= start_date)
    if end_date:
        stmt = stmt.where(Inspection.scheduled_at <= end_date)
    stmt = stmt.order_by(Inspection.scheduled_at.desc())
    return await _page(db, stmt, page, limit)


async def update_inspection(db: AsyncSession, inspection: Inspection, **kwargs) -> Inspection:
    return await _update(db, inspection, **kwargs)


async def delete_inspection(db: AsyncSession, inspection: Inspection) -> None:
    await _delete(db, inspection)


# ── Damage ────────────────────────────────────────────────

async def create_damage(db: AsyncSession, **fields) -> Damage:
    return await _save(db, Damage(**fields))


async def get_damage(db: AsyncSession, damage_id: str) -> Damage | None:
    return await db.get(Damage, damage_id, populate_existing=True)


async def list_damages(
    db: AsyncSession,
    inspection_id: str | None = None,
    property_id: str | None = None,
    reservation_id: str | None = None,
    status: str | None = None,
    severity: str | None = None,
    ai_detected: bool | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[Damage], int]:
    stmt = select(Damage)
    if inspection_id:
        stmt = stmt.where(Damage.inspection_id == inspection_id)
    if property_id:
        stmt = stmt.where(Damage.property_id == property_id)
    if reservation_id:
        stmt = stmt.where(Damage.reservation_id == reservation_id)
    if status:
        stmt = stmt.where(Damage.status == status)
    if severity:
        stmt = stmt.where(Damage.severity == severity)
    if ai_detected is not None:
        stmt = stmt.where(Damage.ai_detected == ai_detected)
    stmt = stmt.order_by(Damage.created_at.desc(), Damage.id.desc())
    return await _page(db, stmt, page, limit)


async def update_damage(db: AsyncSession, damage: Damage, **kwargs) -> Damage:
    return await _update(db, damage, **kwargs)


async def delete_damage(db: AsyncSession, damage: Damage) -> None:
    await _delete(db, damage)


# ── WorkOrder ─────────────────────────────────────────────

_priority_rank = case(
    {str(p): rank for p, rank in PRIORITY_RANK.items()},
    value=WorkOrder.priority,
    else_=-1,
)


async def create_work_order(db: AsyncSession, **fields) -> WorkOrder:
    return await _save(db, WorkOrder(**fields))


async def get_work_order(db: AsyncSession, work_order_id: str) -> WorkOrder | None:
    return await db.get(WorkOrder, work_order_id, populate_existing=True)


async def list_work_orders(
    db: AsyncSession,
    property_id: str | None = None,
    vendor_id: str | None = None,
    damage_id: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    category: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[WorkOrder], int]:
    stmt = select(WorkOrder)
    if property_id:
        stmt = stmt.where(WorkOrder.property_id == property_id)
    if vendor_id:
        stmt = stmt.where(WorkOrder.vendor_id == vendor_id)
    if damage_id:
        stmt = stmt.where(WorkOrder.damage_id == damage_id)
    if status:
        stmt = stmt.where(WorkOrder.status == status)
    if priority:
        stmt = stmt.where(WorkOrder.priority == priority)
    if category:
        stmt = stmt.where(WorkOrder.category == category)
    stmt = stmt.order_by(_priority_rank.desc(), WorkOrder.scheduled_at.asc().nulls_last(), WorkOrder.id)
    return await _page(db, stmt, page, limit)


async def list_recent_work_orders_for_vendor(db: AsyncSession, vendor_id: str, limit: int = 10) -> list[WorkOrder]:
    result = await db.execute(
        select(WorkOrder)
        .where(WorkOrder.vendor_id == vendor_id)
        .order_by(WorkOrder.created_at.desc(), WorkOrder.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_active_work_orders_for_vendor(db: AsyncSession, vendor_id: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(WorkOrder)
        .where(WorkOrder.vendor_id == vendor_id)
        .where(WorkOrder.status.in_([str(s) for s in ACTIVE_WORK_ORDER_STATUSES]))
    )
    return result.scalar_one()


async def update_work_order(db: AsyncSession, work_order: WorkOrder, **kwargs) -> WorkOrder:
    return await _update(db, work_order, **kwargs)


async def delete_work_order(db: AsyncSession, work_order: WorkOrder) -> None:
    await _delete(db, work_order)


# ── Vendor ────────────────────────────────────────────────

async def create_vendor(db: AsyncSession, specialties: list[str] | None = None, **fields) -> Vendor:
    vendor = Vendor(**fields)
    vendor.specialty_rows = [VendorSpecialty(category=str(c)) for c in dict.fromkeys(specialties or [])]
    return await _save(db, vendor)


async def get_vendor(db: AsyncSession, vendor_id: str) -> Vendor | None:
    return await db.get(Vendor, vendor_id, populate_existing=True)


def _vendor_query(
    status: str | None = None,
    specialty: str | None = None,
    preferred_only: bool = False,
    emergency_only: bool = False,
    min_rating: float | None = None,
) -> Select:
    stmt = select(Vendor)
    if status:
        stmt = stmt.where(Vendor.status == status)
    if specialty:
        stmt = stmt.where(exists().where(
            VendorSpecialty.vendor_id == Vendor.id,
            VendorSpecialty.category == specialty,
        ))
    if preferred_only:
        stmt = stmt.where(Vendor.preferred_vendor.is_(True))
    if emergency_only:
        stmt = stmt.where(Vendor.emergency_available.is_(True))
    if min_rating is not None:
        stmt = stmt.where(Vendor.rating >= min_rating)
    return stmt


async def list_vendors(
    db: AsyncSession,
    status: str | None = None,
    specialty: str | None = None,
    preferred_only: bool = False,
    min_rating: float | None = None,
) -> list[Vendor]:
    """All vendors matching the SQL-expressible filters, best first."""
    stmt = _vendor_query(status, specialty, preferred_only, False, min_rating).order_by(
        Vendor.preferred_vendor.desc(), Vendor.rating.desc().nulls_last(), Vendor.name, Vendor.id
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def search_vendors_by_specialty(
    db: AsyncSession,
    category: str,
    emergency_only: bool = False,
    preferred_only: bool = False,
    min_rating: float | None = None,
) -> list[Vendor]:
    stmt = _vendor_query(VendorStatus.ACTIVE, category, preferred_only, emergency_only, min_rating).order_by(
        Vendor.preferred_vendor.desc(),
        Vendor.rating.desc().nulls_last(),
        Vendor.avg_response_time.asc().nulls_last(),
        Vendor.id,
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_vendor(db: AsyncSession, vendor: Vendor, specialties: list[str] | None = None, **kwargs) -> Vendor:
    if specialties is not None:
        wanted = [str(c) for c in dict.fromkeys(specialties)]
        kept = [row for row in vendor.specialty_rows if row.category in wanted]
        have = {row.category for row in kept}
        vendor.specialty_rows = kept + [VendorSpecialty(category=c) for c in wanted if c not in have]
    return await _update(db, vendor, **kwargs)


async def delete_vendor(db: AsyncSession, vendor: Vendor) -> None:
    await _delete(db, vendor)


def _running_mean(column, count, sample, as_int: bool = True):
    """(coalesce(avg, sample) * n + sample) / (n + 1), evaluated against the row's current values."""
    merged = (
        cast(func.coalesce(column, sample), Float) * count + sample
    ) / (count + 1)
    if as_int:
        return cast(func.round(merged), Integer)
    return merged


async def record_vendor_completion(
    db: AsyncSession,
    vendor_id: str,
    completion_days: int | None = None,
    response_hours: int | None = None,
    on_time: bool | None = None,
) -> None:
    """Merge one completed job into the vendor's running statistics in a single UPDATE."""
    values = {
        "total_jobs": Vendor.total_jobs + 1,
        "completed_jobs": Vendor.completed_jobs + 1,
    }
    if completion_days is not None:
        values["avg_completion_time"] = _running_mean(Vendor.avg_completion_time, Vendor.completed_jobs, completion_days)
    if response_hours is not None:
        values["avg_response_time"] = _running_mean(Vendor.avg_response_time, Vendor.completed_jobs, response_hours)
    if on_time is not None:
        values["on_time_rate"] = _running_mean(
            Vendor.on_time_rate, Vendor.on_time_jobs, 1.0 if on_time else 0.0, as_int=False
        )
        values["on_time_jobs"] = Vendor.on_time_jobs + 1
    await db.execute(
        update(Vendor).where(Vendor.id == vendor_id).values(**values).execution_options(synchronize_session=False)
    )
    await db.commit()


async def record_vendor_cancellation(db: AsyncSession, vendor_id: str) -> None:
    await db.execute(
        update(Vendor)
        .where(Vendor.id == vendor_id)
        .values(cancelled_jobs=Vendor.cancelled_jobs + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def recompute_vendor_rating(db: AsyncSession, vendor_id: str) -> None:
    """Set rating and quality_score to the mean over all of the vendor's reviews."""
    mean_rating = (
        select(cast(func.avg(VendorReview.rating), Float))
        .where(VendorReview.vendor_id == vendor_id)
        .scalar_subquery()
    )
    mean_quality = (
        select(cast(func.avg(VendorReview.quality_rating), Float))
        .where(VendorReview.vendor_id == vendor_id, VendorReview.quality_rating.is_not(None))
        .scalar_subquery()
    )
    await db.execute(
        update(Vendor)
        .where(Vendor.id == vendor_id)
        .values(rating=mean_rating, quality_score=mean_quality)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


# ── VendorReview ──────────────────────────────────────────

async def create_vendor_review(db: AsyncSession, **fields) -> VendorReview:
    return await _save(db, VendorReview(**fields))


async def list_vendor_reviews(
    db: AsyncSession,
    vendor_id: str,
    min_rating: int | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[VendorReview], int]:
    stmt = select(VendorReview).where(VendorReview.vendor_id == vendor_id)
    if min_rating is not None:
        stmt = stmt.where(VendorReview.rating >= min_rating)
    stmt = stmt.order_by(VendorReview.created_at.desc(), VendorReview.id.desc())
    return await _page(db, stmt, page, limit)


# ── EventRecord ───────────────────────────────────────────

async def create_event_record(db: AsyncSession, **fields) -> EventRecord:
    return await _save(db, EventRecord(**fields))


async def list_event_records(db: AsyncSession, entity_id: str | None = None) -> list[EventRecord]:
    stmt = select(EventRecord)
    if entity_id:
        stmt = stmt.where(EventRecord.entity_id == entity_id)
    result = await db.execute(stmt.order_by(EventRecord.id))
    return list(result.scalars().all())


async def purge_event_records(db: AsyncSession, before: datetime) -> int:
    result = await db.execute(delete(EventRecord).where(EventRecord.timestamp < before))
    await db.commit()
    return result.rowcount or 0
