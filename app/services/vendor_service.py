"""Vendor profiles, reviews and performance projection."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.models import Vendor, VendorReview, WorkOrder
from app.models.base import null_fields
from app.models.enums import VendorStatus
from app.services.events import EventPublisher
from app.utils.exceptions import Conflict, NotFound, ValidationError

logger = logging.getLogger(__name__)

ENTITY = "vendor"
SUB_RATINGS = ("quality_rating", "timeliness_rating", "communication_rating", "professionalism_rating", "value_rating")

UPDATABLE_FIELDS = frozenset({
    "name", "company", "email", "phone", "alternate_phone", "service_areas", "address",
    "website", "business_hours", "emergency_available", "pricing_info", "payment_terms",
    "license_number", "license_state", "license_expiry", "insurance_provider",
    "insurance_policy", "insurance_expiry", "bonded_amount", "w9_on_file",
    "contract_signed", "background_check", "preferred_vendor", "notes", "internal_notes",
})


@dataclass
class PerformanceMetrics:
    total_jobs: int
    completed_jobs: int
    cancelled_jobs: int
    avg_completion_time: int | None
    avg_response_time: int | None
    on_time_rate: float | None
    quality_score: float | None
    rating: float | None

    def to_dict(self) -> dict:
        return asdict(self)


def serves_area(vendor: Vendor, city: str | None, state: str | None) -> bool:
    """True if any service area matches the requested city and/or state."""
    if not city and not state:
        return True
    for area in vendor.service_areas or []:
        if city and str(area.get("city", "")).strip().lower() != city.strip().lower():
            continue
        if state and str(area.get("state", "")).strip().lower() != state.strip().lower():
            continue
        return True
    return False


def _check_rating(name: str, value: int | None, required: bool = False) -> None:
    if value is None:
        if required:
            raise ValidationError(f"{name} is required")
        return
    if not 1 <= value <= 5:
        raise ValidationError(f"{name} must be between 1 and 5")


class VendorService:
    def __init__(self, db: AsyncSession, events: EventPublisher):
        self.db = db
        self.events = events

    async def get(self, vendor_id: str) -> Vendor:
        vendor = await crud.get_vendor(self.db, vendor_id)
        if not vendor:
            raise NotFound(f"Vendor {vendor_id} not found")
        return vendor

    async def recent_work_orders(self, vendor_id: str, limit: int = 10) -> list[WorkOrder]:
        return await crud.list_recent_work_orders_for_vendor(self.db, vendor_id, limit)

    async def recent_reviews(self, vendor_id: str, limit: int = 10) -> list[VendorReview]:
        reviews, _ = await crud.list_vendor_reviews(self.db, vendor_id, page=1, limit=limit)
        return reviews

    async def list(
        self,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        specialty: str | None = None,
        preferred_only: bool = False,
        min_rating: float | None = None,
        city: str | None = None,
        state: str | None = None,
    ) -> tuple[list[Vendor], int]:
        vendors = await crud.list_vendors(
            self.db, status=status, specialty=specialty,
            preferred_only=preferred_only, min_rating=min_rating,
        )
        vendors = [v for v in vendors if serves_area(v, city, state)]
        start = (page - 1) * limit
        return vendors[start:start + limit], len(vendors)

    async def create(self, specialties: list[str] | None = None, **fields) -> Vendor:
        fields = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        vendor = await crud.create_vendor(
            self.db,
            specialties=[str(s) for s in specialties or []],
            status=VendorStatus.PENDING,
            **fields,
        )
        logger.info("Registered vendor %s (%s)", vendor.id, vendor.name)
        await self.events.emit(ENTITY, "created", vendor.id, {"name": vendor.name})
        return vendor

    async def update(self, vendor_id: str, changes: dict) -> Vendor:
        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS or k in ("status", "specialties")}
        nulls = null_fields(Vendor, fields)
        if "specialties" in fields and fields["specialties"] is None:
            nulls.append("specialties")
        if nulls:
            raise ValidationError(f"{', '.join(nulls)} cannot be null")
        return await self._apply(vendor_id, fields)

    async def _apply(self, vendor_id: str, fields: dict) -> Vendor:
        vendor = await self.get(vendor_id)
        fields = dict(fields)
        specialties = fields.pop("specialties", None)
        if fields.get("status") is not None:
            fields["status"] = str(fields["status"])
        vendor = await crud.update_vendor(
            self.db, vendor,
            specialties=[str(s) for s in specialties] if specialties is not None else None,
            **fields,
        )
        changed = sorted([*fields, *(["specialties"] if specialties is not None else [])])
        await self.events.emit(ENTITY, "updated", vendor.id, {"fields": changed})
        return vendor

    async def activate(self, vendor_id: str) -> Vendor:
        return await self._apply(vendor_id, {"status": VendorStatus.ACTIVE})

    async def suspend(self, vendor_id: str, reason: str | None = None) -> Vendor:
        vendor = await self.get(vendor_id)
        changes: dict = {"status": VendorStatus.SUSPENDED}
        if reason:
            note = f"Suspended: {reason}"
            changes["internal_notes"] = f"{vendor.internal_notes}\n{note}" if vendor.internal_notes else note
        logger.info("Suspending vendor %s", vendor_id)
        return await self._apply(vendor_id, changes)

    async def verify_license(self, vendor_id: str, verified: bool) -> Vendor:
        return await self._apply(vendor_id, {"license_verified": verified})

    async def verify_insurance(self, vendor_id: str, verified: bool, expiry: datetime | None = None) -> Vendor:
        changes: dict = {"insurance_verified": verified}
        if expiry is not None:
            changes["insurance_expiry"] = expiry
        return await self._apply(vendor_id, changes)

    async def add_review(
        self,
        vendor_id: str,
        reviewer_id: str,
        rating: int,
        work_order_id: str | None = None,
        property_id: str | None = None,
        review: str | None = None,
        pros: str | None = None,
        cons: str | None = None,
        would_recommend: bool = True,
        would_hire_again: bool = True,
        photos: list[str] | None = None,
        **sub_ratings: int | None,
    ) -> VendorReview:
        _check_rating("rating", rating, required=True)
        unknown = set(sub_ratings) - set(SUB_RATINGS)
        if unknown:
            raise ValidationError(f"Unknown rating fields: {', '.join(sorted(unknown))}")
        for name, value in sub_ratings.items():
            _check_rating(name, value)
        await self.get(vendor_id)
        if work_order_id and not await crud.get_work_order(self.db, work_order_id):
            raise NotFound(f"Work order {work_order_id} not found")

        created = await crud.create_vendor_review(
            self.db,
            vendor_id=vendor_id,
            reviewer_id=reviewer_id,
            rating=rating,
            work_order_id=work_order_id,
            property_id=property_id,
            review=review,
            pros=pros,
            cons=cons,
            would_recommend=would_recommend,
            would_hire_again=would_hire_again,
            photos=photos or [],
            **sub_ratings,
        )
        await crud.recompute_vendor_rating(self.db, vendor_id)
        await self.events.emit(ENTITY, "updated", vendor_id, {"fields": ["quality_score", "rating"]})
        return created

    async def get_reviews(
        self,
        vendor_id: str,
        page: int = 1,
        limit: int = 20,
        min_rating: int | None = None,
    ) -> tuple[list[VendorReview], int]:
        await self.get(vendor_id)
        return await crud.list_vendor_reviews(self.db, vendor_id, min_rating=min_rating, page=page, limit=limit)

    async def get_performance_metrics(self, vendor_id: str) -> PerformanceMetrics:
        vendor = await self.get(vendor_id)
        return PerformanceMetrics(
            total_jobs=vendor.total_jobs,
            completed_jobs=vendor.completed_jobs,
            cancelled_jobs=vendor.cancelled_jobs,
            avg_completion_time=vendor.avg_completion_time,
            avg_response_time=vendor.avg_response_time,
            on_time_rate=vendor.on_time_rate,
            quality_score=vendor.quality_score,
            rating=vendor.rating,
        )

    async def search_by_specialty(
        self,
        category: str,
        city: str | None = None,
        state: str | None = None,
        emergency_only: bool = False,
        preferred_only: bool = False,
        min_rating: float | None = None,
    ) -> list[Vendor]:
        vendors = await crud.search_vendors_by_specialty(
            self.db, str(category),
            emergency_only=emergency_only,
            preferred_only=preferred_only,
            min_rating=min_rating,
        )
        return [v for v in vendors if serves_area(v, city, state)]

    async def delete(self, vendor_id: str) -> None:
        vendor = await self.get(vendor_id)
        active = await crud.count_active_work_orders_for_vendor(self.db, vendor_id)
        if active:
            raise Conflict(f"Cannot delete vendor with {active} active work order(s)")
        await crud.delete_vendor(self.db, vendor)
        logger.info("Deleted vendor %s", vendor_id)
        await self.events.emit(ENTITY, "deleted", vendor_id)
