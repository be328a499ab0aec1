"""Inspection lifecycle: schedule, start, complete, photos and PDF report."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.db import crud
from app.models import Inspection
from app.models.base import null_fields, utcnow
from app.models.enums import InspectionStatus
from app.services.events import EventPublisher
from app.services.pdf_generator import generate_inspection_pdf
from app.services.storage import StorageGateway
from app.utils.exceptions import InvalidTransition, NotFound, ValidationError

logger = logging.getLogger(__name__)

ENTITY = "inspection"

UPDATABLE_FIELDS = frozenset({
    "unit_id", "reservation_id", "inspector_id", "inspection_type", "scheduled_at",
    "checklist", "overall_condition", "notes",
})


class InspectionService:
    def __init__(self, db: AsyncSession, storage: StorageGateway, events: EventPublisher):
        self.db = db
        self.storage = storage
        self.events = events

    async def get(self, inspection_id: str) -> Inspection:
        inspection = await crud.get_inspection(self.db, inspection_id)
        if not inspection:
            raise NotFound(f"Inspection {inspection_id} not found")
        return inspection

    async def list(self, page: int = 1, limit: int = 20, **filters) -> tuple[list[Inspection], int]:
        return await crud.list_inspections(self.db, page=page, limit=limit, **filters)

    async def create(
        self,
        property_id: str,
        inspector_id: str,
        inspection_type: str,
        scheduled_at: datetime,
        unit_id: str | None = None,
        reservation_id: str | None = None,
        notes: str | None = None,
        checklist: dict | None = None,
    ) -> Inspection:
        inspection = await crud.create_inspection(
            self.db,
            property_id=property_id,
            inspector_id=inspector_id,
            inspection_type=str(inspection_type),
            scheduled_at=scheduled_at,
            unit_id=unit_id,
            reservation_id=reservation_id,
            notes=notes,
            checklist=checklist or {},
            status=InspectionStatus.SCHEDULED,
        )
        logger.info("Scheduled %s inspection %s for property %s", inspection_type, inspection.id, property_id)
        await self.events.emit(ENTITY, "created", inspection.id, {
            "property_id": property_id,
            "inspection_type": str(inspection_type),
            "scheduled_at": scheduled_at.isoformat(),
        })
        return inspection

    async def update(self, inspection_id: str, changes: dict) -> Inspection:
        inspection = await self.get(inspection_id)
        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        nulls = null_fields(Inspection, fields)
        if nulls:
            raise ValidationError(f"{', '.join(nulls)} cannot be null")
        inspection = await crud.update_inspection(self.db, inspection, **fields)
        await self.events.emit(ENTITY, "updated", inspection.id, {"fields": sorted(fields)})
        return inspection

    async def start(self, inspection_id: str, location: dict | None = None) -> Inspection:
        inspection = await self.get(inspection_id)
        if inspection.status != InspectionStatus.SCHEDULED:
            raise InvalidTransition(ENTITY, inspection.status, InspectionStatus.IN_PROGRESS)
        inspection = await crud.update_inspection(
            self.db, inspection,
            status=InspectionStatus.IN_PROGRESS,
            started_at=utcnow(),
            start_location=location,
        )
        await self.events.emit(ENTITY, "updated", inspection.id, {"fields": ["status", "started_at", "start_location"]})
        return inspection

    async def complete(
        self,
        inspection_id: str,
        overall_condition: str,
        notes: str | None = None,
        location: dict | None = None,
    ) -> Inspection:
        inspection = await self.get(inspection_id)
        if inspection.status != InspectionStatus.IN_PROGRESS:
            raise InvalidTransition(ENTITY, inspection.status, InspectionStatus.COMPLETED)
        fields = {
            "status": InspectionStatus.COMPLETED,
            "completed_at": utcnow(),
            "overall_condition": str(overall_condition),
            "end_location": location,
        }
        if notes is not None:
            fields["notes"] = notes
        inspection = await crud.update_inspection(self.db, inspection, **fields)
        logger.info("Completed inspection %s (%s)", inspection.id, overall_condition)
        await self.events.emit(ENTITY, "updated", inspection.id, {"fields": sorted(fields)})
        return inspection

    async def add_photo(
        self,
        inspection_id: str,
        data: bytes,
        room: str,
        angle: str | None = None,
        gps: dict | None = None,
        device: str | None = None,
    ) -> Inspection:
        inspection = await self.get(inspection_id)
        if inspection.status == InspectionStatus.COMPLETED:
            raise InvalidTransition(ENTITY, inspection.status, "photo added")

        upload = await self.storage.upload_image(data, f"inspections/{inspection.id}")

        metadata = {"room": room}
        if angle:
            metadata["angle"] = angle
        if device:
            metadata["device"] = device
        photo = {"url": upload.url, "key": upload.key, "timestamp": utcnow().isoformat(), "metadata": metadata}
        if gps:
            photo["gps"] = gps

        inspection = await crud.update_inspection(self.db, inspection, photos=[*inspection.photos, photo])
        await self.events.emit(ENTITY, "updated", inspection.id, {"fields": ["photos"]})
        return inspection

    async def generate_report(self, inspection_id: str) -> str:
        inspection = await self.get(inspection_id)
        pdf = await generate_inspection_pdf(inspection, list(inspection.damages))
        upload = await self.storage.upload_file(
            pdf,
            "inspection-reports",
            f"inspection-{inspection.id}-report.pdf",
            "application/pdf",
        )
        inspection = await crud.update_inspection(
            self.db, inspection,
            report_url=upload.url,
            report_generated_at=utcnow(),
        )
        logger.info("Generated report for inspection %s at %s", inspection.id, upload.key)
        await self.events.emit(ENTITY, "updated", inspection.id, {"fields": ["report_url", "report_generated_at"]})
        return upload.url

    async def delete(self, inspection_id: str) -> None:
        inspection = await self.get(inspection_id)
        await crud.delete_inspection(self.db, inspection)
        await self.events.emit(ENTITY, "deleted", inspection_id)
