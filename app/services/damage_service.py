"""Damage records: manual reports, AI detection, before/after comparison and disputes."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db import crud
from app.models import Damage
from app.models.base import null_fields, utcnow
from app.models.enums import DamageStatus, damage_type_from_label, severity_from_label
from app.services.events import EventPublisher
from app.services.knowledge import PatternStore
from app.services.notifications import NotificationSender
from app.services.storage import StorageGateway
from app.services.vision import Detected, VisionClient
from app.utils.exceptions import InvalidTransition, NotFound, ValidationError

logger = logging.getLogger(__name__)

ENTITY = "damage"
STAKEHOLDERS = ["property-manager", "owner"]

UPDATABLE_FIELDS = frozenset({
    "reservation_id", "room", "location", "damage_type", "severity", "description",
    "status", "responsible_party", "estimated_cost_manual", "actual_cost",
})

# Statuses an operator may set directly through update().
REVIEW_STATUSES = frozenset({DamageStatus.REPORTED, DamageStatus.UNDER_REVIEW, DamageStatus.APPROVED})


class DamageService:
    def __init__(
        self,
        db: AsyncSession,
        storage: StorageGateway,
        vision: VisionClient,
        events: EventPublisher,
        notifier: NotificationSender,
        patterns: PatternStore,
        threshold: float | None = None,
    ):
        self.db = db
        self.storage = storage
        self.vision = vision
        self.events = events
        self.notifier = notifier
        self.patterns = patterns
        self.threshold = get_settings().ai.confidence_threshold if threshold is None else threshold

    async def get(self, damage_id: str) -> Damage:
        damage = await crud.get_damage(self.db, damage_id)
        if not damage:
            raise NotFound(f"Damage {damage_id} not found")
        return damage

    async def list(self, page: int = 1, limit: int = 20, **filters) -> tuple[list[Damage], int]:
        return await crud.list_damages(self.db, page=page, limit=limit, **filters)

    async def _require_inspection(self, inspection_id: str) -> None:
        if not await crud.get_inspection(self.db, inspection_id):
            raise NotFound(f"Inspection {inspection_id} not found")

    async def _notify(self, damage: Damage, notification_type: str) -> None:
        await self.notifier.notify(notification_type, STAKEHOLDERS, {
            "damage_id": damage.id,
            "property_id": damage.property_id,
            "damage_type": damage.damage_type,
            "severity": damage.severity,
            "estimated_cost": damage.estimated_cost_ai or damage.estimated_cost_manual,
        })

    async def create(
        self,
        inspection_id: str,
        property_id: str,
        room: str,
        location: str,
        damage_type: str,
        severity: str,
        description: str,
        reservation_id: str | None = None,
        responsible_party: str | None = None,
        estimated_cost_manual: float | None = None,
        photos: list[str] | None = None,
    ) -> Damage:
        await self._require_inspection(inspection_id)
        damage = await crud.create_damage(
            self.db,
            inspection_id=inspection_id,
            property_id=property_id,
            reservation_id=reservation_id,
            room=room,
            location=location,
            damage_type=str(damage_type),
            severity=str(severity),
            description=description,
            responsible_party=str(responsible_party) if responsible_party else None,
            estimated_cost_manual=estimated_cost_manual,
            photos=photos or [],
            status=DamageStatus.REPORTED,
        )
        logger.info("Reported %s damage %s in %s", severity, damage.id, room)
        await self.events.emit(ENTITY, "created", damage.id, {"inspection_id": inspection_id})
        await self._notify(damage, "damage_detected")
        return damage

    async def update(self, damage_id: str, changes: dict) -> Damage:
        damage = await self.get(damage_id)
        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        nulls = null_fields(Damage, fields)
        if nulls:
            raise ValidationError(f"{', '.join(nulls)} cannot be null")
        if damage.status == DamageStatus.DISPUTED and "actual_cost" in fields:
            raise InvalidTransition(ENTITY, damage.status, "cost finalised")
        if "status" in fields and fields["status"] != damage.status:
            if damage.status not in REVIEW_STATUSES or fields["status"] not in REVIEW_STATUSES:
                raise InvalidTransition(ENTITY, damage.status, fields["status"])
        for key in ("damage_type", "severity", "status", "responsible_party"):
            if fields.get(key) is not None:
                fields[key] = str(fields[key])
        damage = await crud.update_damage(self.db, damage, **fields)
        await self.events.emit(ENTITY, "updated", damage.id, {"fields": sorted(fields)})
        return damage

    async def _persist_detection(
        self,
        inspection_id: str,
        property_id: str,
        room: str,
        location: str,
        ai_type: str | None,
        ai_severity: str | None,
        confidence: float,
        bounding_box: dict | None,
        image_url: str,
        description: str,
        extra: dict,
    ) -> Damage:
        damage_type = damage_type_from_label(ai_type)
        severity = severity_from_label(ai_severity)
        estimate = await self.vision.estimate_cost(damage_type, severity, image_url)
        damage = await crud.create_damage(
            self.db,
            inspection_id=inspection_id,
            property_id=property_id,
            room=room,
            location=location,
            damage_type=damage_type,
            severity=severity,
            description=description,
            status=DamageStatus.UNDER_REVIEW,
            estimated_cost_ai=estimate.estimated_cost,
            ai_detected=True,
            ai_confidence=confidence,
            ai_damage_type=ai_type,
            ai_severity=ai_severity,
            ai_bounding_box=bounding_box,
            **extra,
        )
        await self.patterns.store_pattern(
            "damage_detection",
            {
                "damage_type": damage.damage_type,
                "severity": damage.severity,
                "ai_confidence": confidence,
                "ai_damage_type": ai_type,
                "room": room,
                "location": location,
            },
            ["damage-detection", "ai", damage.damage_type.lower()],
            confidence,
        )
        await self.events.emit(ENTITY, "ai_detected", damage.id, {
            "inspection_id": inspection_id,
            "confidence": confidence,
            "damage_type": damage.damage_type,
            "severity": damage.severity,
        })
        return damage

    async def detect_from_image(
        self,
        data: bytes,
        inspection_id: str,
        property_id: str,
        room: str,
        location: str,
    ) -> Damage | None:
        """Run AI detection on one photo; returns None when nothing clears the threshold."""
        await self._require_inspection(inspection_id)
        upload = await self.storage.upload_image(data, f"damage-detection/{inspection_id}")

        result = await self.vision.detect_damage(upload.url, property_id, room)
        if not isinstance(result, Detected) or result.confidence < self.threshold:
            logger.info("No damage above %.2f in %s (confidence %.2f)", self.threshold, upload.key, result.confidence)
            return None

        return await self._persist_detection(
            inspection_id, property_id, room, location,
            ai_type=result.damage_type,
            ai_severity=result.severity,
            confidence=result.confidence,
            bounding_box=result.bounding_box,
            image_url=upload.url,
            description=f"AI detected {result.damage_type or 'damage'} in {room}",
            extra={
                "photos": [upload.url],
                "after_photo_url": upload.url,
                "ai_metadata": result.metadata,
            },
        )

    async def compare_before_after(
        self,
        before: bytes,
        after: bytes,
        inspection_id: str,
        property_id: str,
        room: str,
        location: str,
    ) -> list[Damage]:
        await self._require_inspection(inspection_id)
        folder = f"damage-comparison/{inspection_id}"
        before_upload, after_upload = await asyncio.gather(
            self.storage.upload_image(before, folder),
            self.storage.upload_image(after, folder),
        )

        comparison = await self.vision.compare_images(before_upload.url, after_upload.url, property_id, room)
        created: list[Damage] = []
        for diff in comparison.differences:
            if diff.confidence < self.threshold:
                continue
            damage = await self._persist_detection(
                inspection_id, property_id, room, location,
                ai_type=diff.damage_type,
                ai_severity=diff.severity,
                confidence=diff.confidence,
                bounding_box=diff.bounding_box,
                image_url=after_upload.url,
                description=f"Change detected between before/after photos: {diff.damage_type or 'unknown'}",
                extra={
                    "photos": [before_upload.url, after_upload.url],
                    "before_photo_url": before_upload.url,
                    "after_photo_url": after_upload.url,
                },
            )
            created.append(damage)
        logger.info("Comparison for inspection %s produced %d damage(s)", inspection_id, len(created))
        return created

    async def add_photo(self, damage_id: str, data: bytes) -> Damage:
        damage = await self.get(damage_id)
        upload = await self.storage.upload_image(data, f"damages/{damage.id}")
        damage = await crud.update_damage(self.db, damage, photos=[*damage.photos, upload.url])
        await self.events.emit(ENTITY, "updated", damage.id, {"fields": ["photos"]})
        return damage

    async def dispute(self, damage_id: str, reason: str, evidence: dict | None = None) -> Damage:
        damage = await self.get(damage_id)
        if damage.status == DamageStatus.VERIFIED:
            raise InvalidTransition(ENTITY, damage.status, DamageStatus.DISPUTED)
        if not reason or not reason.strip():
            raise ValidationError("A dispute reason is required")
        damage = await crud.update_damage(
            self.db, damage,
            status=DamageStatus.DISPUTED,
            disputed=True,
            dispute_reason=reason,
            dispute_evidence=evidence,
        )
        logger.info("Damage %s disputed", damage.id)
        await self.events.emit(ENTITY, "updated", damage.id, {"fields": ["status", "disputed", "dispute_reason", "dispute_evidence"]})
        await self._notify(damage, "damage_disputed")
        return damage

    async def resolve_dispute(
        self,
        damage_id: str,
        resolution: str,
        final_responsible_party: str | None = None,
        final_cost: float | None = None,
    ) -> Damage:
        damage = await self.get(damage_id)
        if damage.status != DamageStatus.DISPUTED:
            raise InvalidTransition(ENTITY, damage.status, DamageStatus.APPROVED)
        fields = {
            "status": DamageStatus.APPROVED,
            "dispute_resolution": resolution,
            "dispute_resolved_at": utcnow(),
        }
        if final_responsible_party is not None:
            fields["responsible_party"] = str(final_responsible_party)
        if final_cost is not None:
            fields["actual_cost"] = final_cost
        damage = await crud.update_damage(self.db, damage, **fields)
        await self.events.emit(ENTITY, "updated", damage.id, {"fields": sorted(fields)})
        return damage

    async def delete(self, damage_id: str) -> None:
        damage = await self.get(damage_id)
        await crud.delete_damage(self.db, damage)
        await self.events.emit(ENTITY, "deleted", damage_id)
