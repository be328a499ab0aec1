from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from app.models.enums import DamageStatus, DamageType, ResponsibleParty, Severity
from app.schemas.common import UTCDatetime


class DamageCreate(BaseModel):
    inspection_id: str
    property_id: str
    room: str
    location: str = ""
    damage_type: DamageType
    severity: Severity
    description: str = ""
    reservation_id: str | None = None
    responsible_party: ResponsibleParty | None = None
    estimated_cost_manual: float | None = Field(default=None, ge=0)
    photos: list[str] = []


class DamageUpdate(BaseModel):
    reservation_id: str | None = None
    room: str | None = None
    location: str | None = None
    damage_type: DamageType | None = None
    severity: Severity | None = None
    description: str | None = None
    status: DamageStatus | None = None
    responsible_party: ResponsibleParty | None = None
    estimated_cost_manual: float | None = Field(default=None, ge=0)
    actual_cost: float | None = Field(default=None, ge=0)


class DisputeCreate(BaseModel):
    reason: str = Field(min_length=1)
    evidence: dict[str, Any] | None = None


class DisputeResolve(BaseModel):
    resolution: str = Field(min_length=1)
    final_responsible_party: ResponsibleParty | None = None
    final_cost: float | None = Field(default=None, ge=0)


class DamageRead(BaseModel):
    id: str
    inspection_id: str
    property_id: str
    reservation_id: str | None = None
    room: str
    location: str
    damage_type: DamageType
    severity: Severity
    description: str
    status: DamageStatus
    responsible_party: ResponsibleParty | None = None
    estimated_cost_manual: float | None = None
    estimated_cost_ai: float | None = None
    actual_cost: float | None = None
    before_photo_url: str | None = None
    after_photo_url: str | None = None
    photos: list[str] = []
    ai_detected: bool = False
    ai_confidence: float | None = None
    ai_damage_type: str | None = None
    ai_severity: str | None = None
    ai_bounding_box: dict[str, Any] | None = None
    ai_metadata: dict[str, Any] | None = None
    disputed: bool = False
    dispute_reason: str | None = None
    dispute_evidence: dict[str, Any] | None = None
    dispute_resolution: str | None = None
    dispute_resolved_at: UTCDatetime | None = None
    created_at: UTCDatetime
    updated_at: UTCDatetime

    model_config = {"from_attributes": True}


class DetectionRead(BaseModel):
    detected: bool
    damage: DamageRead | None = None
