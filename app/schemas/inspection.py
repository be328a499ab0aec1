from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from app.models.enums import Condition, InspectionStatus, InspectionType
from app.schemas.common import GeoPoint, UTCDatetime


class ChecklistItem(BaseModel):
    name: str
    condition: Condition
    notes: str | None = None
    photos: list[str] = []


class InspectionCreate(BaseModel):
    property_id: str
    inspector_id: str
    inspection_type: InspectionType
    scheduled_at: UTCDatetime
    unit_id: str | None = None
    reservation_id: str | None = None
    notes: str | None = None
    checklist: dict[str, list[ChecklistItem]] | None = None


class InspectionUpdate(BaseModel):
    unit_id: str | None = None
    reservation_id: str | None = None
    inspector_id: str | None = None
    inspection_type: InspectionType | None = None
    scheduled_at: UTCDatetime | None = None
    checklist: dict[str, list[ChecklistItem]] | None = None
    overall_condition: Condition | None = None
    notes: str | None = None


class InspectionStart(BaseModel):
    location: GeoPoint | None = None


class InspectionComplete(BaseModel):
    overall_condition: Condition
    notes: str | None = None
    location: GeoPoint | None = None


class DamageSummary(BaseModel):
    id: str
    damage_type: str
    severity: str
    status: str

    model_config = {"from_attributes": True}


class InspectionRead(BaseModel):
    id: str
    property_id: str
    unit_id: str | None = None
    reservation_id: str | None = None
    inspector_id: str
    inspection_type: InspectionType
    status: InspectionStatus
    scheduled_at: UTCDatetime
    started_at: UTCDatetime | None = None
    completed_at: UTCDatetime | None = None
    photos: list[dict[str, Any]] = []
    checklist: dict[str, Any] = {}
    overall_condition: Condition | None = None
    notes: str | None = None
    report_url: str | None = None
    report_generated_at: UTCDatetime | None = None
    start_location: dict[str, Any] | None = None
    end_location: dict[str, Any] | None = None
    created_at: UTCDatetime
    updated_at: UTCDatetime
    damages: list[DamageSummary] = []

    model_config = {"from_attributes": True}


class ReportRead(BaseModel):
    report_url: str
