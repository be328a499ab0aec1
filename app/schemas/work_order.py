from __future__ import annotations

from pydantic import BaseModel, Field

from app.models.enums import Priority, WorkCategory, WorkOrderStatus, WorkOrderType
from app.schemas.common import UTCDatetime


class WorkOrderCreate(BaseModel):
    property_id: str
    work_order_type: WorkOrderType
    category: WorkCategory
    title: str = Field(min_length=1)
    description: str = ""
    priority: Priority = Priority.NORMAL
    unit_id: str | None = None
    damage_id: str | None = None
    vendor_id: str | None = None
    scheduled_at: UTCDatetime | None = None
    estimated_cost: float | None = Field(default=None, ge=0)


class WorkOrderUpdate(BaseModel):
    unit_id: str | None = None
    work_order_type: WorkOrderType | None = None
    category: WorkCategory | None = None
    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    estimated_cost: float | None = Field(default=None, ge=0)
    actual_cost: float | None = Field(default=None, ge=0)
    labor_cost: float | None = Field(default=None, ge=0)
    materials_cost: float | None = Field(default=None, ge=0)
    completion_notes: str | None = None
    vendor_notes: str | None = None


class WorkOrderAssign(BaseModel):
    vendor_id: str


class WorkOrderSchedule(BaseModel):
    scheduled_at: UTCDatetime


class WorkOrderComplete(BaseModel):
    actual_cost: float | None = Field(default=None, ge=0)
    labor_cost: float | None = Field(default=None, ge=0)
    materials_cost: float | None = Field(default=None, ge=0)
    completion_notes: str | None = None
    vendor_notes: str | None = None


class WorkOrderVerify(BaseModel):
    quality_rating: int = Field(ge=1, le=5)
    vendor_rating: int = Field(ge=1, le=5)


class WorkOrderCancel(BaseModel):
    reason: str | None = None


class DamageRef(BaseModel):
    id: str
    damage_type: str
    severity: str
    status: str
    room: str

    model_config = {"from_attributes": True}


class VendorRef(BaseModel):
    id: str
    name: str
    company: str | None = None
    email: str
    phone: str

    model_config = {"from_attributes": True}


class WorkOrderRead(BaseModel):
    id: str
    property_id: str
    unit_id: str | None = None
    damage_id: str | None = None
    work_order_type: WorkOrderType
    category: WorkCategory
    title: str
    description: str
    priority: Priority
    status: WorkOrderStatus
    vendor_id: str | None = None
    assigned_at: UTCDatetime | None = None
    scheduled_at: UTCDatetime | None = None
    started_at: UTCDatetime | None = None
    completed_at: UTCDatetime | None = None
    estimated_cost: float | None = None
    actual_cost: float | None = None
    labor_cost: float | None = None
    materials_cost: float | None = None
    photos_before: list[str] = []
    photos_after: list[str] = []
    completion_notes: str | None = None
    vendor_notes: str | None = None
    cancellation_reason: str | None = None
    verified_by: str | None = None
    verified_at: UTCDatetime | None = None
    quality_rating: int | None = None
    vendor_rating: int | None = None
    created_at: UTCDatetime
    updated_at: UTCDatetime
    damage: DamageRef | None = None
    vendor: VendorRef | None = None

    model_config = {"from_attributes": True}
