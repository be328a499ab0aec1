from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from app.models.enums import VendorStatus, WorkCategory
from app.schemas.common import UTCDatetime
from app.schemas.work_order import WorkOrderRead


class ServiceArea(BaseModel):
    city: str
    state: str
    radius_miles: float | None = None


class VendorBase(BaseModel):
    company: str | None = None
    alternate_phone: str | None = None
    specialties: list[WorkCategory] = []
    service_areas: list[ServiceArea] = []
    address: dict[str, Any] | None = None
    website: str | None = None
    business_hours: dict[str, Any] | None = None
    emergency_available: bool = False
    pricing_info: dict[str, Any] | None = None
    payment_terms: str | None = None
    license_number: str | None = None
    license_state: str | None = None
    license_expiry: UTCDatetime | None = None
    insurance_provider: str | None = None
    insurance_policy: str | None = None
    insurance_expiry: UTCDatetime | None = None
    bonded_amount: float | None = None
    w9_on_file: bool = False
    contract_signed: bool = False
    background_check: bool = False
    preferred_vendor: bool = False
    notes: str | None = None
    internal_notes: str | None = None


class VendorCreate(VendorBase):
    name: str = Field(min_length=1)
    email: str
    phone: str


class VendorUpdate(BaseModel):
    name: str | None = None
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    alternate_phone: str | None = None
    specialties: list[WorkCategory] | None = None
    service_areas: list[ServiceArea] | None = None
    address: dict[str, Any] | None = None
    website: str | None = None
    business_hours: dict[str, Any] | None = None
    emergency_available: bool | None = None
    pricing_info: dict[str, Any] | None = None
    payment_terms: str | None = None
    license_number: str | None = None
    license_state: str | None = None
    license_expiry: UTCDatetime | None = None
    insurance_provider: str | None = None
    insurance_policy: str | None = None
    insurance_expiry: UTCDatetime | None = None
    bonded_amount: float | None = None
    w9_on_file: bool | None = None
    contract_signed: bool | None = None
    background_check: bool | None = None
    preferred_vendor: bool | None = None
    notes: str | None = None
    internal_notes: str | None = None


class VendorSuspend(BaseModel):
    reason: str | None = None


class LicenseVerify(BaseModel):
    verified: bool


class InsuranceVerify(BaseModel):
    verified: bool
    expiry: UTCDatetime | None = None


class ReviewCreate(BaseModel):
    rating: int
    work_order_id: str | None = None
    property_id: str | None = None
    quality_rating: int | None = Field(default=None, ge=1, le=5)
    timeliness_rating: int | None = Field(default=None, ge=1, le=5)
    communication_rating: int | None = Field(default=None, ge=1, le=5)
    professionalism_rating: int | None = Field(default=None, ge=1, le=5)
    value_rating: int | None = Field(default=None, ge=1, le=5)
    review: str | None = None
    pros: str | None = None
    cons: str | None = None
    would_recommend: bool = True
    would_hire_again: bool = True
    photos: list[str] = []


class ReviewRead(BaseModel):
    id: str
    vendor_id: str
    work_order_id: str | None = None
    property_id: str | None = None
    reviewer_id: str
    rating: int
    quality_rating: int | None = None
    timeliness_rating: int | None = None
    communication_rating: int | None = None
    professionalism_rating: int | None = None
    value_rating: int | None = None
    review: str | None = None
    pros: str | None = None
    cons: str | None = None
    would_recommend: bool
    would_hire_again: bool
    photos: list[str] = []
    created_at: UTCDatetime

    model_config = {"from_attributes": True}


class VendorRead(BaseModel):
    id: str
    name: str
    company: str | None = None
    email: str
    phone: str
    alternate_phone: str | None = None
    specialties: list[WorkCategory] = []
    service_areas: list[dict[str, Any]] = []
    address: dict[str, Any] | None = None
    website: str | None = None
    business_hours: dict[str, Any] | None = None
    emergency_available: bool
    pricing_info: dict[str, Any] | None = None
    payment_terms: str | None = None
    license_number: str | None = None
    license_state: str | None = None
    license_expiry: UTCDatetime | None = None
    license_verified: bool
    insurance_provider: str | None = None
    insurance_policy: str | None = None
    insurance_expiry: UTCDatetime | None = None
    insurance_verified: bool
    bonded_amount: float | None = None
    w9_on_file: bool
    contract_signed: bool
    background_check: bool
    status: VendorStatus
    preferred_vendor: bool
    notes: str | None = None
    total_jobs: int
    completed_jobs: int
    cancelled_jobs: int
    avg_completion_time: int | None = None
    avg_response_time: int | None = None
    on_time_rate: float | None = None
    quality_score: float | None = None
    rating: float | None = None
    created_at: UTCDatetime
    updated_at: UTCDatetime

    model_config = {"from_attributes": True}


class VendorDetail(VendorRead):
    internal_notes: str | None = None
    recent_work_orders: list[WorkOrderRead] = []
    recent_reviews: list[ReviewRead] = []


class PerformanceMetricsRead(BaseModel):
    total_jobs: int
    completed_jobs: int
    cancelled_jobs: int
    avg_completion_time: int | None = None
    avg_response_time: int | None = None
    on_time_rate: float | None = None
    quality_score: float | None = None
    rating: float | None = None
