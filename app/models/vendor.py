"""Vendor profile, specialty membership rows and reviews."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, Float, Integer, Boolean, ForeignKey, JSON, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, ULIDMixin
from app.models.enums import VendorStatus


class Vendor(Base, ULIDMixin):
    __tablename__ = "vendors"

    name: Mapped[str] = mapped_column(String(200))
    company: Mapped[str | None] = mapped_column(String(200), nullable=True, default=None)
    email: Mapped[str] = mapped_column(String(255))
    phone: Mapped[str] = mapped_column(String(50))
    alternate_phone: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
    # [{city, state, radius_miles}]
    service_areas: Mapped[list] = mapped_column(JSON, default=list)
    address: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)
    business_hours: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    emergency_available: Mapped[bool] = mapped_column(Boolean, default=False)
    pricing_info: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    payment_terms: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)

    license_number: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    license_state: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
    license_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    license_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    insurance_provider: Mapped[str | None] = mapped_column(String(200), nullable=True, default=None)
    insurance_policy: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    insurance_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    insurance_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    bonded_amount: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    w9_on_file: Mapped[bool] = mapped_column(Boolean, default=False)
    contract_signed: Mapped[bool] = mapped_column(Boolean, default=False)
    background_check: Mapped[bool] = mapped_column(Boolean, default=False)

    status: Mapped[str] = mapped_column(String(20), default=VendorStatus.PENDING)
    preferred_vendor: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    total_jobs: Mapped[int] = mapped_column(Integer, default=0)
    completed_jobs: Mapped[int] = mapped_column(Integer, default=0)
    cancelled_jobs: Mapped[int] = mapped_column(Integer, default=0)
    avg_completion_time: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)  # days
    avg_response_time: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)  # hours
    on_time_rate: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    on_time_jobs: Mapped[int] = mapped_column(Integer, default=0)  # jobs that contributed to on_time_rate
    quality_score: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)

    specialty_rows = relationship(
        "VendorSpecialty",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def specialties(self) -> list[str]:
        return sorted(row.category for row in self.specialty_rows)


class VendorSpecialty(Base):
    __tablename__ = "vendor_specialties"
    __table_args__ = (UniqueConstraint("vendor_id", "category"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    vendor_id: Mapped[str] = mapped_column(String(26), ForeignKey("vendors.id", ondelete="CASCADE"), index=True)
    category: Mapped[str] = mapped_column(String(20), index=True)  # WorkCategory


class VendorReview(Base, ULIDMixin):
    __tablename__ = "vendor_reviews"

    vendor_id: Mapped[str] = mapped_column(String(26), ForeignKey("vendors.id", ondelete="CASCADE"), index=True)
    work_order_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("work_orders.id", ondelete="SET NULL"), nullable=True, default=None
    )
    property_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    reviewer_id: Mapped[str] = mapped_column(String(64))
    rating: Mapped[int] = mapped_column(Integer)
    quality_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    timeliness_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    communication_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    professionalism_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    value_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    review: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    pros: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    cons: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    would_recommend: Mapped[bool] = mapped_column(Boolean, default=True)
    would_hire_again: Mapped[bool] = mapped_column(Boolean, default=True)
    photos: Mapped[list] = mapped_column(JSON, default=list)
