"""Inspection model — one scheduled or executed walkthrough of a property."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, JSON, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, ULIDMixin
from app.models.enums import InspectionStatus


class Inspection(Base, ULIDMixin):
    __tablename__ = "inspections"

    property_id: Mapped[str] = mapped_column(String(64), index=True)
    unit_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    reservation_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    inspector_id: Mapped[str] = mapped_column(String(64), index=True)
    inspection_type: Mapped[str] = mapped_column(String(20))  # InspectionType
    status: Mapped[str] = mapped_column(String(20), default=InspectionStatus.SCHEDULED)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    # [{url, timestamp, gps?, metadata: {room, angle?, device?}}]
    photos: Mapped[list] = mapped_column(JSON, default=list)
    # room -> [{name, condition, notes?, photos?}]
    checklist: Mapped[dict] = mapped_column(JSON, default=dict)
    overall_condition: Mapped[str | None] = mapped_column(String(20), nullable=True, default=None)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    report_url: Mapped[str | None] = mapped_column(String(1024), nullable=True, default=None)
    report_generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    start_location: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    end_location: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)

    damages = relationship(
        "Damage",
        back_populates="inspection",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Damage.created_at",
    )
