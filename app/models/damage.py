"""Damage model: one identified instance of property harm."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, Float, Boolean, ForeignKey, JSON, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, ULIDMixin
from app.models.enums import DamageStatus


class Damage(Base, ULIDMixin):
    __tablename__ = "damages"

    inspection_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("inspections.id", ondelete="CASCADE"), index=True
    )
    property_id: Mapped[str] = mapped_column(String(64), index=True)
    reservation_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    room: Mapped[str] = mapped_column(String(100))
    location: Mapped[str] = mapped_column(String(255), default="")
    damage_type: Mapped[str] = mapped_column(String(20))  # DamageType
    severity: Mapped[str] = mapped_column(String(20))  # Severity
    description: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(20), default=DamageStatus.REPORTED)
    responsible_party: Mapped[str | None] = mapped_column(String(20), nullable=True, default=None)

    estimated_cost_manual: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    estimated_cost_ai: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    actual_cost: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)

    before_photo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True, default=None)
    after_photo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True, default=None)
    photos: Mapped[list] = mapped_column(JSON, default=list)

    ai_detected: Mapped[bool] = mapped_column(Boolean, default=False)
    ai_confidence: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    ai_damage_type: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
    ai_severity: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
    ai_bounding_box: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    ai_metadata: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)

    disputed: Mapped[bool] = mapped_column(Boolean, default=False)
    dispute_reason: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    dispute_evidence: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    dispute_resolution: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    dispute_resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)

    inspection = relationship("Inspection", back_populates="damages")
