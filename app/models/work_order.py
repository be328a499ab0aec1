"""Work order model: a unit of repair work assignable to a vendor."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, Float, Integer, ForeignKey, JSON, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, ULIDMixin
from app.models.enums import Priority, WorkOrderStatus


class WorkOrder(Base, ULIDMixin):
    __tablename__ = "work_orders"

    property_id: Mapped[str] = mapped_column(String(64), index=True)
    unit_id: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    damage_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("damages.id", ondelete="SET NULL"), nullable=True, default=None, index=True
    )
    work_order_type: Mapped[str] = mapped_column(String(20))  # WorkOrderType
    category: Mapped[str] = mapped_column(String(20))  # WorkCategory
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    priority: Mapped[str] = mapped_column(String(20), default=Priority.NORMAL)
    status: Mapped[str] = mapped_column(String(20), default=WorkOrderStatus.PENDING)

    vendor_id: Mapped[str | None] = mapped_column(
        String(26), ForeignKey("vendors.id", ondelete="SET NULL"), nullable=True, default=None, index=True
    )
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)

    estimated_cost: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    actual_cost: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    labor_cost: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    materials_cost: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)

    photos_before: Mapped[list] = mapped_column(JSON, default=list)
    photos_after: Mapped[list] = mapped_column(JSON, default=list)
    completion_notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    vendor_notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    verified_by: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)
    quality_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    vendor_rating: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)

    damage = relationship("Damage", lazy="selectin")
    vendor = relationship("Vendor", lazy="selectin")
