"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.inspection import Inspection
from app.models.damage import Damage
from app.models.vendor import Vendor, VendorSpecialty, VendorReview
from app.models.work_order import WorkOrder
from app.models.event_record import EventRecord

__all__ = [
    "Base", "Inspection", "Damage", "Vendor", "VendorSpecialty",
    "VendorReview", "WorkOrder", "EventRecord",
]
