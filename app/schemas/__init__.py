"""Pydantic request/response schemas."""

from app.schemas.common import GeoPoint, Page, Pagination, paginate
from app.schemas.inspection import (
    ChecklistItem, InspectionCreate, InspectionUpdate, InspectionStart,
    InspectionComplete, InspectionRead, ReportRead,
)
from app.schemas.damage import DamageCreate, DamageUpdate, DamageRead, DisputeCreate, DisputeResolve, DetectionRead
from app.schemas.work_order import (
    WorkOrderCreate, WorkOrderUpdate, WorkOrderAssign, WorkOrderSchedule,
    WorkOrderComplete, WorkOrderVerify, WorkOrderCancel, WorkOrderRead,
)
from app.schemas.vendor import (
    ServiceArea, VendorCreate, VendorUpdate, VendorSuspend, LicenseVerify, InsuranceVerify,
    ReviewCreate, ReviewRead, VendorRead, VendorDetail, PerformanceMetricsRead,
)

__all__ = [
    "GeoPoint", "Page", "Pagination", "paginate",
    "ChecklistItem", "InspectionCreate", "InspectionUpdate", "InspectionStart",
    "InspectionComplete", "InspectionRead", "ReportRead",
    "DamageCreate", "DamageUpdate", "DamageRead", "DisputeCreate", "DisputeResolve", "DetectionRead",
    "WorkOrderCreate", "WorkOrderUpdate", "WorkOrderAssign", "WorkOrderSchedule",
    "WorkOrderComplete", "WorkOrderVerify", "WorkOrderCancel", "WorkOrderRead",
    "ServiceArea", "VendorCreate", "VendorUpdate", "VendorSuspend", "LicenseVerify", "InsuranceVerify",
    "ReviewCreate", "ReviewRead", "VendorRead", "VendorDetail", "PerformanceMetricsRead",
]
