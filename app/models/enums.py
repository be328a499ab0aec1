"""Closed enumerations and lifecycle transition tables."""

from __future__ import annotations

from enum import StrEnum


class InspectionType(StrEnum):
    PRE_STAY = "PRE_STAY"
    POST_CHECKOUT = "POST_CHECKOUT"
    ROUTINE = "ROUTINE"
    INCIDENT = "INCIDENT"


class InspectionStatus(StrEnum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Condition(StrEnum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    DAMAGED = "DAMAGED"


class DamageType(StrEnum):
    SCRATCH = "SCRATCH"
    STAIN = "STAIN"
    CRACK = "CRACK"
    BURN = "BURN"
    WATER_DAMAGE = "WATER_DAMAGE"
    HOLE = "HOLE"
    BROKEN_ITEM = "BROKEN_ITEM"
    DENT = "DENT"
    MOLD = "MOLD"
    PEST = "PEST"
    OTHER = "OTHER"


class Severity(StrEnum):
    MINOR = "MINOR"
    MODERATE = "MODERATE"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"


class DamageStatus(StrEnum):
    REPORTED = "REPORTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    DISPUTED = "DISPUTED"
    APPROVED = "APPROVED"
    REPAIR_SCHEDULED = "REPAIR_SCHEDULED"
    REPAIRED = "REPAIRED"
    VERIFIED = "VERIFIED"


class ResponsibleParty(StrEnum):
    GUEST = "GUEST"
    OWNER = "OWNER"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    WEAR_AND_TEAR = "WEAR_AND_TEAR"
    UNKNOWN = "UNKNOWN"


class WorkOrderType(StrEnum):
    REPAIR = "REPAIR"
    MAINTENANCE = "MAINTENANCE"
    PREVENTIVE = "PREVENTIVE"
    EMERGENCY = "EMERGENCY"
    INSPECTION = "INSPECTION"
    CLEANING = "CLEANING"


class WorkCategory(StrEnum):
    PLUMBING = "PLUMBING"
    ELECTRICAL = "ELECTRICAL"
    HVAC = "HVAC"
    APPLIANCE = "APPLIANCE"
    CARPENTRY = "CARPENTRY"
    PAINTING = "PAINTING"
    FLOORING = "FLOORING"
    ROOFING = "ROOFING"
    LANDSCAPING = "LANDSCAPING"
    CLEANING = "CLEANING"
    PEST_CONTROL = "PEST_CONTROL"
    LOCKSMITH = "LOCKSMITH"
    GENERAL = "GENERAL"


class Priority(StrEnum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"
    EMERGENCY = "EMERGENCY"


PRIORITY_RANK: dict[Priority, int] = {p: i for i, p in enumerate(Priority)}


class WorkOrderStatus(StrEnum):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    VERIFIED = "VERIFIED"
    CANCELLED = "CANCELLED"


ACTIVE_WORK_ORDER_STATUSES = frozenset({
    WorkOrderStatus.PENDING,
    WorkOrderStatus.ASSIGNED,
    WorkOrderStatus.SCHEDULED,
    WorkOrderStatus.IN_PROGRESS,
})

WORK_ORDER_TRANSITIONS: dict[WorkOrderStatus, set[WorkOrderStatus]] = {
    WorkOrderStatus.PENDING: {
        WorkOrderStatus.ASSIGNED,
        WorkOrderStatus.SCHEDULED,
        WorkOrderStatus.CANCELLED,
    },
    WorkOrderStatus.ASSIGNED: {
        WorkOrderStatus.ASSIGNED,
        WorkOrderStatus.SCHEDULED,
        WorkOrderStatus.IN_PROGRESS,
        WorkOrderStatus.COMPLETED,
        WorkOrderStatus.CANCELLED,
    },
    WorkOrderStatus.SCHEDULED: {
        WorkOrderStatus.ASSIGNED,
        WorkOrderStatus.SCHEDULED,
        WorkOrderStatus.IN_PROGRESS,
        WorkOrderStatus.COMPLETED,
        WorkOrderStatus.CANCELLED,
    },
    WorkOrderStatus.IN_PROGRESS: {WorkOrderStatus.COMPLETED, WorkOrderStatus.CANCELLED},
    WorkOrderStatus.COMPLETED: {WorkOrderStatus.VERIFIED},
    WorkOrderStatus.VERIFIED: set(),
    WorkOrderStatus.CANCELLED: set(),
}


def can_transition(source: WorkOrderStatus, target: WorkOrderStatus) -> bool:
    return target in WORK_ORDER_TRANSITIONS.get(source, set())


class VendorStatus(StrEnum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


_AI_TYPE_LABELS: dict[str, DamageType] = {
    "stain": DamageType.STAIN,
    "hole": DamageType.HOLE,
    "crack": DamageType.CRACK,
    "burn": DamageType.BURN,
    "water_damage": DamageType.WATER_DAMAGE,
    "water": DamageType.WATER_DAMAGE,
    "broken": DamageType.BROKEN_ITEM,
    "broken_item": DamageType.BROKEN_ITEM,
    "scratch": DamageType.SCRATCH,
    "dent": DamageType.DENT,
    "mold": DamageType.MOLD,
    "pest": DamageType.PEST,
}

_AI_SEVERITY_LABELS: dict[str, Severity] = {
    "minor": Severity.MINOR,
    "moderate": Severity.MODERATE,
    "major": Severity.MAJOR,
    "critical": Severity.CRITICAL,
    "severe": Severity.CRITICAL,
}


def damage_type_from_label(label: str | None) -> DamageType:
    """Map a vision-service label onto DamageType; unknown labels become OTHER."""
    if not isinstance(label, str):
        return DamageType.OTHER
    return _AI_TYPE_LABELS.get(label.strip().lower(), DamageType.OTHER)


def severity_from_label(label: str | None) -> Severity:
    """Map a vision-service label onto Severity; unknown labels become MODERATE."""
    if not isinstance(label, str):
        return Severity.MODERATE
    return _AI_SEVERITY_LABELS.get(label.strip().lower(), Severity.MODERATE)
