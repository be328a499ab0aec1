from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from app.models.enums import (
    DamageType, Priority, Severity, WorkOrderStatus, can_transition,
    damage_type_from_label, severity_from_label,
)
from app.schemas import (
    DamageCreate, GeoPoint, InspectionCreate, ReviewCreate, WorkOrderCreate, WorkOrderVerify, paginate,
)


def test_inspection_create_naive_datetime_is_utc():
    body = InspectionCreate(
        property_id="p1", inspector_id="i1", inspection_type="PRE_STAY",
        scheduled_at="2024-05-01T10:00:00",
    )
    assert body.scheduled_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)


def test_inspection_create_rejects_unknown_type():
    with pytest.raises(ValidationError):
        InspectionCreate(
            property_id="p1", inspector_id="i1", inspection_type="WALKTHROUGH",
            scheduled_at="2024-05-01T10:00:00Z",
        )


def test_damage_create_defaults():
    body = DamageCreate(
        inspection_id="x", property_id="p1", room="Kitchen", damage_type="STAIN", severity="MINOR",
    )
    assert body.photos == []
    assert body.responsible_party is None


def test_damage_create_rejects_negative_cost():
    with pytest.raises(ValidationError):
        DamageCreate(
            inspection_id="x", property_id="p1", room="Kitchen", damage_type="STAIN",
            severity="MINOR", estimated_cost_manual=-1,
        )


def test_work_order_create_default_priority():
    body = WorkOrderCreate(property_id="p1", work_order_type="REPAIR", category="PLUMBING", title="Fix leak")
    assert body.priority == Priority.NORMAL


@pytest.mark.parametrize("rating", [0, 6])
def test_verify_ratings_bounded(rating):
    with pytest.raises(ValidationError):
        WorkOrderVerify(quality_rating=rating, vendor_rating=3)


def test_review_sub_ratings_bounded():
    with pytest.raises(ValidationError):
        ReviewCreate(rating=4, timeliness_rating=7)


def test_geo_point_bounds():
    with pytest.raises(ValidationError):
        GeoPoint(latitude=91, longitude=0)


def test_paginate_total_pages():
    page = paginate([1, 2], total=41, page=3, limit=20)
    assert page["pagination"] == {"page": 3, "limit": 20, "total": 41, "total_pages": 3}
    assert paginate([], 0, 1, 20)["pagination"]["total_pages"] == 0


def test_work_order_transitions():
    assert can_transition(WorkOrderStatus.PENDING, WorkOrderStatus.ASSIGNED)
    assert can_transition(WorkOrderStatus.ASSIGNED, WorkOrderStatus.ASSIGNED)
    assert can_transition(WorkOrderStatus.SCHEDULED, WorkOrderStatus.COMPLETED)
    assert can_transition(WorkOrderStatus.COMPLETED, WorkOrderStatus.VERIFIED)
    assert not can_transition(WorkOrderStatus.PENDING, WorkOrderStatus.IN_PROGRESS)
    assert not can_transition(WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.SCHEDULED)
    assert not can_transition(WorkOrderStatus.COMPLETED, WorkOrderStatus.CANCELLED)
    for target in WorkOrderStatus:
        assert not can_transition(WorkOrderStatus.VERIFIED, target)
        assert not can_transition(WorkOrderStatus.CANCELLED, target)


def test_ai_label_mapping():
    assert damage_type_from_label("water_damage") == DamageType.WATER_DAMAGE
    assert damage_type_from_label("smudge") == DamageType.OTHER
    assert damage_type_from_label(None) == DamageType.OTHER
    assert severity_from_label("severe") == Severity.CRITICAL
    assert severity_from_label("minor") == Severity.MINOR
    assert severity_from_label("unknown") == Severity.MODERATE
    assert damage_type_from_label(7) == DamageType.OTHER
    assert severity_from_label(["major"]) == Severity.MODERATE
