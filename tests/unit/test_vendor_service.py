from datetime import datetime, timezone

import pytest

from app.db import crud
from app.models.enums import VendorStatus
from app.services.vendor_service import VendorService, serves_area
from app.utils.exceptions import Conflict, NotFound, ValidationError


@pytest.fixture
def service(db, events):
    return VendorService(db, events)


async def _register(service, name="Sparky Electric", specialties=("ELECTRICAL",), **kw):
    fields = dict(
        name=name, email=f"{name.split()[0].lower()}@test.example", phone="555-0110",
        service_areas=[{"city": "Austin", "state": "TX"}],
    )
    fields.update(kw)
    return await service.create(specialties=list(specialties), **fields)


def test_serves_area_is_case_insensitive():
    vendor = type("V", (), {"service_areas": [{"city": "Austin", "state": "TX"}]})()
    assert serves_area(vendor, "austin", None)
    assert serves_area(vendor, None, "tx")
    assert not serves_area(vendor, "Dallas", "TX")
    assert serves_area(vendor, None, None)


async def test_create_starts_pending(service, events):
    vendor = await _register(service)
    assert vendor.status == VendorStatus.PENDING
    assert vendor.specialties == ["ELECTRICAL"]
    assert vendor.total_jobs == 0
    assert vendor.rating is None
    assert events.received[-1][0] == "damage-tracking.vendor.created"


async def test_activate_suspend_and_notes(service):
    vendor = await _register(service, internal_notes="Slow to invoice")
    active = await service.activate(vendor.id)
    assert active.status == VendorStatus.ACTIVE

    suspended = await service.suspend(vendor.id, "No-show twice")
    assert suspended.status == VendorStatus.SUSPENDED
    assert suspended.internal_notes == "Slow to invoice\nSuspended: No-show twice"


async def test_verify_license_and_insurance(service):
    vendor = await _register(service)
    expiry = datetime(2026, 12, 31, tzinfo=timezone.utc)

    assert (await service.verify_license(vendor.id, True)).license_verified is True
    insured = await service.verify_insurance(vendor.id, True, expiry)
    assert insured.insurance_verified is True
    assert insured.insurance_expiry.date() == expiry.date()


async def test_update_replaces_specialties(service):
    vendor = await _register(service, specialties=["ELECTRICAL", "HVAC"])
    updated = await service.update(vendor.id, {"specialties": ["HVAC", "APPLIANCE"], "phone": "555-9999"})
    assert updated.specialties == ["APPLIANCE", "HVAC"]
    assert updated.phone == "555-9999"


async def test_list_filters_by_area_and_paginates(service):
    for i in range(3):
        await _register(service, name=f"Austin {i} Co")
    await _register(service, name="Dallas Co", service_areas=[{"city": "Dallas", "state": "TX"}])

    items, total = await service.list(city="Austin", page=1, limit=2)
    assert total == 3
    assert len(items) == 2

    _, total = await service.list(state="TX")
    assert total == 4


async def test_add_review_recomputes_mean(service):
    vendor = await _register(service)
    await service.add_review(vendor.id, reviewer_id="pm-1", rating=5, quality_rating=5)
    await service.add_review(vendor.id, reviewer_id="pm-2", rating=3, quality_rating=4, review="Okay")

    refreshed = await service.get(vendor.id)
    assert refreshed.rating == 4.0
    assert refreshed.quality_score == 4.5

    reviews, total = await service.get_reviews(vendor.id, min_rating=4)
    assert total == 1
    assert reviews[0].reviewer_id == "pm-1"


@pytest.mark.parametrize("rating", [0, 6])
async def test_add_review_rejects_out_of_range_without_side_effects(service, rating):
    vendor = await _register(service)
    with pytest.raises(ValidationError):
        await service.add_review(vendor.id, reviewer_id="pm-1", rating=rating)

    _, total = await service.get_reviews(vendor.id)
    assert total == 0
    assert (await service.get(vendor.id)).rating is None


async def test_add_review_rejects_bad_sub_rating(service):
    vendor = await _register(service)
    with pytest.raises(ValidationError):
        await service.add_review(vendor.id, reviewer_id="pm-1", rating=4, value_rating=9)


async def test_add_review_unknown_vendor(service):
    with pytest.raises(NotFound):
        await service.add_review("01HZNOTHERE000000000000000", reviewer_id="pm-1", rating=4)


async def test_performance_metrics(service, db):
    vendor = await _register(service)
    await crud.record_vendor_completion(db, vendor.id, completion_days=3, response_hours=5, on_time=True)
    await crud.record_vendor_cancellation(db, vendor.id)

    metrics = await service.get_performance_metrics(vendor.id)
    assert metrics.total_jobs == 1
    assert metrics.completed_jobs == 1
    assert metrics.cancelled_jobs == 1
    assert metrics.avg_completion_time == 3
    assert metrics.avg_response_time == 5
    assert metrics.on_time_rate == 1.0
    assert metrics.to_dict()["rating"] is None


async def test_search_by_specialty_only_active_in_area(service):
    a = await _register(service, name="Alpha Electric")
    b = await _register(service, name="Bravo Electric", emergency_available=True)
    c = await _register(service, name="Charlie Electric", service_areas=[{"city": "Dallas", "state": "TX"}])
    await _register(service, name="Delta Electric")  # stays PENDING
    for vendor in (a, b, c):
        await service.activate(vendor.id)

    found = await service.search_by_specialty("ELECTRICAL", city="Austin")
    assert {v.name for v in found} == {"Alpha Electric", "Bravo Electric"}

    found = await service.search_by_specialty("ELECTRICAL", emergency_only=True)
    assert [v.name for v in found] == ["Bravo Electric"]


async def test_delete_blocked_by_active_work_orders(service, db):
    vendor = await _register(service)
    wo = await crud.create_work_order(
        db, property_id="prop-1", work_order_type="REPAIR", category="ELECTRICAL", title="Outlet",
        description="", priority="HIGH", status="ASSIGNED", vendor_id=vendor.id,
    )
    with pytest.raises(Conflict):
        await service.delete(vendor.id)
    assert await service.get(vendor.id)

    await crud.update_work_order(db, wo, status="COMPLETED")
    await service.delete(vendor.id)
    with pytest.raises(NotFound):
        await service.get(vendor.id)


async def test_update_rejects_null_for_required_fields(service):
    vendor = await _register(service)
    with pytest.raises(ValidationError):
        await service.update(vendor.id, {"name": None})
    with pytest.raises(ValidationError):
        await service.update(vendor.id, {"specialties": None})

    refreshed = await service.get(vendor.id)
    assert refreshed.name == "Sparky Electric"
    assert refreshed.specialties == ["ELECTRICAL"]
