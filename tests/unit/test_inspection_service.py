import pytest

from app.db import crud
from app.models.enums import InspectionStatus
from app.services.inspection_service import InspectionService
from app.utils.exceptions import InvalidTransition, NotFound, UpstreamUnavailable, ValidationError


@pytest.fixture
def service(db, storage, events):
    return InspectionService(db, storage, events)


async def _scheduled(service, tomorrow):
    return await service.create(
        property_id="prop-1", inspector_id="insp-1", inspection_type="POST_CHECKOUT", scheduled_at=tomorrow,
    )


async def test_create_schedules_and_emits(service, events, tomorrow):
    inspection = await _scheduled(service, tomorrow)
    assert inspection.status == InspectionStatus.SCHEDULED
    assert inspection.checklist == {}

    key, event = events.received[-1]
    assert key == "damage-tracking.inspection.created"
    assert event.entity_id == inspection.id
    assert event.data["scheduled_at"] == tomorrow.isoformat()


async def test_get_missing_raises(service):
    with pytest.raises(NotFound):
        await service.get("01HZNOTHERE000000000000000")


async def test_lifecycle_start_then_complete(service, tomorrow):
    inspection = await _scheduled(service, tomorrow)

    started = await service.start(inspection.id, {"latitude": 40.7, "longitude": -74.0})
    assert started.status == InspectionStatus.IN_PROGRESS
    assert started.started_at is not None
    assert started.start_location == {"latitude": 40.7, "longitude": -74.0}

    done = await service.complete(inspection.id, "GOOD", notes="Clean")
    assert done.status == InspectionStatus.COMPLETED
    assert done.overall_condition == "GOOD"
    assert done.notes == "Clean"
    assert done.completed_at is not None


async def test_complete_requires_in_progress(service, tomorrow):
    inspection = await _scheduled(service, tomorrow)
    with pytest.raises(InvalidTransition):
        await service.complete(inspection.id, "GOOD")


async def test_start_twice_rejected(service, tomorrow):
    inspection = await _scheduled(service, tomorrow)
    await service.start(inspection.id)
    with pytest.raises(InvalidTransition):
        await service.start(inspection.id)


async def test_add_photo_appends(service, jpeg_bytes, tomorrow):
    inspection = await _scheduled(service, tomorrow)
    await service.add_photo(inspection.id, jpeg_bytes, room="Kitchen", angle="north")
    updated = await service.add_photo(
        inspection.id, jpeg_bytes, room="Bath",
        gps={"latitude": 1.0, "longitude": 2.0, "accuracy": None}, device="iPhone",
    )

    assert len(updated.photos) == 2
    first, second = updated.photos
    assert first["metadata"] == {"room": "Kitchen", "angle": "north"}
    assert "gps" not in first
    assert second["metadata"] == {"room": "Bath", "device": "iPhone"}
    assert second["gps"]["latitude"] == 1.0
    assert second["key"].startswith(f"inspections/{inspection.id}/")

    fetched = await crud.get_inspection(service.db, inspection.id)
    assert len(fetched.photos) == 2


async def test_add_photo_rejected_after_completion(service, jpeg_bytes, tomorrow):
    inspection = await _scheduled(service, tomorrow)
    await service.start(inspection.id)
    await service.complete(inspection.id, "EXCELLENT")
    with pytest.raises(InvalidTransition):
        await service.add_photo(inspection.id, jpeg_bytes, room="Kitchen")


async def test_update_ignores_unknown_fields(service, tomorrow):
    inspection = await _scheduled(service, tomorrow)
    updated = await service.update(inspection.id, {"notes": "Key under mat", "status": "COMPLETED"})
    assert updated.notes == "Key under mat"
    assert updated.status == InspectionStatus.SCHEDULED


async def test_generate_report_uploads_pdf(service, storage, tomorrow):
    inspection = await _scheduled(service, tomorrow)
    url = await service.generate_report(inspection.id)

    assert url.endswith(f"-inspection-{inspection.id}-report.pdf")
    fetched = await service.get(inspection.id)
    assert fetched.report_url == url
    assert fetched.report_generated_at is not None
    key = url.split("/files/", 1)[1]
    assert (await storage.read(key)).startswith(b"%PDF")


async def test_delete(service, events, tomorrow):
    inspection = await _scheduled(service, tomorrow)
    await service.delete(inspection.id)
    with pytest.raises(NotFound):
        await service.get(inspection.id)
    assert events.received[-1][0] == "damage-tracking.inspection.deleted"


async def test_failed_photo_upload_leaves_photos_unchanged(service, storage, jpeg_bytes, tomorrow, monkeypatch):
    inspection = await _scheduled(service, tomorrow)
    await service.add_photo(inspection.id, jpeg_bytes, room="Kitchen")

    async def unavailable(*args, **kwargs):
        raise UpstreamUnavailable("Object store unreachable")

    monkeypatch.setattr(storage, "upload_image", unavailable)
    with pytest.raises(UpstreamUnavailable):
        await service.add_photo(inspection.id, jpeg_bytes, room="Bath")

    fetched = await service.get(inspection.id)
    assert len(fetched.photos) == 1
    assert fetched.photos[0]["metadata"]["room"] == "Kitchen"


async def test_update_rejects_null_for_required_fields(service, tomorrow):
    inspection = await _scheduled(service, tomorrow)
    with pytest.raises(ValidationError):
        await service.update(inspection.id, {"scheduled_at": None})

    updated = await service.update(inspection.id, {"notes": None, "unit_id": None})
    assert updated.scheduled_at is not None
    assert updated.notes is None
