from datetime import datetime, timedelta, timezone

from app.db import crud
from app.models.enums import Priority, WorkOrderStatus


async def _inspection(db, property_id="prop-1", **kw):
    fields = dict(
        property_id=property_id,
        inspector_id="insp-1",
        inspection_type="POST_CHECKOUT",
        scheduled_at=datetime(2024, 5, 1, 10, tzinfo=timezone.utc),
        status="SCHEDULED",
    )
    fields.update(kw)
    return await crud.create_inspection(db, **fields)


async def _vendor(db, name="Fixit Co", specialties=("PLUMBING",), **kw):
    fields = dict(name=name, email=f"{name.lower().replace(' ', '')}@example.com", phone="555-0100", status="ACTIVE")
    fields.update(kw)
    return await crud.create_vendor(db, specialties=list(specialties), **fields)


async def _work_order(db, title, priority="NORMAL", scheduled_at=None, **kw):
    return await crud.create_work_order(
        db,
        property_id="prop-1",
        work_order_type="REPAIR",
        category="GENERAL",
        title=title,
        description="",
        priority=priority,
        status=kw.pop("status", "PENDING"),
        scheduled_at=scheduled_at,
        **kw,
    )


async def test_create_and_get_inspection(db):
    inspection = await _inspection(db)
    assert len(inspection.id) == 26

    fetched = await crud.get_inspection(db, inspection.id)
    assert fetched is not None
    assert fetched.property_id == "prop-1"
    assert fetched.photos == []
    assert fetched.damages == []


async def test_list_inspections_filters_and_paginates(db):
    for day in range(1, 6):
        await _inspection(db, scheduled_at=datetime(2024, 5, day, tzinfo=timezone.utc))
    await _inspection(db, property_id="prop-2")

    items, total = await crud.list_inspections(db, property_id="prop-1", page=1, limit=2)
    assert total == 5
    assert len(items) == 2
    # Newest scheduled first
    assert items[0].scheduled_at.day == 5

    items, total = await crud.list_inspections(
        db,
        start_date=datetime(2024, 5, 2, tzinfo=timezone.utc),
        end_date=datetime(2024, 5, 4, tzinfo=timezone.utc),
    )
    assert total == 3


async def test_deleting_inspection_removes_its_damages(db):
    inspection = await _inspection(db)
    damage = await crud.create_damage(
        db, inspection_id=inspection.id, property_id="prop-1", room="Kitchen", location="Counter",
        damage_type="STAIN", severity="MINOR", description="Wine stain", status="REPORTED",
    )
    await crud.delete_inspection(db, inspection)
    assert await crud.get_damage(db, damage.id) is None


async def test_list_damages_by_severity_and_ai_flag(db):
    inspection = await _inspection(db)
    for severity, ai in [("MINOR", False), ("MAJOR", True), ("MAJOR", False)]:
        await crud.create_damage(
            db, inspection_id=inspection.id, property_id="prop-1", room="Bath", location="Floor",
            damage_type="CRACK", severity=severity, description="", status="REPORTED", ai_detected=ai,
        )
    _, total = await crud.list_damages(db, severity="MAJOR")
    assert total == 2
    items, total = await crud.list_damages(db, severity="MAJOR", ai_detected=True)
    assert total == 1
    assert items[0].ai_detected is True


async def test_work_orders_ordered_by_priority_then_schedule(db):
    base = datetime(2024, 6, 1, tzinfo=timezone.utc)
    await _work_order(db, "low", Priority.LOW, base)
    await _work_order(db, "normal-later", Priority.NORMAL, base + timedelta(days=2))
    await _work_order(db, "normal-unscheduled", Priority.NORMAL, None)
    await _work_order(db, "normal-sooner", Priority.NORMAL, base + timedelta(days=1))
    await _work_order(db, "emergency", Priority.EMERGENCY, base + timedelta(days=5))

    items, total = await crud.list_work_orders(db)
    assert total == 5
    assert [wo.title for wo in items] == [
        "emergency", "normal-sooner", "normal-later", "normal-unscheduled", "low",
    ]


async def test_count_active_work_orders_for_vendor(db):
    vendor = await _vendor(db)
    await _work_order(db, "a", vendor_id=vendor.id, status=WorkOrderStatus.ASSIGNED)
    await _work_order(db, "b", vendor_id=vendor.id, status=WorkOrderStatus.IN_PROGRESS)
    await _work_order(db, "c", vendor_id=vendor.id, status=WorkOrderStatus.COMPLETED)
    await _work_order(db, "d", vendor_id=vendor.id, status=WorkOrderStatus.CANCELLED)

    assert await crud.count_active_work_orders_for_vendor(db, vendor.id) == 2


async def test_vendor_specialties_replace_without_duplicates(db):
    vendor = await _vendor(db, specialties=["PLUMBING", "ELECTRICAL", "PLUMBING"])
    assert vendor.specialties == ["ELECTRICAL", "PLUMBING"]

    vendor = await crud.update_vendor(db, vendor, specialties=["PLUMBING", "HVAC"])
    fetched = await crud.get_vendor(db, vendor.id)
    assert fetched.specialties == ["HVAC", "PLUMBING"]


async def test_search_vendors_by_specialty_orders_preferred_then_rating(db):
    await _vendor(db, "Alpha", rating=4.9)
    await _vendor(db, "Bravo", rating=4.0, preferred_vendor=True)
    await _vendor(db, "Charlie", rating=None)
    await _vendor(db, "Delta", rating=5.0, status="SUSPENDED")
    await _vendor(db, "Echo", specialties=["HVAC"], rating=5.0)

    vendors = await crud.search_vendors_by_specialty(db, "PLUMBING")
    assert [v.name for v in vendors] == ["Bravo", "Alpha", "Charlie"]

    vendors = await crud.search_vendors_by_specialty(db, "PLUMBING", min_rating=4.5)
    assert [v.name for v in vendors] == ["Alpha"]


async def test_record_vendor_completion_merges_running_means(db):
    vendor = await _vendor(db)
    await crud.record_vendor_completion(db, vendor.id, completion_days=4, response_hours=10, on_time=True)
    await crud.record_vendor_completion(db, vendor.id, completion_days=2, response_hours=2, on_time=False)

    fetched = await crud.get_vendor(db, vendor.id)
    assert fetched.total_jobs == 2
    assert fetched.completed_jobs == 2
    assert fetched.avg_completion_time == 3
    assert fetched.avg_response_time == 6
    assert fetched.on_time_rate == 0.5


async def test_recompute_vendor_rating_is_mean_of_reviews(db):
    vendor = await _vendor(db)
    for rating, quality in [(5, 4), (4, None), (3, 2)]:
        await crud.create_vendor_review(
            db, vendor_id=vendor.id, reviewer_id="pm-1", rating=rating, quality_rating=quality,
        )
    await crud.recompute_vendor_rating(db, vendor.id)

    fetched = await crud.get_vendor(db, vendor.id)
    assert fetched.rating == 4.0
    assert fetched.quality_score == 3.0


async def test_event_records_purge(db):
    old = datetime.now(timezone.utc) - timedelta(days=10)
    await crud.create_event_record(
        db, routing_key="damage-tracking.damage.created", event_type="created",
        entity_type="damage", entity_id="d1", payload={}, timestamp=old,
    )
    await crud.create_event_record(
        db, routing_key="damage-tracking.damage.updated", event_type="updated",
        entity_type="damage", entity_id="d1", payload={"fields": ["status"]},
    )
    assert len(await crud.list_event_records(db, entity_id="d1")) == 2

    removed = await crud.purge_event_records(db, datetime.now(timezone.utc) - timedelta(days=1))
    assert removed == 1
    remaining = await crud.list_event_records(db)
    assert [r.event_type for r in remaining] == ["updated"]


async def test_on_time_rate_counts_only_scheduled_jobs(db):
    vendor = await _vendor(db)
    await crud.record_vendor_completion(db, vendor.id, on_time=True)
    await crud.record_vendor_completion(db, vendor.id, completion_days=1)
    await crud.record_vendor_completion(db, vendor.id, on_time=False)

    fetched = await crud.get_vendor(db, vendor.id)
    assert fetched.completed_jobs == 3
    assert fetched.on_time_jobs == 2
    assert fetched.on_time_rate == 0.5
