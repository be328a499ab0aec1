import pytest

from app.db import crud
from app.db.engine import create_tables, make_engine, make_session_factory
from app.services.events import DomainEvent, EventPublisher, topic_matches


@pytest.mark.parametrize("pattern,key,expected", [
    ("damage-tracking.damage.created", "damage-tracking.damage.created", True),
    ("damage-tracking.*.created", "damage-tracking.work_order.created", True),
    ("damage-tracking.*", "damage-tracking.damage.created", False),
    ("damage-tracking.#", "damage-tracking.damage.created", True),
    ("#", "damage-tracking.vendor.deleted", True),
    ("#.deleted", "damage-tracking.vendor.deleted", True),
    ("damage-tracking.damage.#", "damage-tracking.vendor.updated", False),
])
def test_topic_matches(pattern, key, expected):
    assert topic_matches(pattern, key) is expected


async def test_emit_routes_to_matching_subscribers():
    publisher = EventPublisher(routing_prefix="damage-tracking")
    damage_events, all_events = [], []
    publisher.subscribe("damage-tracking.damage.*", lambda key, event: damage_events.append(key))

    async def collect(key, event):
        all_events.append(event)

    publisher.subscribe("#", collect)

    assert await publisher.emit("damage", "created", "d1", {"inspection_id": "i1"})
    assert await publisher.emit("vendor", "updated", "v1")

    assert damage_events == ["damage-tracking.damage.created"]
    assert [e.entity_id for e in all_events] == ["d1", "v1"]
    assert all_events[0].to_dict()["eventType"] == "created"
    assert all_events[0].to_dict()["data"] == {"inspection_id": "i1"}


async def test_failing_subscriber_is_contained():
    publisher = EventPublisher(routing_prefix="damage-tracking")
    received = []

    def broken(key, event):
        raise RuntimeError("subscriber down")

    publisher.subscribe("#", broken)
    publisher.subscribe("#", lambda key, event: received.append(key))

    assert await publisher.emit("damage", "updated", "d1") is False
    assert received == ["damage-tracking.damage.updated"]


async def test_unsubscribe():
    publisher = EventPublisher(routing_prefix="x")
    received = []
    handler = lambda key, event: received.append(key)  # noqa: E731
    publisher.subscribe("#", handler)
    publisher.unsubscribe("#", handler)
    await publisher.emit("damage", "created", "d1")
    assert received == []


async def test_events_are_recorded_in_outbox():
    engine = make_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    factory = make_session_factory(engine)
    publisher = EventPublisher(session_factory=factory, routing_prefix="damage-tracking")

    event = DomainEvent(event_type="created", entity_type="work_order", entity_id="wo1", data={"vendor_id": "v1"})
    assert await publisher.publish(event)

    async with factory() as session:
        records = await crud.list_event_records(session, entity_id="wo1")
    await engine.dispose()

    assert len(records) == 1
    assert records[0].routing_key == "damage-tracking.work_order.created"
    assert records[0].payload == {"vendor_id": "v1"}


async def test_outbox_failure_does_not_raise():
    engine = make_engine("sqlite+aiosqlite:///:memory:")
    factory = make_session_factory(engine)  # tables never created
    publisher = EventPublisher(session_factory=factory, routing_prefix="damage-tracking")

    assert await publisher.emit("damage", "created", "d1") is False
    await engine.dispose()
