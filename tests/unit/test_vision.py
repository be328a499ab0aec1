import json

import httpx

from app.services.knowledge import PatternStore
from app.services.notifications import NotificationSender
from app.services.vision import Detected, NotDetected, VisionClient


def _client(handler) -> VisionClient:
    return VisionClient(base_url="http://cv.test", timeout=5, transport=httpx.MockTransport(handler))


async def test_detect_damage_picks_most_confident_detection():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "success": True,
            "detections": [
                {"type": "stain", "severity": "minor", "confidence": 0.6},
                {"type": "crack", "severity": "major", "confidence": 0.9, "boundingBox": {"x": 1, "y": 2}},
            ],
            "metadata": {"model": "v2"},
        })

    client = _client(handler)
    result = await client.detect_damage("http://img/1.jpg", "prop-1", "Kitchen")
    await client.aclose()

    assert seen["path"] == "/api/v1/detect/damage"
    assert seen["body"] == {
        "imageUrl": "http://img/1.jpg",
        "propertyId": "prop-1",
        "room": "Kitchen",
        "options": {"detectDamage": True},
    }
    assert isinstance(result, Detected)
    assert result.confidence == 0.9
    assert result.damage_type == "crack"
    assert result.bounding_box == {"x": 1, "y": 2}
    assert result.metadata == {"model": "v2"}


async def test_detect_damage_without_detections():
    client = _client(lambda request: httpx.Response(200, json={"success": True, "detections": []}))
    result = await client.detect_damage("u", "p", "r")
    await client.aclose()
    assert isinstance(result, NotDetected)
    assert result.confidence == 0.0


async def test_detect_damage_degrades_on_server_error():
    client = _client(lambda request: httpx.Response(500, json={"error": "boom"}))
    result = await client.detect_damage("u", "p", "r")
    await client.aclose()
    assert isinstance(result, NotDetected)
    assert result.error


async def test_compare_images_collects_differences():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["options"] == {"compareImages": True, "beforeImageUrl": "before"}
        return httpx.Response(200, json={
            "success": True,
            "detections": [
                {"type": "hole", "severity": "moderate", "confidence": 0.8},
                {"type": "dent", "severity": "minor", "confidence": 0.5},
            ],
        })

    client = _client(handler)
    result = await client.compare_images("before", "after", "p", "Hall")
    await client.aclose()
    assert result.has_changes
    assert result.confidence == 0.8
    assert [d.damage_type for d in result.differences] == ["hole", "dent"]


async def test_estimate_cost_falls_back_to_table():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler)
    estimate = await client.estimate_cost("CRACK", "MAJOR")
    await client.aclose()
    assert estimate.estimated_cost == 2000.0
    assert estimate.confidence == 0.3


async def test_estimate_cost_uses_service_value():
    client = _client(lambda request: httpx.Response(200, json={"estimatedCost": 340, "confidence": 0.7}))
    estimate = await client.estimate_cost("STAIN", "MINOR", "http://img")
    await client.aclose()
    assert estimate.estimated_cost == 340.0
    assert estimate.confidence == 0.7


async def test_batch_detect_preserves_order():
    def handler(request: httpx.Request) -> httpx.Response:
        room = json.loads(request.content)["room"]
        confidence = 0.9 if room == "Bath" else 0.0
        return httpx.Response(200, json={"success": True, "detections": [{"type": "mold", "confidence": confidence}]})

    client = _client(handler)
    results = await client.batch_detect([{"url": "a", "room": "Bath"}, {"url": "b", "room": "Den"}], "p")
    await client.aclose()
    assert [r["room"] for r in results] == ["Bath", "Den"]
    assert results[0]["result"].confidence == 0.9


async def test_notification_payload_and_failure():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(202 if len(bodies) == 1 else 503)

    sender = NotificationSender(base_url="http://comm.test", transport=httpx.MockTransport(handler))
    assert await sender.notify("damage_detected", ["owner"], {"damage_id": "d1"}) is True
    assert await sender.notify("damage_detected", ["owner"], {"damage_id": "d2"}, channels=["sms"]) is False
    await sender.aclose()

    assert bodies[0] == {
        "type": "damage_detected",
        "recipients": ["owner"],
        "data": {"damage_id": "d1"},
        "channels": ["email", "push"],
    }
    assert bodies[1]["channels"] == ["sms"]


async def test_pattern_store_posts_pattern():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(201)

    store = PatternStore(base_url="http://kb.test", transport=httpx.MockTransport(handler))
    ok = await store.store_pattern("damage_detection", {"room": "Kitchen"}, ["ai"], 0.8)
    await store.aclose()
    assert ok
    assert seen["path"] == "/api/v1/patterns"
    assert seen["body"] == {"type": "damage_detection", "pattern": {"room": "Kitchen"}, "tags": ["ai"], "importance": 0.8}


async def test_detect_damage_drops_malformed_labels():
    client = _client(lambda request: httpx.Response(200, json={
        "success": True,
        "detections": [{"confidence": 0.9, "type": 7, "severity": ["major"], "boundingBox": "0,0,4,4"}],
    }))
    result = await client.detect_damage("u", "p", "r")
    await client.aclose()
    assert isinstance(result, Detected)
    assert result.confidence == 0.9
    assert result.damage_type is None
    assert result.severity is None
    assert result.bounding_box is None


async def test_health_check():
    up = _client(lambda request: httpx.Response(200, json={"status": "ok"}))
    down = _client(lambda request: httpx.Response(503))

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    unreachable = _client(refuse)
    assert await up.health_check() is True
    assert await down.health_check() is False
    assert await unreachable.health_check() is False
    for client in (up, down, unreachable):
        await client.aclose()
