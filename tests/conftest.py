"""Shared fixtures: in-memory database, on-disk storage and recording fakes for remote services."""

from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from PIL import Image

from app.config import StorageConfig
from app.db.engine import create_tables, make_engine, make_session_factory
from app.services.events import EventPublisher
from app.services.storage import StorageGateway
from app.services.vision import ComparisonResult, CostEstimate, NotDetected


class FakeVision:
    """Stands in for VisionClient; results are set per test."""

    def __init__(self):
        self.detection = NotDetected()
        self.comparison = ComparisonResult()
        self.cost = CostEstimate(estimated_cost=250.0, confidence=0.8)
        self.healthy = True
        self.calls: list[tuple] = []

    async def detect_damage(self, image_url, property_id, room):
        self.calls.append(("detect", image_url, property_id, room))
        return self.detection

    async def compare_images(self, before_url, after_url, property_id, room):
        self.calls.append(("compare", before_url, after_url, property_id, room))
        return self.comparison

    async def estimate_cost(self, damage_type, severity, image_url=None):
        self.calls.append(("estimate", str(damage_type), str(severity), image_url))
        return self.cost

    async def health_check(self):
        return self.healthy


class FakeNotifier:
    def __init__(self):
        self.sent: list[dict] = []

    async def notify(self, type, recipients, data, channels=None):
        self.sent.append({"type": type, "recipients": recipients, "data": data, "channels": channels})
        return True

    def types(self) -> list[str]:
        return [n["type"] for n in self.sent]


class FakePatterns:
    def __init__(self):
        self.stored: list[dict] = []

    async def store_pattern(self, pattern_type, pattern, tags, importance):
        self.stored.append({"type": pattern_type, "pattern": pattern, "tags": tags, "importance": importance})
        return True


@pytest_asyncio.fixture
async def db():
    engine = make_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    factory = make_session_factory(engine)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def storage(tmp_path):
    return StorageGateway(StorageConfig(
        base_dir=str(tmp_path / "objects"),
        bucket="test-bucket",
        public_base_url="http://files.test/files",
        signing_secret="test-secret",
        max_image_dimension=64,
    ))


@pytest.fixture
def events():
    publisher = EventPublisher(routing_prefix="damage-tracking")
    publisher.received = []
    publisher.subscribe("#", lambda key, event: publisher.received.append((key, event)))
    return publisher


@pytest.fixture
def vision():
    return FakeVision()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def patterns():
    return FakePatterns()


def make_jpeg(width: int = 32, height: int = 24, color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, "JPEG")
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_jpeg()


@pytest.fixture
def tomorrow() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)
