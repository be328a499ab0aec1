"""Client for the external computer-vision damage detection service.

Every call degrades instead of raising: detection falls back to
``NotDetected(confidence=0)``, comparison to an empty result and cost
estimation to a static table keyed by severity.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Union

import httpx

from app.config import get_settings

logger = logging.getLogger(__name__)

FALLBACK_COSTS: dict[str, float] = {
    "MINOR": 100.0,
    "MODERATE": 500.0,
    "MAJOR": 2000.0,
    "CRITICAL": 5000.0,
}
FALLBACK_COST_DEFAULT = 500.0
FALLBACK_COST_CONFIDENCE = 0.3


@dataclass
class Detected:
    confidence: float
    damage_type: str | None = None
    severity: str | None = None
    bounding_box: dict | None = None
    metadata: dict | None = None

    detected = True


@dataclass
class NotDetected:
    confidence: float = 0.0
    error: str | None = None

    detected = False


DetectionResult = Union[Detected, NotDetected]


@dataclass
class Difference:
    damage_type: str | None
    severity: str | None
    confidence: float
    bounding_box: dict | None = None


@dataclass
class ComparisonResult:
    has_changes: bool = False
    confidence: float = 0.0
    differences: list[Difference] = field(default_factory=list)


@dataclass
class CostEstimate:
    estimated_cost: float
    confidence: float
    breakdown: dict[str, float] | None = None


def fallback_cost(severity: str) -> CostEstimate:
    return CostEstimate(
        estimated_cost=FALLBACK_COSTS.get(str(severity).upper(), FALLBACK_COST_DEFAULT),
        confidence=FALLBACK_COST_CONFIDENCE,
    )


def _to_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _label(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _mapping(value: Any) -> dict | None:
    return value if isinstance(value, dict) else None


class VisionClient:
    """Thin async wrapper over the detection, comparison and cost endpoints."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        settings = get_settings()
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.services.computer_vision,
            timeout=timeout or settings.ai.request_timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def detect_damage(self, image_url: str, property_id: str, room: str) -> DetectionResult:
        payload = {
            "imageUrl": image_url,
            "propertyId": property_id,
            "room": room,
            "options": {"detectDamage": True},
        }
        try:
            resp = await self._client.post("/api/v1/detect/damage", json=payload)
            resp.raise_for_status()
            data = resp.json()
            detections = data.get("detections") or []
            if not data.get("success") or not detections:
                return NotDetected()
            best = max(detections, key=lambda d: _to_float(d.get("confidence")))
            return Detected(
                confidence=_to_float(best.get("confidence")),
                damage_type=_label(best.get("type")),
                severity=_label(best.get("severity")),
                bounding_box=_mapping(best.get("boundingBox")),
                metadata=_mapping(data.get("metadata")),
            )
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as e:
            logger.warning("Damage detection failed for %s: %s", image_url, e)
            return NotDetected(error=str(e))

    async def compare_images(self, before_url: str, after_url: str, property_id: str, room: str) -> ComparisonResult:
        payload = {
            "imageUrl": after_url,
            "propertyId": property_id,
            "room": room,
            "options": {"compareImages": True, "beforeImageUrl": before_url},
        }
        try:
            resp = await self._client.post("/api/v1/detect/compare", json=payload)
            resp.raise_for_status()
            data = resp.json()
            if not data.get("success"):
                return ComparisonResult()
            differences = [
                Difference(
                    damage_type=_label(d.get("type")),
                    severity=_label(d.get("severity")),
                    confidence=_to_float(d.get("confidence")),
                    bounding_box=_mapping(d.get("boundingBox")),
                )
                for d in data.get("detections") or []
            ]
            return ComparisonResult(
                has_changes=bool(differences),
                confidence=max((d.confidence for d in differences), default=0.0),
                differences=differences,
            )
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as e:
            logger.warning("Image comparison failed for %s -> %s: %s", before_url, after_url, e)
            return ComparisonResult()

    async def estimate_cost(self, damage_type: str, severity: str, image_url: str | None = None) -> CostEstimate:
        payload = {"damageType": str(damage_type), "severity": str(severity), "imageUrl": image_url}
        try:
            resp = await self._client.post("/api/v1/estimate/cost", json=payload)
            resp.raise_for_status()
            data = resp.json()
            return CostEstimate(
                estimated_cost=_to_float(data.get("estimatedCost")),
                confidence=_to_float(data.get("confidence")),
                breakdown=data.get("breakdown"),
            )
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as e:
            logger.warning("Cost estimation failed for %s/%s, using fallback table: %s", damage_type, severity, e)
            return fallback_cost(severity)

    async def batch_detect(self, images: list[dict], property_id: str) -> list[dict]:
        """Run detection for [{url, room}, ...] concurrently."""
        results = await asyncio.gather(*(
            self.detect_damage(img["url"], property_id, img["room"]) for img in images
        ))
        return [
            {"image_url": img["url"], "room": img["room"], "result": result}
            for img, result in zip(images, results)
        ]

    async def health_check(self) -> bool:
        try:
            resp = await self._client.get("/health", timeout=5.0)
            return resp.status_code == 200
        except httpx.HTTPError:
            return False
