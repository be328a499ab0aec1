"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


class AIConfig(BaseSettings):
    confidence_threshold: float = 0.75
    request_timeout: float = 30.0


class ServicesConfig(BaseSettings):
    computer_vision: str = "http://localhost:8000"
    communication: str = "http://localhost:3002"
    knowledge: str = "http://localhost:3004"


class StorageConfig(BaseSettings):
    base_dir: str = "data/objects"
    bucket: str = "damage-tracking"
    public_base_url: str = "http://localhost:3005/files"
    signing_secret: str = "change-me"
    max_image_dimension: int = 1920
    jpeg_quality: int = 85
    signed_url_ttl: int = 3600


class UploadConfig(BaseSettings):
    max_file_size: int = 10 * 1024 * 1024
    allowed_file_types: list[str] = Field(default_factory=lambda: [
        "image/jpeg", "image/png", "image/webp", "application/pdf",
    ])


class EventsConfig(BaseSettings):
    routing_prefix: str = "damage-tracking"


class ReportConfig(BaseSettings):
    page_width: int = 612
    page_height: int = 792
    top_margin: int = 50
    bottom_threshold: int = 100
    notes_wrap: int = 80


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/damage_tracking.db"
    environment: str = "development"
    log_level: str = "INFO"
    jwt_secret: str = "dev-secret"
    jwt_algorithm: str = "HS256"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    ai: AIConfig = Field(default_factory=AIConfig)
    services: ServicesConfig = Field(default_factory=ServicesConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _load_yaml()
    overrides = {}
    if "database" in y:
        overrides["database_url"] = y["database"].get("url")
    for key in ("environment", "log_level", "cors_origins"):
        if key in y:
            overrides[key] = y[key]
    # Environment variables win over YAML for top-level keys.
    overrides = {k: v for k, v in overrides.items() if v is not None and k.upper() not in os.environ}
    return Settings(
        ai=AIConfig(**y.get("ai", {})),
        services=ServicesConfig(**y.get("services", {})),
        storage=StorageConfig(**y.get("storage", {})),
        upload=UploadConfig(**y.get("upload", {})),
        events=EventsConfig(**y.get("events", {})),
        report=ReportConfig(**y.get("report", {})),
        **overrides,
    )
