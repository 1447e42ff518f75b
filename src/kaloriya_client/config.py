"""Client configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    api_base_url: str = "http://localhost:5000"
    request_timeout_seconds: float = 10.0
    analyze_timeout_seconds: float = 30.0
    health_timeout_seconds: float = 5.0
    storage_path: Path | None = Path.home() / ".kaloriya" / "storage.json"
    auth_storage_key: str = "kaloriya-auth"
    ui_storage_key: str = "kaloriya-ui"
    embedded_init_data: str | None = None
    today_stale_seconds: int = 120
    day_stale_seconds: int = 300
    history_stale_seconds: int = 300
    stats_stale_seconds: int = 600
    activities_stale_seconds: int = 300
    catalog_stale_seconds: int = 3600
    feedback_stale_seconds: int = 120
    query_retry_attempts: int = 2
    query_retry_delay_seconds: float = 0.3
    query_gc_seconds: float = 300
    optimistic_profile_updates: bool = True
    image_max_width: int = 1024
    image_quality: int = 75
    image_compress_threshold_kb: int = 300
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="KALORIYA_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_base_url(raw: str) -> str:
    """Strip whitespace and trailing slashes from the API base URL."""
    cleaned = raw.strip().rstrip("/")
    if not cleaned:
        raise ValueError("api_base_url must not be empty")
    return cleaned
