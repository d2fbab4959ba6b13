"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, SecretStr

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class CellBroadcastConfig(BaseModel):
    """Cell Broadcast channel — telecom operator geographic alerting."""

    enabled: bool = True
    timeout_secs: float = 30.0
    retry_attempts: int = 3
    simulate: bool = True
    latency_secs: float = 1.0
    success_rate: float = 0.95
    api_url: str = "http://localhost:9091/api/cell-broadcast"
    api_key: SecretStr = SecretStr("")


class PushConfig(BaseModel):
    """Push notification channel (FCM topic messaging)."""

    enabled: bool = True
    timeout_secs: float = 30.0
    retry_attempts: int = 3
    simulate: bool = True
    latency_secs: float = 0.5
    success_rate: float = 0.98
    fcm_url: str = "https://fcm.googleapis.com/v1/projects/alerts/messages:send"
    access_token: SecretStr = SecretStr("")
    topic: str = "alerts"


class ChannelsConfig(BaseModel):
    """Container for both delivery channel configurations."""

    cell_broadcast: CellBroadcastConfig = CellBroadcastConfig()
    push: PushConfig = PushConfig()


class RetryConfig(BaseModel):
    """Record-level retry of failed channels."""

    enabled: bool = False
    interval_secs: float = 300.0
    max_retries: int = 3


class BusConfig(BaseModel):
    """Message-bus topics for inbound alerts and outbound result events."""

    alerts_topic: str = "alerts.new"
    published_topic: str = "alerts.published"
    failed_topic: str = "alerts.failed"
    result_webhook_url: str = ""


class ApiConfig(BaseModel):
    """Query API server configuration."""

    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 8084
    stats_window_hours: int = 24


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    channels: ChannelsConfig = ChannelsConfig()
    retry: RetryConfig = RetryConfig()
    bus: BusConfig = BusConfig()
    api: ApiConfig = ApiConfig()
    logging: LoggingConfig = LoggingConfig()


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
