"""Core module — config, types, logging."""

from src.core.config import Settings, get_settings, load_settings, reset_settings
from src.core.logging import setup_logging
from src.core.types import (
    AlertInput,
    ChannelName,
    ChannelResult,
    ChannelState,
    ChannelStatus,
    ResultEvent,
    Severity,
    TrackingRecord,
)

__all__ = [
    "AlertInput",
    "ChannelName",
    "ChannelResult",
    "ChannelState",
    "ChannelStatus",
    "ResultEvent",
    "Settings",
    "Severity",
    "TrackingRecord",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
