"""Domain types for alert intake, channel delivery and tracking."""

from __future__ import annotations

import datetime
from enum import StrEnum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class Severity(StrEnum):
    """Alert severity tiers used by the recipient tables."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @classmethod
    def coerce(cls, value: str) -> Severity:
        """Map free-form severity text onto a tier; unknown text is LOW."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.LOW


class ChannelName(StrEnum):
    """Delivery channels every alert is fanned out to."""

    CELL_BROADCAST = "CELL_BROADCAST"
    PUSH = "PUSH"


class ChannelStatus(StrEnum):
    """Per-channel delivery state on a tracking record."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ChannelStatus.SUCCESS,
            ChannelStatus.FAILED,
            ChannelStatus.SKIPPED,
        )


# ── Inbound ──────────────────────────────────────────────────────


class AlertInput(BaseModel):
    """A disaster alert as received from the inbound topic.

    Keys may be camelCase (as produced upstream) or snake_case. Unknown
    keys are ignored. Instances are immutable.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    alert_id: str = Field(
        validation_alias=AliasChoices("alert_id", "alertId", "id"),
    )
    severity: str
    alert_type: str
    description: str | None = None
    message: str | None = None

    # Location
    location: str | None = None
    region: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius_km: float | None = None

    # Earthquake / tsunami
    magnitude: float | None = None
    depth_km: float | None = None
    tsunami_risk_score: int | None = None

    # Flood
    station_id: str | None = None
    station_name: str | None = None
    water_level_feet: float | None = None
    flood_stage_feet: float | None = None

    # Space weather
    kp_value: float | None = None
    cme_speed: float | None = None
    cme_type: str | None = None

    detected_at: datetime.datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("detected_at", "detectedAt", "timestamp"),
    )

    @field_validator("alert_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        # Upstream sends UUIDs; identity is treated as an opaque string.
        return str(v) if v is not None and not isinstance(v, str) else v

    @field_validator("severity", "alert_type")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def severity_tier(self) -> Severity:
        return Severity.coerce(self.severity)


# ── Channel results ──────────────────────────────────────────────


class ChannelResult(BaseModel):
    """Outcome of one channel delivery attempt.

    ``success_count`` is None for channels that only report a flat
    recipient count; aggregation then counts ``recipient_count`` as
    successes.
    """

    success: bool
    message_id: str | None = None
    recipient_count: int = Field(default=0, ge=0)
    success_count: int | None = Field(default=None, ge=0)
    failure_count: int = Field(default=0, ge=0)
    message: str = ""
    skipped: bool = False

    @classmethod
    def skipped_for(cls, alert_id: str, message: str = "Channel disabled") -> ChannelResult:
        return cls(
            success=True,
            message_id=f"SKIPPED-{alert_id}",
            recipient_count=0,
            success_count=0,
            failure_count=0,
            message=message,
            skipped=True,
        )

    @classmethod
    def failure(cls, message: str) -> ChannelResult:
        return cls(
            success=False,
            recipient_count=0,
            success_count=0,
            failure_count=1,
            message=message,
        )


# ── Tracking ─────────────────────────────────────────────────────


class ChannelState(BaseModel):
    """Per-channel slice of a tracking record."""

    status: ChannelStatus = ChannelStatus.PENDING
    message_id: str | None = None
    recipient_count: int = 0


def _initial_channels() -> dict[ChannelName, ChannelState]:
    return {name: ChannelState() for name in ChannelName}


class TrackingRecord(BaseModel):
    """One record per distinct alert identity."""

    alert_id: str
    severity: str
    alert_type: str
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)
    detected_at: datetime.datetime
    published_at: datetime.datetime = Field(default_factory=_utcnow)

    channels: dict[ChannelName, ChannelState] = Field(default_factory=_initial_channels)

    recipient_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    error_message: str | None = None

    retry_count: int = 0
    last_retry_at: datetime.datetime | None = None

    @classmethod
    def from_alert(cls, alert: AlertInput, message: str) -> TrackingRecord:
        """New record with every channel IN_PROGRESS."""
        return cls(
            alert_id=alert.alert_id,
            severity=alert.severity,
            alert_type=alert.alert_type,
            message=message,
            details=alert.model_dump(mode="json", exclude_none=True),
            detected_at=alert.detected_at,
            channels={
                name: ChannelState(status=ChannelStatus.IN_PROGRESS)
                for name in ChannelName
            },
        )

    def status_of(self, channel: ChannelName) -> ChannelStatus:
        return self.channels[channel].status

    @property
    def cell_broadcast_status(self) -> ChannelStatus:
        return self.status_of(ChannelName.CELL_BROADCAST)

    @property
    def fcm_status(self) -> ChannelStatus:
        return self.status_of(ChannelName.PUSH)

    @property
    def failed_channels(self) -> list[ChannelName]:
        return [
            name
            for name, state in self.channels.items()
            if state.status == ChannelStatus.FAILED
        ]

    @property
    def has_failure(self) -> bool:
        return bool(self.failed_channels)

    @property
    def settled(self) -> bool:
        """Whether every channel has reached a terminal status."""
        return all(s.status.is_terminal for s in self.channels.values())

    def to_alert(self) -> AlertInput:
        """Rebuild the inbound alert for re-driving a channel."""
        return AlertInput.model_validate(self.details)


class ResultEvent(BaseModel):
    """Outbound summary emitted once per channel completion."""

    alert_id: str
    severity: str
    alert_type: str
    message: str
    detected_at: datetime.datetime
    channel: ChannelName
    success: bool
    topic: str = ""
