"""Tests for domain types — alert parsing, channel results, tracking records."""

from __future__ import annotations

import datetime
import uuid

import pytest
from pydantic import ValidationError

from src.core.types import (
    AlertInput,
    ChannelName,
    ChannelResult,
    ChannelStatus,
    Severity,
    TrackingRecord,
)


def _alert(**kw: object) -> AlertInput:
    defaults: dict[str, object] = {
        "alert_id": "eq-001",
        "severity": "HIGH",
        "alert_type": "EARTHQUAKE",
        "magnitude": 5.0,
        "location": "California",
    }
    defaults.update(kw)
    return AlertInput(**defaults)  # type: ignore[arg-type]


class TestSeverity:
    def test_known_values(self) -> None:
        assert Severity.coerce("critical") == Severity.CRITICAL
        assert Severity.coerce(" HIGH ") == Severity.HIGH

    def test_unknown_maps_to_low(self) -> None:
        assert Severity.coerce("INFO") == Severity.LOW
        assert Severity.coerce("") == Severity.LOW


class TestChannelStatus:
    def test_terminal_states(self) -> None:
        assert ChannelStatus.SUCCESS.is_terminal
        assert ChannelStatus.FAILED.is_terminal
        assert ChannelStatus.SKIPPED.is_terminal

    def test_non_terminal_states(self) -> None:
        assert not ChannelStatus.PENDING.is_terminal
        assert not ChannelStatus.IN_PROGRESS.is_terminal


class TestAlertInput:
    def test_camel_case_payload(self) -> None:
        alert = AlertInput.model_validate({
            "alertId": "a-1",
            "severity": "medium",
            "alertType": "flood",
            "waterLevelFeet": 21.5,
            "floodStageFeet": 18.0,
            "stationName": "Adyar Bridge",
        })
        assert alert.alert_id == "a-1"
        assert alert.severity == "MEDIUM"
        assert alert.alert_type == "FLOOD"
        assert alert.water_level_feet == 21.5
        assert alert.station_name == "Adyar Bridge"

    def test_id_alias_accepts_uuid(self) -> None:
        ident = uuid.uuid4()
        alert = AlertInput.model_validate({
            "id": ident,
            "severity": "LOW",
            "alertType": "SPACE_WEATHER",
        })
        assert alert.alert_id == str(ident)

    def test_unknown_fields_ignored(self) -> None:
        alert = AlertInput.model_validate({
            "alertId": "a-2",
            "severity": "LOW",
            "alertType": "CME",
            "acknowledged": True,
            "rawData": "{}",
        })
        assert alert.alert_id == "a-2"

    def test_missing_required_field(self) -> None:
        with pytest.raises(ValidationError):
            AlertInput.model_validate({"alertId": "a-3", "severity": "LOW"})

    def test_timestamp_alias(self) -> None:
        alert = AlertInput.model_validate({
            "alertId": "a-4",
            "severity": "LOW",
            "alertType": "CME",
            "timestamp": "2026-03-01T12:00:00Z",
        })
        assert alert.detected_at == datetime.datetime(2026, 3, 1, 12, tzinfo=datetime.UTC)

    def test_detected_at_defaults_to_now(self) -> None:
        before = datetime.datetime.now(datetime.UTC)
        alert = _alert()
        assert alert.detected_at >= before

    def test_frozen(self) -> None:
        alert = _alert()
        with pytest.raises(ValidationError):
            alert.severity = "LOW"  # type: ignore[misc]

    def test_severity_tier(self) -> None:
        assert _alert(severity="critical").severity_tier == Severity.CRITICAL
        assert _alert(severity="SEVERE").severity_tier == Severity.LOW


class TestChannelResult:
    def test_skipped_for(self) -> None:
        r = ChannelResult.skipped_for("eq-001")
        assert r.success is True
        assert r.skipped is True
        assert r.message_id == "SKIPPED-eq-001"
        assert r.recipient_count == 0
        assert r.failure_count == 0

    def test_failure(self) -> None:
        r = ChannelResult.failure("boom")
        assert r.success is False
        assert r.failure_count == 1
        assert r.message == "boom"
        assert r.message_id is None

    def test_negative_counts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChannelResult(success=True, recipient_count=-50)
        with pytest.raises(ValidationError):
            ChannelResult(success=True, recipient_count=10, success_count=-50)
        with pytest.raises(ValidationError):
            ChannelResult(success=False, failure_count=-1)


class TestTrackingRecord:
    def test_from_alert_all_in_progress(self) -> None:
        record = TrackingRecord.from_alert(_alert(), "msg")
        assert record.alert_id == "eq-001"
        assert record.message == "msg"
        assert record.cell_broadcast_status == ChannelStatus.IN_PROGRESS
        assert record.fcm_status == ChannelStatus.IN_PROGRESS
        assert record.retry_count == 0
        assert record.recipient_count == 0
        assert not record.settled

    def test_default_channels_pending(self) -> None:
        record = TrackingRecord(
            alert_id="x",
            severity="LOW",
            alert_type="CME",
            detected_at=datetime.datetime.now(datetime.UTC),
        )
        assert set(record.channels) == set(ChannelName)
        assert record.cell_broadcast_status == ChannelStatus.PENDING

    def test_failed_channels(self) -> None:
        record = TrackingRecord.from_alert(_alert(), "msg")
        record.channels[ChannelName.PUSH].status = ChannelStatus.FAILED
        record.channels[ChannelName.CELL_BROADCAST].status = ChannelStatus.SUCCESS
        assert record.failed_channels == [ChannelName.PUSH]
        assert record.has_failure
        assert record.settled

    def test_to_alert_round_trips_details(self) -> None:
        original = _alert(radius_km=42.0)
        record = TrackingRecord.from_alert(original, "msg")
        rebuilt = record.to_alert()
        assert rebuilt.alert_id == original.alert_id
        assert rebuilt.magnitude == 5.0
        assert rebuilt.radius_km == 42.0
        assert rebuilt.detected_at == original.detected_at
