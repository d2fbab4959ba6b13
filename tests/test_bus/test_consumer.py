"""Tests for inbound alert parsing and AlertConsumer."""

from __future__ import annotations

import json

import pytest
import structlog
from structlog.testing import capture_logs

from src.bus.consumer import AlertConsumer, parse_alert
from src.bus.publisher import InMemoryResultPublisher
from src.core.config import BusConfig
from src.channels.base import ChannelAdapter
from src.core.types import AlertInput, ChannelName, ChannelResult, TrackingRecord
from src.dispatch.dispatcher import AlertDispatcher
from src.dispatch.exceptions import InvalidAlertError
from src.tracking.exceptions import TrackingStoreError
from src.tracking.store import InMemoryTrackingStore


def _payload(**kw: object) -> dict[str, object]:
    defaults: dict[str, object] = {
        "alertId": "eq-001",
        "severity": "HIGH",
        "alertType": "EARTHQUAKE",
        "magnitude": 5.0,
        "location": "California",
        "detectedAt": "2026-03-01T12:00:00Z",
    }
    defaults.update(kw)
    return defaults


class _OkChannel(ChannelAdapter):
    def __init__(self, name: ChannelName) -> None:
        super().__init__(name, retry_attempts=0)
        self.sent: list[AlertInput] = []

    async def _send(self, alert: AlertInput) -> ChannelResult:
        self.sent.append(alert)
        return ChannelResult(success=True, message_id=f"{self.name}-1", recipient_count=1)


class _BrokenInsertStore(InMemoryTrackingStore):
    async def insert_if_absent(self, record: TrackingRecord) -> bool:
        raise TrackingStoreError("connection refused")


def _consumer(
    store: InMemoryTrackingStore | None = None,
    config: BusConfig | None = None,
) -> tuple[AlertConsumer, AlertDispatcher, _OkChannel]:
    cb = _OkChannel(ChannelName.CELL_BROADCAST)
    push = _OkChannel(ChannelName.PUSH)
    dispatcher = AlertDispatcher(
        {ChannelName.CELL_BROADCAST: cb, ChannelName.PUSH: push},
        InMemoryResultPublisher(),
        store=store if store is not None else InMemoryTrackingStore(),
    )
    return AlertConsumer(dispatcher, config), dispatcher, cb


class TestParseAlert:
    def test_from_bytes(self) -> None:
        alert = parse_alert(json.dumps(_payload()).encode())
        assert alert.alert_id == "eq-001"
        assert alert.magnitude == 5.0

    def test_from_str_and_dict(self) -> None:
        assert parse_alert(json.dumps(_payload())).alert_type == "EARTHQUAKE"
        assert parse_alert(_payload()).severity == "HIGH"

    def test_invalid_json(self) -> None:
        with pytest.raises(InvalidAlertError, match="not valid JSON"):
            parse_alert(b"{not json")

    def test_not_an_object(self) -> None:
        with pytest.raises(InvalidAlertError, match="JSON object"):
            parse_alert("[1, 2]")

    def test_missing_fields_named(self) -> None:
        payload = _payload()
        del payload["alertType"]
        with pytest.raises(InvalidAlertError, match="alertType"):
            parse_alert(payload)


class TestAlertConsumer:
    async def test_accepts_and_dispatches(self) -> None:
        consumer, dispatcher, cb = _consumer()
        assert await consumer.handle(json.dumps(_payload())) is True
        await dispatcher.wait_idle()
        assert len(cb.sent) == 1
        assert consumer.stats == {"consumed": 1, "rejected": 0}

    async def test_duplicate_is_accepted_noop(self) -> None:
        consumer, dispatcher, cb = _consumer()
        assert await consumer.handle(_payload()) is True
        assert await consumer.handle(_payload()) is True
        await dispatcher.wait_idle()
        assert len(cb.sent) == 1

    async def test_malformed_rejected(self) -> None:
        consumer, _, cb = _consumer()
        assert await consumer.handle(b"garbage") is False
        assert consumer.stats == {"consumed": 1, "rejected": 1}
        assert cb.sent == []

    async def test_blank_identity_rejected(self) -> None:
        consumer, dispatcher, _ = _consumer()
        assert await consumer.handle(_payload(alertId=" ")) is False
        assert consumer.stats["rejected"] == 1
        assert await dispatcher.store.all() == []

    async def test_store_failure_reported(self) -> None:
        consumer, _, cb = _consumer(store=_BrokenInsertStore())
        assert await consumer.handle(_payload()) is False
        assert cb.sent == []

    async def test_alert_context_cleared(self) -> None:
        consumer, dispatcher, _ = _consumer()
        await consumer.handle(_payload())
        await dispatcher.wait_idle()
        assert "alert_id" not in structlog.contextvars.get_contextvars()

    async def test_logs_carry_inbound_topic(self) -> None:
        consumer, dispatcher, _ = _consumer(config=BusConfig(alerts_topic="disaster.alerts"))
        assert consumer.topic == "disaster.alerts"

        with capture_logs() as logs:
            await consumer.handle(_payload())
            await consumer.handle(b"garbage")
        await dispatcher.wait_idle()

        consumed = [e for e in logs if e["event"] == "alert_consumed"]
        rejected = [e for e in logs if e["event"] == "alert_rejected"]
        assert consumed[0]["topic"] == "disaster.alerts"
        assert rejected[0]["topic"] == "disaster.alerts"

    def test_default_topic(self) -> None:
        consumer, _, _ = _consumer()
        assert consumer.topic == "alerts.new"
