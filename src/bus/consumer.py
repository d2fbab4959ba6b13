"""Inbound alert consumer — parses bus payloads and hands them to dispatch."""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import ValidationError

from src.core.config import BusConfig
from src.core.logging import bind_alert, clear_alert
from src.core.types import AlertInput
from src.dispatch.dispatcher import AlertDispatcher
from src.dispatch.exceptions import InvalidAlertError
from src.tracking.exceptions import TrackingStoreError

logger = structlog.get_logger(__name__)


def parse_alert(payload: bytes | str | dict[str, Any]) -> AlertInput:
    """Decode an inbound payload into an ``AlertInput``.

    Raises:
        InvalidAlertError: not JSON, not an object, or missing required fields.
    """
    data: Any = payload
    if isinstance(payload, (bytes, str)):
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidAlertError(f"payload is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidAlertError(f"payload must be a JSON object, got {type(data).__name__}")

    try:
        return AlertInput.model_validate(data)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise InvalidAlertError(f"invalid alert payload: {', '.join(fields)}") from exc


class AlertConsumer:
    """Bus-facing entry point: one call per delivered message.

    Failures are logged and reported as False. There is no dead-letter
    queue; redelivery of the same alert is absorbed by dispatcher
    idempotency.
    """

    def __init__(self, dispatcher: AlertDispatcher, config: BusConfig | None = None) -> None:
        self._dispatcher = dispatcher
        self._topic = (config or BusConfig()).alerts_topic
        self._consumed = 0
        self._rejected = 0

    @property
    def topic(self) -> str:
        """Inbound topic this consumer is bound to."""
        return self._topic

    @property
    def stats(self) -> dict[str, int]:
        return {"consumed": self._consumed, "rejected": self._rejected}

    async def handle(self, payload: bytes | str | dict[str, Any]) -> bool:
        """Process one inbound message. Returns True if it was accepted
        (including duplicates, which are a successful no-op)."""
        self._consumed += 1
        try:
            alert = parse_alert(payload)
        except InvalidAlertError as exc:
            self._rejected += 1
            logger.error("alert_rejected", topic=self._topic, error=str(exc))
            return False

        bind_alert(alert.alert_id)
        try:
            logger.info(
                "alert_consumed",
                topic=self._topic,
                severity=alert.severity,
                alert_type=alert.alert_type,
            )
            await self._dispatcher.publish(alert)
            return True
        except InvalidAlertError as exc:
            self._rejected += 1
            logger.error("alert_rejected", topic=self._topic, error=str(exc))
            return False
        except TrackingStoreError:
            logger.exception("alert_processing_failed", topic=self._topic)
            return False
        finally:
            clear_alert()
