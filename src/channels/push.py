"""Push notification channel — FCM topic messaging."""

from __future__ import annotations

import asyncio
import random
import time
from typing import Any

import aiohttp
import structlog

from src.channels.base import ChannelAdapter
from src.channels.estimator import estimate_push_recipients
from src.channels.exceptions import ChannelRejectedError, ChannelTransportError
from src.core.config import PushConfig
from src.core.types import AlertInput, ChannelName, ChannelResult, Severity

logger = structlog.get_logger(__name__)

_HIGH_PRIORITY = (Severity.CRITICAL, Severity.HIGH)


def build_push_payload(alert: AlertInput, topic: str, body: str | None = None) -> dict[str, Any]:
    """Build an FCM v1 message for *alert* addressed to *topic*."""
    severity = alert.severity
    return {
        "message": {
            "topic": topic,
            "notification": {
                "title": f"[{severity}] {alert.alert_type} Alert",
                "body": body or alert.message or alert.description or "",
            },
            "data": {
                "alertId": alert.alert_id,
                "severity": severity,
                "alertType": alert.alert_type,
                "detectedAt": alert.detected_at.isoformat(),
            },
            "android": {
                "priority": "HIGH" if alert.severity_tier in _HIGH_PRIORITY else "NORMAL",
                "notification": {
                    "sound": "default",
                    "channel_id": f"alerts_{severity.lower()}",
                },
            },
            "apns": {"payload": {"aps": {"sound": "default", "badge": 1}}},
        },
    }


def _push_success(message_id: str, recipients: int) -> ChannelResult:
    return ChannelResult(
        success=True,
        message_id=message_id,
        recipient_count=recipients,
        success_count=recipients,
        failure_count=0,
        message="FCM notification sent successfully",
    )


class SimulatedPushChannel(ChannelAdapter):
    """Stand-in for Firebase Cloud Messaging.

    A simulated failure is an invalid-token rejection and is not retried.
    """

    def __init__(self, config: PushConfig, rng: random.Random | None = None) -> None:
        super().__init__(
            ChannelName.PUSH,
            enabled=config.enabled,
            timeout_secs=config.timeout_secs,
            retry_attempts=config.retry_attempts,
        )
        self._topic = config.topic
        self._latency_secs = config.latency_secs
        self._success_rate = config.success_rate
        self._rng = rng or random.Random()

    async def _send(self, alert: AlertInput) -> ChannelResult:
        payload = build_push_payload(alert, self._topic)
        logger.info(
            "fcm_sending",
            alert_id=alert.alert_id,
            topic=self._topic,
            priority=payload["message"]["android"]["priority"],
        )
        await asyncio.sleep(self._latency_secs)

        if self._rng.random() >= self._success_rate:
            raise ChannelRejectedError("FCM error: Invalid registration token")

        message_id = f"FCM-{int(time.time() * 1000)}"
        recipients = estimate_push_recipients(alert)
        logger.info(
            "fcm_sent",
            alert_id=alert.alert_id,
            message_id=message_id,
            recipients=recipients,
        )
        return _push_success(message_id, recipients)


class FcmPushChannel(ChannelAdapter):
    """Sends topic messages through the FCM HTTP v1 API."""

    def __init__(self, config: PushConfig) -> None:
        super().__init__(
            ChannelName.PUSH,
            enabled=config.enabled,
            timeout_secs=config.timeout_secs,
            retry_attempts=config.retry_attempts,
        )
        self._url = config.fcm_url
        self._token = config.access_token.get_secret_value()
        self._topic = config.topic
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _send(self, alert: AlertInput) -> ChannelResult:
        payload = build_push_payload(alert, self._topic)
        headers = {"Authorization": f"Bearer {self._token}"}
        try:
            session = self._get_session()
            async with session.post(self._url, json=payload, headers=headers) as resp:
                if resp.status == 200:
                    data = await resp.json(content_type=None)
                    name = str((data or {}).get("name") or f"FCM-{int(time.time() * 1000)}")
                    return _push_success(name, estimate_push_recipients(alert))
                body = await resp.text()
        except aiohttp.ClientError as exc:
            raise ChannelTransportError(f"FCM error: {exc}") from exc

        if resp.status in (400, 401, 403, 404):
            raise ChannelRejectedError(f"FCM error ({resp.status}): {body[:200]}")
        raise ChannelTransportError(f"FCM error ({resp.status}): {body[:200]}")

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
