"""Cell Broadcast channel — simulated and telecom-HTTP implementations."""

from __future__ import annotations

import asyncio
import random
import time
from typing import Any

import aiohttp
import structlog

from src.channels.base import ChannelAdapter
from src.channels.estimator import estimate_broadcast_recipients
from src.channels.exceptions import ChannelRejectedError, ChannelTransportError
from src.core.config import CellBroadcastConfig
from src.core.types import AlertInput, ChannelName, ChannelResult

logger = structlog.get_logger(__name__)


def _broadcast_success(message_id: str, recipients: int) -> ChannelResult:
    # Cell Broadcast reports reach only, with no per-recipient confirmation.
    return ChannelResult(
        success=True,
        message_id=message_id,
        recipient_count=recipients,
        message="Cell Broadcast sent successfully",
    )


class SimulatedCellBroadcastChannel(ChannelAdapter):
    """Stand-in for a telecom operator integration.

    Sleeps for ``latency_secs`` and succeeds with probability
    ``success_rate``. A simulated failure is a transport error, so the
    base class retries it.
    """

    def __init__(
        self,
        config: CellBroadcastConfig,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(
            ChannelName.CELL_BROADCAST,
            enabled=config.enabled,
            timeout_secs=config.timeout_secs,
            retry_attempts=config.retry_attempts,
        )
        self._latency_secs = config.latency_secs
        self._success_rate = config.success_rate
        self._rng = rng or random.Random()

    async def _send(self, alert: AlertInput) -> ChannelResult:
        logger.info("cell_broadcast_sending", alert_id=alert.alert_id)
        await asyncio.sleep(self._latency_secs)

        if self._rng.random() >= self._success_rate:
            raise ChannelTransportError("Telecom API error: Connection timeout")

        message_id = f"CB-{int(time.time() * 1000)}"
        recipients = estimate_broadcast_recipients(alert)
        logger.info(
            "cell_broadcast_sent",
            alert_id=alert.alert_id,
            message_id=message_id,
            recipients=recipients,
        )
        return _broadcast_success(message_id, recipients)


class HttpCellBroadcastChannel(ChannelAdapter):
    """Delivers alerts to a telecom Cell Broadcast API over HTTP."""

    def __init__(self, config: CellBroadcastConfig) -> None:
        super().__init__(
            ChannelName.CELL_BROADCAST,
            enabled=config.enabled,
            timeout_secs=config.timeout_secs,
            retry_attempts=config.retry_attempts,
        )
        self._api_url = config.api_url
        self._api_key = config.api_key.get_secret_value()
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def _build_payload(self, alert: AlertInput) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "alertId": alert.alert_id,
            "severity": alert.severity,
            "alertType": alert.alert_type,
            "text": alert.message or alert.description or "",
        }
        if alert.latitude is not None and alert.longitude is not None:
            payload["area"] = {
                "latitude": alert.latitude,
                "longitude": alert.longitude,
                "radiusKm": alert.radius_km,
            }
        return payload

    async def _send(self, alert: AlertInput) -> ChannelResult:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        try:
            session = self._get_session()
            async with session.post(
                self._api_url, json=self._build_payload(alert), headers=headers
            ) as resp:
                if 200 <= resp.status < 300:
                    data = await resp.json(content_type=None)
                    message_id = str((data or {}).get("messageId") or f"CB-{int(time.time() * 1000)}")
                    return _broadcast_success(message_id, estimate_broadcast_recipients(alert))
                body = await resp.text()
        except aiohttp.ClientError as exc:
            raise ChannelTransportError(f"Telecom API error: {exc}") from exc

        if 400 <= resp.status < 500:
            raise ChannelRejectedError(f"Telecom API rejected request ({resp.status}): {body[:200]}")
        raise ChannelTransportError(f"Telecom API error ({resp.status}): {body[:200]}")

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
