"""Abstract channel adapter — disabled skip, timeout and internal retry."""

from __future__ import annotations

import abc
import asyncio

import structlog

from src.channels.exceptions import (
    ChannelError,
    ChannelRejectedError,
    ChannelTimeoutError,
    ChannelTransportError,
)
from src.core.types import AlertInput, ChannelName, ChannelResult

logger = structlog.get_logger(__name__)


class ChannelAdapter(abc.ABC):
    """Base class for alert delivery channels.

    Subclasses implement ``_send()``: one raw delivery attempt that either
    returns a ``ChannelResult`` or raises a ``ChannelError``. The base class
    owns the disabled-channel skip, the per-attempt timeout and the
    channel-local retry loop, and guarantees ``deliver()`` never raises.

    Timeouts and transport errors are retried up to ``retry_attempts``
    extra times. Rejections are final.
    """

    def __init__(
        self,
        name: ChannelName,
        *,
        enabled: bool = True,
        timeout_secs: float = 30.0,
        retry_attempts: int = 3,
    ) -> None:
        self._name = name
        self._enabled = enabled
        self._timeout_secs = timeout_secs
        self._retry_attempts = max(0, retry_attempts)

    @property
    def name(self) -> ChannelName:
        return self._name

    @property
    def enabled(self) -> bool:
        return self._enabled

    @abc.abstractmethod
    async def _send(self, alert: AlertInput) -> ChannelResult:
        """Perform a single delivery attempt."""

    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""

    async def deliver(self, alert: AlertInput) -> ChannelResult:
        """Deliver *alert*, returning a result for every failure mode."""
        if not self._enabled:
            logger.info("channel_skipped", channel=self._name, alert_id=alert.alert_id)
            return ChannelResult.skipped_for(alert.alert_id, f"{self._name} disabled")

        attempts = self._retry_attempts + 1
        last_error: ChannelError | None = None

        for attempt in range(1, attempts + 1):
            try:
                return await self._attempt(alert)
            except ChannelRejectedError as exc:
                last_error = exc
                break
            except (ChannelTimeoutError, ChannelTransportError) as exc:
                last_error = exc
                logger.warning(
                    "channel_attempt_failed",
                    channel=self._name,
                    alert_id=alert.alert_id,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=str(exc),
                )
            except Exception as exc:
                logger.exception(
                    "channel_unexpected_error",
                    channel=self._name,
                    alert_id=alert.alert_id,
                )
                last_error = ChannelError(f"Error: {exc}")
                break

        message = str(last_error) if last_error else "Unknown channel error"
        logger.error(
            "channel_delivery_failed",
            channel=self._name,
            alert_id=alert.alert_id,
            error=message,
        )
        return ChannelResult.failure(message)

    async def _attempt(self, alert: AlertInput) -> ChannelResult:
        try:
            return await asyncio.wait_for(self._send(alert), timeout=self._timeout_secs)
        except TimeoutError as exc:
            raise ChannelTimeoutError(
                f"{self._name} timed out after {self._timeout_secs:g}s"
            ) from exc
