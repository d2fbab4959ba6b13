"""AlertDispatcher — idempotent intake and concurrent channel fan-out."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping

import structlog

from src.bus.publisher import ResultPublisher
from src.channels.base import ChannelAdapter
from src.core.types import AlertInput, ChannelName, TrackingRecord
from src.dispatch.aggregator import ResultAggregator
from src.dispatch.exceptions import InvalidAlertError
from src.dispatch.messages import render_message
from src.tracking.locks import RecordLocks
from src.tracking.store import InMemoryTrackingStore, TrackingStore

logger = structlog.get_logger(__name__)


def validate_alert(alert: AlertInput) -> None:
    """Raise ``InvalidAlertError`` unless identity, severity and type are set."""
    if not alert.alert_id or not alert.alert_id.strip():
        raise InvalidAlertError("alert identity must be non-empty")
    if not alert.severity:
        raise InvalidAlertError(f"alert {alert.alert_id}: severity is required")
    if not alert.alert_type:
        raise InvalidAlertError(f"alert {alert.alert_id}: alert type is required")


class AlertDispatcher:
    """Accepts each alert identity once and fans it out to every channel.

    ``publish()`` returns as soon as the tracking record is written and the
    channel tasks are launched; each task's completion is merged by the
    ``ResultAggregator`` independently, in whatever order they finish.

    The tracking store is optional. Without one, records live in a
    process-local in-memory store: idempotency and retries still work for
    the life of the process but nothing survives a restart.

    Usage::

        dispatcher = AlertDispatcher(channels, publisher, store=store)
        await dispatcher.publish(alert)
        ...
        await dispatcher.close()
    """

    def __init__(
        self,
        channels: Mapping[ChannelName, ChannelAdapter],
        publisher: ResultPublisher,
        store: TrackingStore | None = None,
        locks: RecordLocks | None = None,
    ) -> None:
        if store is None:
            logger.warning("tracking_store_absent", fallback="in_memory")
            store = InMemoryTrackingStore()
            self._persistent = False
        else:
            self._persistent = True

        self._channels = dict(channels)
        self._store = store
        self._locks = locks or RecordLocks()
        self._publisher = publisher
        self._aggregator = ResultAggregator(self._store, self._locks, publisher)
        self._tasks: set[asyncio.Task[None]] = set()

        self._accepted = 0
        self._duplicates = 0

    # ── Properties ───────────────────────────────────────────────

    @property
    def store(self) -> TrackingStore:
        return self._store

    @property
    def locks(self) -> RecordLocks:
        return self._locks

    @property
    def aggregator(self) -> ResultAggregator:
        return self._aggregator

    @property
    def persistent(self) -> bool:
        """Whether an external tracking store was supplied."""
        return self._persistent

    @property
    def in_flight(self) -> int:
        """Number of channel deliveries not yet merged."""
        return len(self._tasks)

    @property
    def stats(self) -> dict[str, int]:
        return {
            "accepted": self._accepted,
            "duplicates": self._duplicates,
            "in_flight": self.in_flight,
            **self._aggregator.stats,
        }

    # ── Intake ───────────────────────────────────────────────────

    async def publish(self, alert: AlertInput) -> bool:
        """Track *alert* and launch delivery on every channel.

        Returns False if the identity was already tracked (no new work).

        Raises:
            InvalidAlertError: the alert is malformed; nothing was written.
            TrackingStoreError: the initial record could not be written.
        """
        validate_alert(alert)
        logger.info(
            "alert_publishing",
            alert_id=alert.alert_id,
            severity=alert.severity,
            alert_type=alert.alert_type,
        )

        message = render_message(alert)
        rendered = alert.model_copy(update={"message": message})
        record = TrackingRecord.from_alert(rendered, message)

        if not await self._store.insert_if_absent(record):
            self._duplicates += 1
            logger.warning("alert_duplicate_skipped", alert_id=alert.alert_id)
            return False

        self._accepted += 1
        for channel in self._channels:
            self.launch(rendered, channel)

        logger.info(
            "alert_publish_initiated",
            alert_id=alert.alert_id,
            message=message,
            channels=[str(c) for c in self._channels],
        )
        return True

    # ── Channel tasks ────────────────────────────────────────────

    def launch(self, alert: AlertInput, channel: ChannelName) -> asyncio.Task[None]:
        """Start delivery of *alert* on *channel* without waiting for it."""
        task = asyncio.create_task(
            self._deliver_and_merge(alert, channel),
            name=f"deliver-{channel}-{alert.alert_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver_and_merge(self, alert: AlertInput, channel: ChannelName) -> None:
        adapter = self._channels[channel]
        result = await adapter.deliver(alert)
        try:
            await self._aggregator.merge(alert.alert_id, channel, result)
        except Exception:
            logger.exception(
                "channel_merge_error",
                alert_id=alert.alert_id,
                channel=channel,
            )

    async def wait_idle(self) -> None:
        """Wait until every launched channel delivery has been merged."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Lifecycle ────────────────────────────────────────────────

    async def close(self) -> None:
        """Let in-flight deliveries finish, then release channel resources."""
        await self.wait_idle()
        for adapter in self._channels.values():
            try:
                await adapter.close()
            except Exception:
                logger.exception("channel_close_error", channel=adapter.name)
        await self._publisher.close()
