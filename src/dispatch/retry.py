"""Retry scheduler — re-drives only the channels that failed."""

from __future__ import annotations

import asyncio
import datetime

import structlog

from src.core.config import RetryConfig
from src.core.types import ChannelName, ChannelStatus, TrackingRecord
from src.dispatch.dispatcher import AlertDispatcher
from src.tracking import queries
from src.tracking.exceptions import TrackingStoreError

logger = structlog.get_logger(__name__)


class RetryScheduler:
    """Finds records with FAILED channels and retries them, up to a ceiling.

    Invoke ``retry_failed()`` on demand (operator command), or ``start()``
    a background loop that runs it every ``interval_secs``.

    Records whose ``retry_count`` has reached the ceiling are left FAILED
    and never touched again.
    """

    def __init__(
        self,
        dispatcher: AlertDispatcher,
        config: RetryConfig | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._config = config or RetryConfig()
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def retry_failed(self, max_retries: int | None = None) -> int:
        """Re-drive failed channels on every eligible record.

        Returns the number of records retried.
        """
        ceiling = self._config.max_retries if max_retries is None else max_retries
        store = self._dispatcher.store
        candidates = await queries.for_retry(store, ceiling)
        logger.info("retry_cycle_started", candidates=len(candidates), max_retries=ceiling)

        retried = 0
        for candidate in candidates:
            claimed = await self._claim(candidate.alert_id, ceiling)
            if claimed is None:
                continue
            record, channels = claimed
            alert = record.to_alert()
            for channel in channels:
                self._dispatcher.launch(alert, channel)
            retried += 1

        logger.info("retry_cycle_completed", retried=retried, max_retries=ceiling)
        return retried

    async def _claim(
        self, alert_id: str, ceiling: int
    ) -> tuple[TrackingRecord, list[ChannelName]] | None:
        """Do the retry bookkeeping for one record under its lock.

        The record is re-read because a channel may have completed since
        the query ran.
        """
        store = self._dispatcher.store
        async with self._dispatcher.locks.hold(alert_id):
            record = await store.get(alert_id)
            if record is None or record.retry_count >= ceiling:
                return None
            channels = record.failed_channels
            if not channels:
                return None

            record.retry_count += 1
            record.last_retry_at = datetime.datetime.now(datetime.UTC)
            for channel in channels:
                record.channels[channel].status = ChannelStatus.IN_PROGRESS

            try:
                await store.save(record)
            except TrackingStoreError:
                logger.exception("tracking_store_write_failed", alert_id=alert_id, stage="retry")

        logger.info(
            "alert_retrying",
            alert_id=alert_id,
            retry_count=record.retry_count,
            channels=[str(c) for c in channels],
        )
        return record, channels

    # ── Background loop ──────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("retry_scheduler_started", interval_secs=self._config.interval_secs)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("retry_scheduler_stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._config.interval_secs)
                await self.retry_failed()
            except asyncio.CancelledError:
                return
            except Exception:
                logger.exception("retry_loop_error")
