"""ResultAggregator — merges channel results into tracking records."""

from __future__ import annotations

import structlog

from src.bus.publisher import ResultPublisher
from src.core.types import (
    ChannelName,
    ChannelResult,
    ChannelStatus,
    ResultEvent,
    TrackingRecord,
)
from src.tracking.exceptions import TrackingStoreError
from src.tracking.locks import RecordLocks
from src.tracking.store import TrackingStore

logger = structlog.get_logger(__name__)

ERROR_SEPARATOR = "; "


def apply_result(
    record: TrackingRecord,
    channel: ChannelName,
    result: ChannelResult,
) -> TrackingRecord:
    """Fold one channel result into *record* (in place) and return it.

    Counters only ever grow: recipients always, successes on success
    (flat-count channels count every recipient), failures on failure
    (at least one).
    """
    state = record.channels[channel]
    if result.skipped:
        state.status = ChannelStatus.SKIPPED
    elif result.success:
        state.status = ChannelStatus.SUCCESS
    else:
        state.status = ChannelStatus.FAILED

    state.message_id = result.message_id
    state.recipient_count = result.recipient_count
    record.recipient_count += result.recipient_count

    if result.success:
        successes = result.success_count
        if successes is None:
            successes = result.recipient_count
        record.success_count += successes
    else:
        record.failure_count += max(result.failure_count, 1)
        if result.message:
            record.error_message = (
                f"{record.error_message}{ERROR_SEPARATOR}{result.message}"
                if record.error_message
                else result.message
            )
    return record


class ResultAggregator:
    """Serializes channel completions per record and emits outcome events.

    Usage::

        aggregator = ResultAggregator(store, locks, publisher)
        record = await aggregator.merge(alert_id, ChannelName.PUSH, result)
    """

    def __init__(
        self,
        store: TrackingStore,
        locks: RecordLocks,
        publisher: ResultPublisher,
    ) -> None:
        self._store = store
        self._locks = locks
        self._publisher = publisher
        self._merged = 0
        self._store_failures = 0

    @property
    def stats(self) -> dict[str, int]:
        return {
            "merged": self._merged,
            "store_failures": self._store_failures,
        }

    async def merge(
        self,
        alert_id: str,
        channel: ChannelName,
        result: ChannelResult,
    ) -> TrackingRecord | None:
        """Merge *result* for *channel* into the record for *alert_id*.

        Returns the updated record, or None if the record is unknown.
        """
        async with self._locks.hold(alert_id):
            record = await self._store.get(alert_id)
            if record is None:
                logger.error(
                    "merge_record_missing",
                    alert_id=alert_id,
                    channel=channel,
                )
                return None

            apply_result(record, channel, result)
            self._merged += 1

            try:
                await self._store.save(record)
            except TrackingStoreError:
                self._store_failures += 1
                logger.exception(
                    "tracking_store_write_failed",
                    alert_id=alert_id,
                    channel=channel,
                )

            logger.info(
                "channel_result_merged",
                alert_id=alert_id,
                channel=channel,
                status=record.status_of(channel),
                recipients=record.recipient_count,
                successes=record.success_count,
                failures=record.failure_count,
            )

        await self._emit(record, channel, result.success)
        return record

    async def _emit(self, record: TrackingRecord, channel: ChannelName, success: bool) -> None:
        event = ResultEvent(
            alert_id=record.alert_id,
            severity=record.severity,
            alert_type=record.alert_type,
            message=record.message,
            detected_at=record.detected_at,
            channel=channel,
            success=success,
            topic=self._publisher.topic_for(success),
        )
        try:
            await self._publisher.publish(event)
        except Exception:
            logger.exception(
                "result_event_publish_failed",
                alert_id=record.alert_id,
                channel=channel,
                topic=event.topic,
            )
