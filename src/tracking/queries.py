"""Read-side queries over the tracking store."""

from __future__ import annotations

import datetime

from src.core.types import ChannelName, ChannelStatus, TrackingRecord
from src.tracking.store import TrackingStore


async def by_severity(store: TrackingStore, severity: str) -> list[TrackingRecord]:
    wanted = severity.strip().upper()
    return await store.query(lambda r: r.severity == wanted)


async def by_type(store: TrackingStore, alert_type: str) -> list[TrackingRecord]:
    wanted = alert_type.strip().upper()
    return await store.query(lambda r: r.alert_type == wanted)


async def in_time_range(
    store: TrackingStore,
    start: datetime.datetime,
    end: datetime.datetime,
) -> list[TrackingRecord]:
    """Records whose publish started within [start, end]."""
    return await store.query(lambda r: start <= r.published_at <= end)


async def failed(store: TrackingStore) -> list[TrackingRecord]:
    """Records with at least one channel currently FAILED."""
    return await store.query(lambda r: r.has_failure)


async def for_retry(store: TrackingStore, max_retries: int) -> list[TrackingRecord]:
    """Failed records that have not yet reached the retry ceiling."""
    return await store.query(lambda r: r.has_failure and r.retry_count < max_retries)


def _rate(part: int, total: int) -> str:
    if total <= 0:
        return "0%"
    return f"{part * 100.0 / total:.2f}%"


async def statistics(
    store: TrackingStore,
    hours: int = 24,
    now: datetime.datetime | None = None,
) -> dict[str, object]:
    """Success-rate summary over the trailing *hours* window."""
    now = now or datetime.datetime.now(datetime.UTC)
    since = now - datetime.timedelta(hours=hours)
    records = await store.query(lambda r: r.published_at > since)

    total = len(records)
    cb_success = sum(
        1 for r in records if r.status_of(ChannelName.CELL_BROADCAST) == ChannelStatus.SUCCESS
    )
    fcm_success = sum(
        1 for r in records if r.status_of(ChannelName.PUSH) == ChannelStatus.SUCCESS
    )
    return {
        "period": f"{hours} hours",
        "totalPublished": total,
        "cellBroadcastSuccess": cb_success,
        "fcmSuccess": fcm_success,
        "cellBroadcastSuccessRate": _rate(cb_success, total),
        "fcmSuccessRate": _rate(fcm_success, total),
    }
