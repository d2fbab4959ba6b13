"""TrackingStore — keyed storage of one tracking record per alert."""

from __future__ import annotations

import abc
import asyncio
from collections.abc import Callable

from src.core.types import TrackingRecord

RecordPredicate = Callable[[TrackingRecord], bool]


class TrackingStore(abc.ABC):
    """Persistence boundary for tracking records, keyed by ``alert_id``.

    Implementations must make ``insert_if_absent`` atomic: when two callers
    race on the same unseen identity, exactly one gets True.
    """

    @abc.abstractmethod
    async def get(self, alert_id: str) -> TrackingRecord | None:
        """Look up a record by alert identity."""

    @abc.abstractmethod
    async def insert_if_absent(self, record: TrackingRecord) -> bool:
        """Insert *record* unless its identity exists. Returns True if inserted."""

    @abc.abstractmethod
    async def save(self, record: TrackingRecord) -> None:
        """Insert or replace *record*."""

    @abc.abstractmethod
    async def query(self, predicate: RecordPredicate) -> list[TrackingRecord]:
        """Return every record matching *predicate*."""

    async def all(self) -> list[TrackingRecord]:
        return await self.query(lambda _: True)


class InMemoryTrackingStore(TrackingStore):
    """Dict-backed store. Records are copied in and out so callers never
    share mutable state with the store."""

    def __init__(self) -> None:
        self._records: dict[str, TrackingRecord] = {}
        self._lock = asyncio.Lock()

    @property
    def count(self) -> int:
        return len(self._records)

    async def get(self, alert_id: str) -> TrackingRecord | None:
        record = self._records.get(alert_id)
        return record.model_copy(deep=True) if record is not None else None

    async def insert_if_absent(self, record: TrackingRecord) -> bool:
        async with self._lock:
            if record.alert_id in self._records:
                return False
            self._records[record.alert_id] = record.model_copy(deep=True)
            return True

    async def save(self, record: TrackingRecord) -> None:
        async with self._lock:
            self._records[record.alert_id] = record.model_copy(deep=True)

    async def query(self, predicate: RecordPredicate) -> list[TrackingRecord]:
        return [
            r.model_copy(deep=True)
            for r in sorted(self._records.values(), key=lambda r: r.published_at)
            if predicate(r)
        ]

    def clear(self) -> None:
        self._records.clear()
