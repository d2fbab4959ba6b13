"""Per-record mutual exclusion for tracking record mutation."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator


class RecordLocks:
    """Registry of one ``asyncio.Lock`` per alert identity.

    Every read-modify-write of a tracking record (channel merges and retry
    bookkeeping) must happen inside ``hold(alert_id)``. An entry lives only
    while some caller holds or waits on it, so the registry stays bounded
    by the number of records currently being mutated.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def lock_for(self, alert_id: str) -> asyncio.Lock:
        lock = self._locks.get(alert_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[alert_id] = lock
        return lock

    @contextlib.asynccontextmanager
    async def hold(self, alert_id: str) -> AsyncIterator[None]:
        # No await between lookup and count bump, so no one can evict in between.
        lock = self.lock_for(alert_id)
        self._users[alert_id] = self._users.get(alert_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._users[alert_id] - 1
            if remaining:
                self._users[alert_id] = remaining
            else:
                del self._users[alert_id]
                self._locks.pop(alert_id, None)

    def __len__(self) -> int:
        return len(self._locks)
