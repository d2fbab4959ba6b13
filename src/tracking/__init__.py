"""Tracking records — storage, per-record locking, queries."""

from src.tracking.exceptions import TrackingStoreError
from src.tracking.locks import RecordLocks
from src.tracking.store import InMemoryTrackingStore, RecordPredicate, TrackingStore

__all__ = [
    "InMemoryTrackingStore",
    "RecordLocks",
    "RecordPredicate",
    "TrackingStore",
    "TrackingStoreError",
]
