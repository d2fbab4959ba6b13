"""Tracking store exceptions."""

from __future__ import annotations


class TrackingStoreError(Exception):
    """A read or write against the tracking store failed."""
