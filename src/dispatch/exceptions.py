"""Dispatch exceptions."""

from __future__ import annotations


class DispatchError(Exception):
    """Base exception for alert dispatch errors."""


class InvalidAlertError(DispatchError):
    """The inbound alert is malformed and was rejected before tracking."""
