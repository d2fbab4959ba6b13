"""Exception hierarchy for delivery channel adapters.

These never escape ``ChannelAdapter.deliver``. They are raised by the
transport layer and normalized into a failed ``ChannelResult``.
"""

from __future__ import annotations


class ChannelError(Exception):
    """Base exception for all channel errors."""


class ChannelTimeoutError(ChannelError):
    """A delivery attempt exceeded the channel timeout."""


class ChannelTransportError(ChannelError):
    """Network or provider-side failure (retryable)."""


class ChannelRejectedError(ChannelError):
    """The provider rejected the request (not retried)."""
