"""Delivery channel adapters and recipient estimation."""

from src.channels.base import ChannelAdapter
from src.channels.broadcast import HttpCellBroadcastChannel, SimulatedCellBroadcastChannel
from src.channels.estimator import estimate_broadcast_recipients, estimate_push_recipients
from src.channels.exceptions import (
    ChannelError,
    ChannelRejectedError,
    ChannelTimeoutError,
    ChannelTransportError,
)
from src.channels.factory import create_channels
from src.channels.push import FcmPushChannel, SimulatedPushChannel, build_push_payload

__all__ = [
    "ChannelAdapter",
    "ChannelError",
    "ChannelRejectedError",
    "ChannelTimeoutError",
    "ChannelTransportError",
    "FcmPushChannel",
    "HttpCellBroadcastChannel",
    "SimulatedCellBroadcastChannel",
    "SimulatedPushChannel",
    "build_push_payload",
    "create_channels",
    "estimate_broadcast_recipients",
    "estimate_push_recipients",
]
