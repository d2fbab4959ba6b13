"""Convenience factory for building the channel adapters from config."""

from __future__ import annotations

from src.channels.base import ChannelAdapter
from src.channels.broadcast import HttpCellBroadcastChannel, SimulatedCellBroadcastChannel
from src.channels.push import FcmPushChannel, SimulatedPushChannel
from src.core.config import ChannelsConfig
from src.core.types import ChannelName


def create_channels(config: ChannelsConfig) -> dict[ChannelName, ChannelAdapter]:
    """Build one adapter per channel, simulated or real per ``simulate``.

    Disabled channels still get an adapter; it reports SKIPPED.
    """
    broadcast: ChannelAdapter
    if config.cell_broadcast.simulate:
        broadcast = SimulatedCellBroadcastChannel(config.cell_broadcast)
    else:
        broadcast = HttpCellBroadcastChannel(config.cell_broadcast)

    push: ChannelAdapter
    if config.push.simulate:
        push = SimulatedPushChannel(config.push)
    else:
        push = FcmPushChannel(config.push)

    return {
        ChannelName.CELL_BROADCAST: broadcast,
        ChannelName.PUSH: push,
    }
