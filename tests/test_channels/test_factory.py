"""Tests for create_channels()."""

from __future__ import annotations

from src.channels.broadcast import HttpCellBroadcastChannel, SimulatedCellBroadcastChannel
from src.channels.factory import create_channels
from src.channels.push import FcmPushChannel, SimulatedPushChannel
from src.core.config import CellBroadcastConfig, ChannelsConfig, PushConfig
from src.core.types import ChannelName


class TestCreateChannels:
    def test_defaults_are_simulated(self) -> None:
        channels = create_channels(ChannelsConfig())
        assert set(channels) == {ChannelName.CELL_BROADCAST, ChannelName.PUSH}
        assert isinstance(channels[ChannelName.CELL_BROADCAST], SimulatedCellBroadcastChannel)
        assert isinstance(channels[ChannelName.PUSH], SimulatedPushChannel)

    def test_real_transports(self) -> None:
        cfg = ChannelsConfig(
            cell_broadcast=CellBroadcastConfig(simulate=False),
            push=PushConfig(simulate=False),
        )
        channels = create_channels(cfg)
        assert isinstance(channels[ChannelName.CELL_BROADCAST], HttpCellBroadcastChannel)
        assert isinstance(channels[ChannelName.PUSH], FcmPushChannel)

    def test_disabled_channel_still_built(self) -> None:
        cfg = ChannelsConfig(push=PushConfig(enabled=False))
        channels = create_channels(cfg)
        assert channels[ChannelName.PUSH].enabled is False
        assert channels[ChannelName.CELL_BROADCAST].enabled is True
