"""
Tests for PresenceRegistry.

Uses the in-memory channel layer: each "connection" is a fresh channel name
and delivered events are read straight off the layer.
"""

import pytest
from channels.layers import get_channel_layer

from chat.presence import EVENT_MESSAGE_TYPE, SUPERSEDED_MESSAGE_TYPE, PresenceRegistry
from chat.protocol import PresenceEvent


@pytest.fixture
def registry():
    return PresenceRegistry()


class TestRegistration:
    def test_register_and_unregister(self, registry):
        assert registry.register(1, "conn-a") is None
        assert registry.is_online(1)

        assert registry.unregister(1, "conn-a") is True
        assert not registry.is_online(1)

    def test_second_connection_supersedes_first(self, registry):
        """
        Registering again returns the old handle for the caller to close.

        Why it matters: A user has one live connection; the old tab is
        closed rather than left receiving duplicate events.
        """
        registry.register(1, "conn-a")

        assert registry.register(1, "conn-b") == "conn-a"
        assert registry.online_user_ids() == [1]

    def test_stale_unregister_keeps_newer_connection(self, registry):
        registry.register(1, "conn-a")
        registry.register(1, "conn-b")

        assert registry.unregister(1, "conn-a") is False
        assert registry.is_online(1)

    def test_reregistering_same_handle_returns_none(self, registry):
        registry.register(1, "conn-a")

        assert registry.register(1, "conn-a") is None

    def test_online_user_ids_is_a_snapshot(self, registry):
        registry.register(1, "conn-a")
        snapshot = registry.online_user_ids()
        registry.register(2, "conn-b")

        assert snapshot == [1]


class TestDelivery:
    @pytest.mark.asyncio
    async def test_send_to_offline_user_is_a_miss(self, registry):
        assert await registry.send_to(1, PresenceEvent(user_id=2, online=True)) is False

    @pytest.mark.asyncio
    async def test_send_to_delivers_through_channel_layer(self, registry):
        layer = get_channel_layer()
        channel = await layer.new_channel()
        registry.register(1, channel)

        assert await registry.send_to(1, PresenceEvent(user_id=2, online=True)) is True

        message = await layer.receive(channel)
        assert message == {
            "type": EVENT_MESSAGE_TYPE,
            "payload": {"type": "presence", "userId": 2, "online": True},
        }

    @pytest.mark.asyncio
    async def test_broadcast_skips_excluded_user(self, registry):
        layer = get_channel_layer()
        first = await layer.new_channel()
        second = await layer.new_channel()
        registry.register(1, first)
        registry.register(2, second)

        delivered = await registry.broadcast(PresenceEvent(user_id=1, online=True), exclude_user_id=1)

        assert delivered == 1
        assert (await layer.receive(second))["payload"]["userId"] == 1

    @pytest.mark.asyncio
    async def test_close_handle_sends_superseded(self, registry):
        layer = get_channel_layer()
        channel = await layer.new_channel()

        await registry.close_handle(channel)

        assert await layer.receive(channel) == {"type": SUPERSEDED_MESSAGE_TYPE}
