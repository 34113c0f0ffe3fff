"""
Tests for TypingRouter.

Typing signals are relayed to the other live members of a room, guarded by
the same membership check as messages, and expire on a timer.
"""

import asyncio

import pytest
from channels.layers import get_channel_layer

from core.exceptions import ErrorCode
from chat.presence import PresenceRegistry
from chat.typing_indicators import TypingRouter

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]


@pytest.fixture
def registry():
    return PresenceRegistry()


@pytest.fixture
def router(registry):
    router = TypingRouter(registry)
    yield router
    router.reset()


async def connect(registry, user):
    channel = await get_channel_layer().new_channel()
    registry.register(user.id, channel)
    return channel


async def assert_nothing_received(channel):
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(get_channel_layer().receive(channel), timeout=0.1)


class TestNotifyTyping:
    async def test_relays_to_other_members_only(self, router, registry, group_room, alice, bob, outsider):
        alice_channel = await connect(registry, alice)
        bob_channel = await connect(registry, bob)
        outsider_channel = await connect(registry, outsider)

        result = await router.notify_typing(group_room.id, alice.id, True)

        assert result.data == 1
        message = await get_channel_layer().receive(bob_channel)
        assert message["payload"] == {
            "type": "typing",
            "roomId": group_room.id,
            "userId": alice.id,
            "isTyping": True,
        }
        await assert_nothing_received(alice_channel)
        await assert_nothing_received(outsider_channel)

    async def test_non_member_is_forbidden(self, router, registry, group_room, bob, outsider):
        bob_channel = await connect(registry, bob)

        result = await router.notify_typing(group_room.id, outsider.id, True)

        assert result.error_code == ErrorCode.FORBIDDEN
        assert not router.is_typing(group_room.id, outsider.id)
        await assert_nothing_received(bob_channel)

    async def test_missing_room_is_not_found(self, router, alice):
        result = await router.notify_typing(999999, alice.id, True)

        assert result.error_code == ErrorCode.NOT_FOUND

    async def test_stop_signal_clears_state_and_is_relayed(self, router, registry, group_room, alice, bob):
        bob_channel = await connect(registry, bob)

        await router.notify_typing(group_room.id, alice.id, True)
        await router.notify_typing(group_room.id, alice.id, False)

        assert not router.is_typing(group_room.id, alice.id)
        first = await get_channel_layer().receive(bob_channel)
        second = await get_channel_layer().receive(bob_channel)
        assert [first["payload"]["isTyping"], second["payload"]["isTyping"]] == [True, False]


class TestExpiry:
    async def test_typing_state_expires(self, router, group_room, alice, settings):
        settings.CHAT_TYPING_TIMEOUT_SECONDS = 0.05

        await router.notify_typing(group_room.id, alice.id, True)
        assert router.typing_user_ids(group_room.id) == [alice.id]

        await asyncio.sleep(0.15)
        assert not router.is_typing(group_room.id, alice.id)

    async def test_refresh_restarts_timer(self, router, group_room, alice, settings):
        settings.CHAT_TYPING_TIMEOUT_SECONDS = 0.3

        await router.notify_typing(group_room.id, alice.id, True)
        await asyncio.sleep(0.2)
        await router.notify_typing(group_room.id, alice.id, True)
        await asyncio.sleep(0.2)

        assert router.is_typing(group_room.id, alice.id)

    async def test_expiry_sends_no_event(self, router, registry, group_room, alice, bob, settings):
        settings.CHAT_TYPING_TIMEOUT_SECONDS = 0.05
        bob_channel = await connect(registry, bob)

        await router.notify_typing(group_room.id, alice.id, True)
        await get_channel_layer().receive(bob_channel)
        await asyncio.sleep(0.15)

        await assert_nothing_received(bob_channel)

    async def test_clear_user_drops_all_rooms(self, router, group_room, private_room, alice):
        await router.notify_typing(group_room.id, alice.id, True)
        await router.notify_typing(private_room.id, alice.id, True)

        router.clear_user(alice.id)

        assert not router.is_typing(group_room.id, alice.id)
        assert not router.is_typing(private_room.id, alice.id)
