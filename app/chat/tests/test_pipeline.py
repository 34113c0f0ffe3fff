"""
Tests for MessagePipeline.

Each live member is simulated by a channel on the in-memory layer
registered in a private PresenceRegistry. Database work runs through
database_sync_to_async, so these tests use transactional database access.
"""

import asyncio
from unittest.mock import patch

import pytest
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer

from core.exceptions import ErrorCode, StorageError
from chat.models import Message
from chat.pipeline import MessagePipeline
from chat.presence import PresenceRegistry
from chat.repositories import MessageRepository

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]


@pytest.fixture
def registry():
    return PresenceRegistry()


@pytest.fixture
def pipeline(registry):
    return MessagePipeline(registry)


async def connect(registry, user):
    channel = await get_channel_layer().new_channel()
    registry.register(user.id, channel)
    return channel


async def receive_payload(channel):
    message = await get_channel_layer().receive(channel)
    return message["payload"]


async def assert_nothing_received(channel):
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(get_channel_layer().receive(channel), timeout=0.1)


class TestSubmit:
    async def test_delivers_to_every_live_member_including_sender(self, pipeline, registry, group_room, alice, bob):
        alice_channel = await connect(registry, alice)
        bob_channel = await connect(registry, bob)

        result = await pipeline.submit(group_room.id, alice.id, "  hello  ")

        assert result.success is True
        assert result.data["content"] == "hello"
        assert result.data["sender"]["id"] == alice.id
        for channel in (alice_channel, bob_channel):
            payload = await receive_payload(channel)
            assert payload == {"type": "new_message", "message": result.data}

    async def test_offline_members_read_it_from_history(self, pipeline, group_room, alice, carol):
        result = await pipeline.submit(group_room.id, alice.id, "while you were out")

        history = await pipeline.history(group_room.id, carol.id)

        assert result.success is True
        assert [m["id"] for m in history.data] == [result.data["id"]]

    async def test_non_members_never_receive(self, pipeline, registry, group_room, alice, outsider):
        await connect(registry, alice)
        outsider_channel = await connect(registry, outsider)

        await pipeline.submit(group_room.id, alice.id, "team only")

        await assert_nothing_received(outsider_channel)

    async def test_blank_content_is_rejected_without_storage(self, pipeline, group_room, alice):
        with patch("chat.pipeline.MessagePipeline._store") as store:
            result = await pipeline.submit(group_room.id, alice.id, "   ")

        store.assert_not_called()
        assert result.error_code == ErrorCode.INVALID_ARGUMENT

    async def test_non_member_is_forbidden(self, pipeline, group_room, outsider):
        result = await pipeline.submit(group_room.id, outsider.id, "hi")

        assert result.error_code == ErrorCode.FORBIDDEN
        assert await database_sync_to_async(Message.objects.count)() == 0

    async def test_storage_failure_delivers_nothing(self, pipeline, registry, group_room, alice, bob):
        bob_channel = await connect(registry, bob)

        with patch.object(MessageRepository, "create_message", side_effect=StorageError("Storage unavailable")):
            result = await pipeline.submit(group_room.id, alice.id, "lost")

        assert result.error_code == ErrorCode.STORAGE_ERROR
        await assert_nothing_received(bob_channel)

    async def test_live_order_matches_stored_order(self, pipeline, registry, group_room, alice, bob):
        bob_channel = await connect(registry, bob)

        for text in ("one", "two", "three"):
            await pipeline.submit(group_room.id, alice.id, text)

        received = [(await receive_payload(bob_channel))["message"]["content"] for _ in range(3)]
        history = await pipeline.history(group_room.id, bob.id)
        assert received == [m["content"] for m in history.data] == ["one", "two", "three"]


class TestHistory:
    async def test_history_requires_membership(self, pipeline, group_room, outsider):
        result = await pipeline.history(group_room.id, outsider.id)

        assert result.error_code == ErrorCode.FORBIDDEN

    async def test_history_respects_limit(self, pipeline, group_room, alice):
        for text in ("a", "b", "c"):
            await pipeline.submit(group_room.id, alice.id, text)

        result = await pipeline.history(group_room.id, alice.id, limit=2)

        assert [m["content"] for m in result.data] == ["b", "c"]
