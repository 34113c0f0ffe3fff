"""
Message pipeline: validate, authorize, persist, then fan out.

Every message, whether it arrives over the WebSocket or the REST API, goes
through ``MessagePipeline.submit`` so live delivery and stored history agree.

Flow:
    1. Blank content is rejected before any storage access
    2. The sender must be a member of the room
    3. The message is persisted (a storage failure stops here, nothing sent)
    4. A ``new_message`` event goes to every live member, sender included

Submissions are serialized per process, so the order members see messages
live is the order they were stored.

Usage:
    from chat.pipeline import message_pipeline

    result = await message_pipeline.submit(room_id, user_id, "hello")
    if not result.success:
        ...  # result.error_code is INVALID_ARGUMENT / FORBIDDEN / NOT_FOUND / STORAGE_ERROR
"""

from __future__ import annotations

import asyncio
import logging
import weakref

from channels.db import database_sync_to_async

from core.exceptions import StorageError
from core.services import ServiceResult
from chat.presence import PresenceRegistry, presence_registry
from chat.protocol import NewMessageEvent
from chat.serializers import MessageSerializer
from chat.services import MessageService, RoomService

logger = logging.getLogger(__name__)


class MessagePipeline:
    """Ordered message submission with live fan-out to room members."""

    def __init__(self, registry: PresenceRegistry):
        self.registry = registry
        self._locks: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

    def _get_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        lock = self._locks.get(loop)
        if lock is None:
            lock = self._locks[loop] = asyncio.Lock()
        return lock

    async def submit(self, room_id: int, sender_id: int, raw_content) -> ServiceResult[dict]:
        """
        Store a message and deliver it to the room's live members.

        Returns:
            ServiceResult with the serialized message on success
        """
        validation = MessageService.validate_content(raw_content)
        if validation is not None:
            return validation

        async with self._get_lock():
            stored = await self._store(room_id, sender_id, raw_content)
            if not stored.success:
                return stored

            payload, member_ids = stored.data
            event = NewMessageEvent(message=payload)
            delivered = 0
            for member_id in member_ids:
                if await self.registry.send_to(member_id, event):
                    delivered += 1

        logger.debug(
            f"Message {payload['id']} in room {room_id} delivered live to {delivered}/{len(member_ids)} members"
        )
        return ServiceResult.success(payload)

    @database_sync_to_async
    def _store(self, room_id: int, sender_id: int, content: str) -> ServiceResult:
        result = MessageService.send_message(room_id, sender_id, content)
        if not result.success:
            return result

        message = result.data
        try:
            member_ids = RoomService.member_ids(room_id)
        except StorageError as e:
            logger.error(f"Stored message {message.id} but could not load members of room {room_id}: {e}")
            member_ids = [sender_id]
        return ServiceResult.success((MessageSerializer(message).data, member_ids))

    async def history(self, room_id: int, user_id: int, limit: int | None = None) -> ServiceResult[list]:
        """Serialized history for ``user_id`` (oldest first), marking it read."""
        return await database_sync_to_async(self._history)(room_id, user_id, limit)

    def _history(self, room_id: int, user_id: int, limit: int | None) -> ServiceResult[list]:
        result = MessageService.get_history(room_id, user_id, limit)
        return result.map(lambda messages: MessageSerializer(messages, many=True).data)


message_pipeline = MessagePipeline(presence_registry)
