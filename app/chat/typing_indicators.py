"""
Typing indicator routing.

Relays typing signals from one member to the room's other live members and
tracks who is currently typing. A ``true`` signal arms an expiry timer per
(room, user) that each refresh restarts; ``false`` cancels it. Expiry only
clears server state. Clients time the indicator out themselves after the
same delay, so no stop event is sent.
"""

from __future__ import annotations

import asyncio
import logging

from channels.db import database_sync_to_async
from django.conf import settings

from core.services import ServiceResult
from chat.presence import PresenceRegistry, presence_registry
from chat.protocol import TypingEvent
from chat.services import RoomService

logger = logging.getLogger(__name__)


class TypingRouter:
    """Membership-checked typing relay with expiring state."""

    def __init__(self, registry: PresenceRegistry):
        self.registry = registry
        self._timers: dict[tuple[int, int], asyncio.TimerHandle] = {}

    async def notify_typing(self, room_id: int, user_id: int, is_typing: bool) -> ServiceResult[int]:
        """
        Relay a typing signal to every other live member of the room.

        Returns:
            ServiceResult with the number of members notified

        Error codes:
            NOT_FOUND: Room does not exist
            FORBIDDEN: User is not a member
        """
        resolved = await database_sync_to_async(RoomService.resolve_members)(room_id, user_id)
        if not resolved.success:
            return resolved

        if is_typing:
            self._arm(room_id, user_id)
        else:
            self._cancel(room_id, user_id)

        event = TypingEvent(room_id=room_id, user_id=user_id, is_typing=is_typing)
        notified = 0
        for member_id in resolved.data:
            if member_id == user_id:
                continue
            if await self.registry.send_to(member_id, event):
                notified += 1
        return ServiceResult.success(notified)

    def is_typing(self, room_id: int, user_id: int) -> bool:
        return (room_id, user_id) in self._timers

    def typing_user_ids(self, room_id: int) -> list[int]:
        return [uid for (rid, uid) in self._timers if rid == room_id]

    def clear_user(self, user_id: int) -> None:
        """Drop every typing state held by ``user_id`` (on disconnect)."""
        for key in [key for key in self._timers if key[1] == user_id]:
            self._cancel(*key)

    def reset(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    def _arm(self, room_id: int, user_id: int) -> None:
        key = (room_id, user_id)
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(settings.CHAT_TYPING_TIMEOUT_SECONDS, self._expire, key)

    def _cancel(self, room_id: int, user_id: int) -> None:
        handle = self._timers.pop((room_id, user_id), None)
        if handle is not None:
            handle.cancel()

    def _expire(self, key: tuple[int, int]) -> None:
        if self._timers.pop(key, None) is not None:
            logger.debug(f"Typing expired for user {key[1]} in room {key[0]}")


typing_router = TypingRouter(presence_registry)
