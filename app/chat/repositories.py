"""
Room and message persistence gateways.

Typed data access with no business logic and no knowledge of live
connections. Every method raises from core.exceptions: NotFoundError for
missing rooms, ConflictError for unique violations, StorageError for any
other database failure. Querysets are evaluated before returning so storage
errors surface here and not in callers.

Usage:
    from chat.repositories import MessageRepository, RoomRepository

    if RoomRepository.is_member(user_id, room_id):
        message = MessageRepository.create_message(room_id, user_id, "hi")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from django.db import transaction
from django.utils import timezone

from core.decorators import translate_storage_errors
from core.exceptions import NotFoundError
from authentication.models import User
from chat.constants import ROOM_CONFIG
from chat.models import ChatRoom, Membership, Message, MessageReceipt, PrivateRoomPair

logger = logging.getLogger(__name__)


def canonical_pair(user_a_id: int, user_b_id: int) -> tuple[int, int]:
    """Return the two ids lower first."""
    return (user_a_id, user_b_id) if user_a_id < user_b_id else (user_b_id, user_a_id)


class RoomRepository:
    """Data access for rooms and memberships."""

    @staticmethod
    @translate_storage_errors
    def create_room(name: str, is_private: bool, created_by_id: int) -> ChatRoom:
        """Create a room with its creator as the first member."""
        with transaction.atomic():
            room = ChatRoom.objects.create(name=name, is_private=is_private, created_by_id=created_by_id)
            Membership.objects.create(room=room, user_id=created_by_id)
        return room

    @staticmethod
    @translate_storage_errors
    def get_room(room_id: int) -> ChatRoom:
        room = ChatRoom.objects.filter(id=room_id).first()
        if room is None:
            raise NotFoundError(f"Room {room_id} not found", details={"room_id": room_id})
        return room

    @staticmethod
    @translate_storage_errors
    def get_rooms_for_user(user_id: int) -> list[ChatRoom]:
        """Rooms the user belongs to, most recently active first."""
        return list(
            ChatRoom.objects.filter(memberships__user_id=user_id)
            .prefetch_related("members")
            .order_by("-updated_at", "-id")
        )

    @staticmethod
    @translate_storage_errors
    def find_private_room(user_a_id: int, user_b_id: int) -> ChatRoom | None:
        lower, higher = canonical_pair(user_a_id, user_b_id)
        pair = (
            PrivateRoomPair.objects.select_related("room")
            .filter(user_lower_id=lower, user_higher_id=higher)
            .first()
        )
        return pair.room if pair else None

    @staticmethod
    @translate_storage_errors
    def create_private_room(user_a_id: int, user_b_id: int) -> ChatRoom:
        """
        Create the private room between two users.

        Raises:
            ConflictError: A private room already exists for the pair
        """
        lower, higher = canonical_pair(user_a_id, user_b_id)
        with transaction.atomic():
            room = ChatRoom.objects.create(
                name=ROOM_CONFIG.PRIVATE_ROOM_NAME,
                is_private=True,
                created_by_id=user_a_id,
            )
            Membership.objects.bulk_create(
                [
                    Membership(room=room, user_id=user_a_id),
                    Membership(room=room, user_id=user_b_id),
                ]
            )
            PrivateRoomPair.objects.create(room=room, user_lower_id=lower, user_higher_id=higher)
        logger.info(f"Created private room {room.id} for users {lower} and {higher}")
        return room

    @staticmethod
    @translate_storage_errors
    def create_group_room(name: str, creator_id: int, member_ids: Iterable[int]) -> ChatRoom:
        """Create a group room. The creator is always the first member."""
        ordered_ids = [creator_id]
        for member_id in member_ids:
            if member_id not in ordered_ids:
                ordered_ids.append(member_id)

        with transaction.atomic():
            room = ChatRoom.objects.create(name=name, is_private=False, created_by_id=creator_id)
            Membership.objects.bulk_create([Membership(room=room, user_id=uid) for uid in ordered_ids])
        logger.info(f"Created group room {room.id} with {len(ordered_ids)} members")
        return room

    @staticmethod
    @translate_storage_errors
    def get_members(room_id: int) -> list[User]:
        """Members in join order."""
        return list(
            User.objects.filter(chat_memberships__room_id=room_id).order_by(
                "chat_memberships__joined_at", "chat_memberships__id"
            )
        )

    @staticmethod
    @translate_storage_errors
    def get_member_ids(room_id: int) -> list[int]:
        return list(
            Membership.objects.filter(room_id=room_id)
            .order_by("joined_at", "id")
            .values_list("user_id", flat=True)
        )

    @staticmethod
    @translate_storage_errors
    def add_members(room_id: int, user_ids: Iterable[int]) -> list[int]:
        """
        Add users to a room, skipping existing members.

        Returns:
            Ids that were newly added
        """
        existing = set(Membership.objects.filter(room_id=room_id).values_list("user_id", flat=True))
        new_ids = []
        for user_id in user_ids:
            if user_id not in existing and user_id not in new_ids:
                new_ids.append(user_id)
        if new_ids:
            Membership.objects.bulk_create(
                [Membership(room_id=room_id, user_id=uid) for uid in new_ids],
                ignore_conflicts=True,
            )
        return new_ids

    @staticmethod
    @translate_storage_errors
    def remove_member(room_id: int, user_id: int) -> bool:
        deleted, _ = Membership.objects.filter(room_id=room_id, user_id=user_id).delete()
        return deleted > 0

    @staticmethod
    @translate_storage_errors
    def is_member(user_id: int, room_id: int) -> bool:
        return Membership.objects.filter(room_id=room_id, user_id=user_id).exists()


class MessageRepository:
    """Data access for messages and read receipts."""

    @staticmethod
    @translate_storage_errors
    def create_message(room_id: int, sender_id: int, content: str) -> Message:
        """Persist a message and bump the room's activity timestamp."""
        with transaction.atomic():
            message = Message.objects.create(room_id=room_id, sender_id=sender_id, content=content)
            ChatRoom.objects.filter(id=room_id).update(updated_at=timezone.now())
        return Message.objects.select_related("sender").get(id=message.id)

    @staticmethod
    @translate_storage_errors
    def get_messages(room_id: int, limit: int) -> list[Message]:
        """The newest ``limit`` messages, returned oldest to newest."""
        newest = list(
            Message.objects.filter(room_id=room_id)
            .select_related("sender")
            .order_by("-created_at", "-id")[:limit]
        )
        newest.reverse()
        return newest

    @staticmethod
    @translate_storage_errors
    def mark_read(room_id: int, user_id: int) -> int:
        """
        Record that ``user_id`` has read the room.

        Messages the user authored are left alone.

        Returns:
            Number of messages newly marked read for this user
        """
        unread_ids = list(
            Message.objects.filter(room_id=room_id)
            .exclude(sender_id=user_id)
            .exclude(receipts__user_id=user_id)
            .values_list("id", flat=True)
        )
        if not unread_ids:
            return 0

        with transaction.atomic():
            MessageReceipt.objects.bulk_create(
                [MessageReceipt(message_id=mid, user_id=user_id) for mid in unread_ids],
                ignore_conflicts=True,
            )
            Message.objects.filter(id__in=unread_ids, is_read=False).update(is_read=True)
        return len(unread_ids)

    @staticmethod
    @translate_storage_errors
    def unread_count(room_id: int, user_id: int) -> int:
        return (
            Message.objects.filter(room_id=room_id)
            .exclude(sender_id=user_id)
            .exclude(receipts__user_id=user_id)
            .count()
        )

    @staticmethod
    @translate_storage_errors
    def last_message(room_id: int) -> Message | None:
        return (
            Message.objects.filter(room_id=room_id)
            .select_related("sender")
            .order_by("-created_at", "-id")
            .first()
        )
