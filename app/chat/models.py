"""
Chat models.

This module defines the durable chat state:
- ChatRoom: A private (exactly two members) or group conversation
- PrivateRoomPair: Uniqueness of the private room between two users
- Membership: Which users belong to which room
- Message: Immutable text message posted to a room
- MessageReceipt: Who has read which message

Related files:
    - repositories.py: RoomRepository / MessageRepository persistence gateways
    - services.py: Membership rules and history

Invariants:
    - A private room has exactly two distinct members, forever
    - At most one private room exists per unordered pair of users
    - A message's room and sender never change after creation
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import BaseModel
from chat.constants import MESSAGE_CONFIG, ROOM_CONFIG


class ChatRoom(BaseModel):
    """
    A conversation between two or more users.

    Fields:
        name: Display name ("Private chat" for private rooms)
        is_private: Two-person room created by find-or-create
        created_by: User who created the room; only they manage group members
        members: Users in the room (through Membership)

    Note:
        Rooms are never deleted by the chat core.
    """

    name = models.CharField(
        max_length=ROOM_CONFIG.MAX_NAME_LENGTH,
        help_text="Room display name",
    )
    is_private = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this is a two-person private room",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_rooms",
        help_text="User who created this room",
    )
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="Membership",
        related_name="chat_rooms",
        help_text="Users in this room",
    )

    class Meta:
        db_table = "chat_room"
        ordering = ["-updated_at"]

    def __str__(self) -> str:
        kind = "private" if self.is_private else "group"
        return f"{self.name} ({kind}, id={self.pk})"


class PrivateRoomPair(models.Model):
    """
    Enforces uniqueness of private rooms between two users.

    Pairs are stored in canonical order (lower user id first) so that
    whichever user opens the chat, the same row is found.

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One private room per pair
        - CheckConstraint(user_lower_id < user_higher_id): Canonical order
    """

    room = models.OneToOneField(
        ChatRoom,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="private_pair",
        help_text="The private room this pair represents",
    )
    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with lower ID in this pair",
    )
    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with higher ID in this pair",
    )

    class Meta:
        db_table = "chat_private_room_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_private_room_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="private_pair_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        return f"PrivatePair({self.user_lower_id}, {self.user_higher_id})"


class Membership(models.Model):
    """
    A user's membership in a room.

    Fields:
        room: The room
        user: The member
        joined_at: When the user was added
    """

    room = models.ForeignKey(
        ChatRoom,
        on_delete=models.CASCADE,
        related_name="memberships",
        help_text="Room this membership belongs to",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_memberships",
        help_text="Member user",
    )
    joined_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user joined the room",
    )

    class Meta:
        db_table = "chat_membership"
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["room", "user"],
                name="unique_room_membership",
            ),
        ]
        indexes = [
            models.Index(fields=["user", "room"], name="chat_membership_user_idx"),
        ]

    def __str__(self) -> str:
        return f"Membership(room={self.room_id}, user={self.user_id})"


class Message(BaseModel):
    """
    A text message posted to a room.

    Fields:
        room: Room the message belongs to (immutable)
        sender: Author (immutable)
        content: Message text, non-empty after trimming
        is_read: True once any member other than the sender has read it

    Note:
        History is ordered by (created_at, id) so ties keep insertion order.
    """

    IMMUTABLE_FIELDS = ("room_id", "sender_id")

    room = models.ForeignKey(
        ChatRoom,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Room this message was posted to",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="chat_messages",
        help_text="User who sent this message",
    )
    content = models.TextField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        help_text="Message text",
    )
    is_read = models.BooleanField(
        default=False,
        help_text="Whether any recipient has read this message",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["room", "created_at"], name="chat_message_room_time_idx"),
        ]

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_refs = {name: getattr(instance, name, None) for name in cls.IMMUTABLE_FIELDS}
        return instance

    def save(self, *args, **kwargs):
        """Persist, refusing to move a stored message to another room or sender."""
        original = getattr(self, "_loaded_refs", None)
        if original:
            for name in self.IMMUTABLE_FIELDS:
                if original.get(name) is not None and getattr(self, name) != original[name]:
                    raise ValueError(f"Message.{name} cannot be changed after creation")
        super().save(*args, **kwargs)
        self._loaded_refs = {name: getattr(self, name) for name in self.IMMUTABLE_FIELDS}

    def __str__(self) -> str:
        return f"Message(id={self.pk}, room={self.room_id}, sender={self.sender_id})"


class MessageReceipt(models.Model):
    """
    Records that a user has read a message.

    Fields:
        message: The message read
        user: The reader (never the sender)
        read_at: When it was first read
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="receipts",
        help_text="Message that was read",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_receipts",
        help_text="User who read the message",
    )
    read_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the message was read",
    )

    class Meta:
        db_table = "chat_message_receipt"
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_message_receipt",
            ),
        ]

    def __str__(self) -> str:
        return f"Receipt(message={self.message_id}, user={self.user_id})"
