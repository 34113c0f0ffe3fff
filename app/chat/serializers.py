"""
Serializers for chat API.

This module provides serializers for the chat system:
- Message serializers (read, create, preview)
- Room serializers (list with computed fields, private/group create)
- Membership serializers (add members)

MessageSerializer is shared by REST history and the live ``new_message``
event, so a message looks identical whichever way a client receives it.

Design Decisions:
    - Read and write serializers are separate for clarity
    - Computed fields use SerializerMethodField and read the viewer from context
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSerializer
from chat.constants import MESSAGE_CONFIG, ROOM_CONFIG
from chat.models import ChatRoom, Message
from chat.repositories import MessageRepository


# =============================================================================
# Message Serializers
# =============================================================================


class MessagePreviewSerializer(serializers.ModelSerializer):
    """Minimal message serializer for the room list preview."""

    sender_name = serializers.SerializerMethodField(help_text="Display name of the message sender")

    class Meta:
        model = Message
        fields = ["id", "sender_id", "sender_name", "content", "created_at"]
        read_only_fields = fields

    def get_sender_name(self, obj: Message) -> str:
        return obj.sender.get_full_name()


class MessageSerializer(serializers.ModelSerializer):
    """Full message with resolved sender."""

    sender = UserSerializer(read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "room_id",
            "sender",
            "content",
            "is_read",
            "created_at",
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """Serializer for sending a message over REST."""

    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        trim_whitespace=False,
        allow_blank=True,
        help_text="Message content (max 10,000 characters)",
    )


class HistoryQuerySerializer(serializers.Serializer):
    """Query parameters for message history."""

    limit = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=MESSAGE_CONFIG.HISTORY_MAX_LIMIT,
        help_text="Number of most recent messages to return",
    )


# =============================================================================
# Room Serializers
# =============================================================================


class RoomListSerializer(serializers.ModelSerializer):
    """
    Serializer for the room list.

    Includes computed fields:
    - display_name: Group name, or the other member's name for private rooms
    - members: Everyone in the room
    - last_message: Preview of the most recent message
    - unread_count: Messages from others the viewer hasn't read
    """

    display_name = serializers.SerializerMethodField(help_text="Display name for the room")
    members = UserSerializer(many=True, read_only=True)
    last_message = serializers.SerializerMethodField(help_text="Most recent message preview")
    unread_count = serializers.SerializerMethodField(help_text="Number of unread messages")

    class Meta:
        model = ChatRoom
        fields = [
            "id",
            "name",
            "display_name",
            "is_private",
            "created_by_id",
            "members",
            "last_message",
            "unread_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _viewer_id(self) -> int | None:
        request = self.context.get("request")
        if request and request.user.is_authenticated:
            return request.user.id
        return None

    def get_display_name(self, obj: ChatRoom) -> str:
        viewer_id = self._viewer_id()
        if obj.is_private and viewer_id is not None:
            for member in obj.members.all():
                if member.id != viewer_id:
                    return member.get_full_name()
        return obj.name

    def get_last_message(self, obj: ChatRoom) -> dict | None:
        message = MessageRepository.last_message(obj.id)
        if message:
            return MessagePreviewSerializer(message).data
        return None

    def get_unread_count(self, obj: ChatRoom) -> int:
        viewer_id = self._viewer_id()
        if viewer_id is None:
            return 0
        return MessageRepository.unread_count(obj.id, viewer_id)


class PrivateRoomCreateSerializer(serializers.Serializer):
    """Open (or find) the private room with another user."""

    user_id = serializers.IntegerField(help_text="The other user's ID")


class GroupRoomCreateSerializer(serializers.Serializer):
    """Create a group room."""

    name = serializers.CharField(
        max_length=ROOM_CONFIG.MAX_NAME_LENGTH,
        allow_blank=True,
        help_text="Group name (required, non-blank)",
    )
    member_ids = serializers.ListField(
        child=serializers.IntegerField(),
        required=False,
        default=list,
        help_text="Initial members besides the creator",
    )


class MembersAddSerializer(serializers.Serializer):
    """Add users to a group room."""

    user_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=False,
        help_text="Users to add",
    )
