"""
WebSocket wire protocol for the chat application.

JSON text frames with a ``type`` field and camelCase keys.

Inbound (client -> server):
    {"type": "auth", "userId": 7}
    {"type": "send_message", "roomId": 3, "content": "hello"}
    {"type": "typing", "roomId": 3, "isTyping": true}

Outbound (server -> client):
    {"type": "presence", "userId": 7, "online": true}
    {"type": "new_message", "message": {...MessageSerializer...}}
    {"type": "typing", "roomId": 3, "userId": 7, "isTyping": true}
    {"type": "error", "message": "Access denied", "code": "FORBIDDEN"}

Inbound frames are validated with DRF serializers; anything that does not
match raises core.exceptions.ValidationError (INVALID_ARGUMENT).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from rest_framework import serializers

from core.exceptions import ErrorCode, ValidationError
from core.services import ServiceResult
from chat.constants import FRAME_TYPES, MESSAGE_CONFIG


# =============================================================================
# Inbound frames
# =============================================================================


@dataclass(frozen=True)
class AuthFrame:
    user_id: int


@dataclass(frozen=True)
class SendMessageFrame:
    room_id: int
    content: str


@dataclass(frozen=True)
class TypingFrame:
    room_id: int
    is_typing: bool


Frame = Union[AuthFrame, SendMessageFrame, TypingFrame]


class AuthFrameSerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1)

    def to_frame(self) -> AuthFrame:
        return AuthFrame(user_id=self.validated_data["userId"])


class SendMessageFrameSerializer(serializers.Serializer):
    roomId = serializers.IntegerField(min_value=1)
    # Blank content is rejected by the message pipeline with its own error
    content = serializers.CharField(
        allow_blank=True,
        trim_whitespace=False,
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
    )

    def to_frame(self) -> SendMessageFrame:
        return SendMessageFrame(
            room_id=self.validated_data["roomId"],
            content=self.validated_data["content"],
        )


class TypingFrameSerializer(serializers.Serializer):
    roomId = serializers.IntegerField(min_value=1)
    isTyping = serializers.BooleanField()

    def to_frame(self) -> TypingFrame:
        return TypingFrame(
            room_id=self.validated_data["roomId"],
            is_typing=self.validated_data["isTyping"],
        )


FRAME_SERIALIZERS: dict[str, type[serializers.Serializer]] = {
    FRAME_TYPES.AUTH: AuthFrameSerializer,
    FRAME_TYPES.SEND_MESSAGE: SendMessageFrameSerializer,
    FRAME_TYPES.TYPING: TypingFrameSerializer,
}


def parse_frame(data: Any) -> Frame:
    """
    Validate a decoded JSON frame and return its typed form.

    Raises:
        ValidationError: Not an object, unknown ``type``, or bad fields
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid message format")

    frame_type = data.get("type")
    serializer_class = FRAME_SERIALIZERS.get(frame_type) if isinstance(frame_type, str) else None
    if serializer_class is None:
        raise ValidationError(
            f"Unknown message type: {frame_type}",
            details={"type": frame_type},
        )

    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise ValidationError(
            "Invalid message format",
            details={"errors": serializer.errors},
        )
    return serializer.to_frame()


# =============================================================================
# Outbound events
# =============================================================================


@dataclass(frozen=True)
class PresenceEvent:
    user_id: int
    online: bool

    def to_dict(self) -> dict[str, Any]:
        return {"type": FRAME_TYPES.PRESENCE, "userId": self.user_id, "online": self.online}


@dataclass(frozen=True)
class NewMessageEvent:
    message: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": FRAME_TYPES.NEW_MESSAGE, "message": self.message}


@dataclass(frozen=True)
class TypingEvent:
    room_id: int
    user_id: int
    is_typing: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": FRAME_TYPES.TYPING,
            "roomId": self.room_id,
            "userId": self.user_id,
            "isTyping": self.is_typing,
        }


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    code: str = ErrorCode.INVALID_ARGUMENT

    @classmethod
    def from_result(cls, result: ServiceResult) -> ErrorEvent:
        return cls(
            message=result.error or "Request failed",
            code=result.error_code or ErrorCode.INTERNAL_ERROR,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"type": FRAME_TYPES.ERROR, "message": self.message, "code": self.code}


Event = Union[PresenceEvent, NewMessageEvent, TypingEvent, ErrorEvent]
