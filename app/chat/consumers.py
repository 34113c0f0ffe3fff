"""
WebSocket consumer for the chat application.

One connection per client at ``ws/chat/``. The connection moves through
three states:

    unauthenticated --auth--> active --close--> closed

Unauthenticated:
    Only ``auth`` frames are accepted. The user must exist and be active; if
    the handshake carried a JWT (see chat.middleware) the frame must name the
    same user. On success the connection registers in the presence registry
    (superseding any older connection of the same user), the user is marked
    online and a ``presence`` event goes to everyone online.

Active:
    ``send_message`` goes through the message pipeline, ``typing`` through
    the typing router. Failures come back as ``error`` frames on this
    connection only; the connection stays open.

Closed:
    If this connection was still the user's live one, the user is marked
    offline and everyone online receives ``presence`` offline.

Channel layer message types handled here:
    - chat.event: Deliver a protocol event payload to this socket
    - chat.superseded: The same user connected again; close this one
"""

from __future__ import annotations

import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings

from core.exceptions import BaseApplicationError, ErrorCode, ValidationError
from authentication.repositories import UserRepository
from chat.constants import FRAME_TYPES, WS_CLOSE_CODES
from chat.pipeline import message_pipeline
from chat.presence import presence_registry
from chat.protocol import (
    AuthFrame,
    ErrorEvent,
    FRAME_SERIALIZERS,
    PresenceEvent,
    SendMessageFrame,
    TypingFrame,
    parse_frame,
)
from chat.services import PresenceService
from chat.typing_indicators import typing_router

logger = logging.getLogger(__name__)


class ConnectionState:
    UNAUTHENTICATED = "unauthenticated"
    ACTIVE = "active"
    CLOSED = "closed"


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for real-time chat.

    Attributes:
        state: Current ConnectionState
        user_id: Authenticated user id (None until ``auth`` succeeds)
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.state: str = ConnectionState.UNAUTHENTICATED
        self.user_id: int | None = None

    async def connect(self):
        """Accept the socket; authentication happens with the first ``auth`` frame."""
        if settings.CHAT_WS_REQUIRE_TOKEN and self._token_user_id() is None:
            logger.warning("Rejected WebSocket connection without a valid token")
            self.state = ConnectionState.CLOSED
            await self.close(code=WS_CLOSE_CODES.UNAUTHORIZED)
            return

        subprotocols = self.scope.get("subprotocols") or []
        await self.accept(subprotocol="jwt" if subprotocols[:1] == ["jwt"] else None)
        logger.info(f"WebSocket connection opened: {self.channel_name}")

    async def disconnect(self, close_code):
        """Tear down live state. Safe to call more than once."""
        was_active = self.state == ConnectionState.ACTIVE
        self.state = ConnectionState.CLOSED
        if not was_active:
            return

        user_id = self.user_id
        if not presence_registry.unregister(user_id, self.channel_name):
            logger.info(f"Superseded connection for user {user_id} closed (code={close_code})")
            return

        typing_router.clear_user(user_id)
        await database_sync_to_async(PresenceService.set_online)(user_id, False)
        await presence_registry.broadcast(PresenceEvent(user_id=user_id, online=False))
        logger.info(f"User {user_id} went offline (code={close_code})")

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """Decode JSON text frames; anything else is answered with an error."""
        if text_data is None:
            await self.send_event(ErrorEvent("Binary frames are not supported", ErrorCode.INVALID_ARGUMENT))
            return
        try:
            content = await self.decode_json(text_data)
        except json.JSONDecodeError:
            logger.warning(f"Malformed JSON frame on {self.channel_name}")
            await self.send_event(ErrorEvent("Invalid message format", ErrorCode.INVALID_ARGUMENT))
            return
        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        """
        Dispatch a decoded frame according to the connection state.

        Expected frame format:
            {"type": "auth", "userId": 7}
            {"type": "send_message", "roomId": 3, "content": "Hello!"}
            {"type": "typing", "roomId": 3, "isTyping": true}
        """
        if self.state == ConnectionState.CLOSED:
            return

        # Malformed frames fall through to parse_frame and get INVALID_ARGUMENT
        frame_type = content.get("type") if isinstance(content, dict) else None
        if (
            self.state == ConnectionState.UNAUTHENTICATED
            and isinstance(frame_type, str)
            and frame_type in FRAME_SERIALIZERS
            and frame_type != FRAME_TYPES.AUTH
        ):
            await self.send_event(ErrorEvent("Not authenticated", ErrorCode.UNAUTHORIZED))
            return

        try:
            frame = parse_frame(content)
        except ValidationError as e:
            logger.warning(f"Rejected frame from user {self.user_id}: {e}")
            await self.send_event(ErrorEvent(e.message, e.error_code))
            return

        try:
            await self._dispatch(frame)
        except Exception:
            logger.exception(f"Unexpected error handling {type(frame).__name__} from user {self.user_id}")
            await self.send_event(ErrorEvent("Internal server error", ErrorCode.INTERNAL_ERROR))

    async def _dispatch(self, frame):
        if isinstance(frame, AuthFrame):
            await self._handle_auth(frame)
        elif isinstance(frame, SendMessageFrame):
            await self._handle_send_message(frame)
        elif isinstance(frame, TypingFrame):
            await self._handle_typing(frame)

    async def _handle_auth(self, frame: AuthFrame):
        if self.state == ConnectionState.ACTIVE:
            await self.send_event(ErrorEvent("Already authenticated", ErrorCode.INVALID_ARGUMENT))
            return

        token_user_id = self._token_user_id()
        if settings.CHAT_WS_REQUIRE_TOKEN and token_user_id is None:
            await self.send_event(ErrorEvent("Authentication token required", ErrorCode.UNAUTHORIZED))
            return
        if token_user_id is not None and token_user_id != frame.user_id:
            logger.warning(f"Auth frame for user {frame.user_id} does not match token user {token_user_id}")
            await self.send_event(ErrorEvent("Token does not match user", ErrorCode.UNAUTHORIZED))
            return

        try:
            user = await database_sync_to_async(UserRepository.get_by_id)(frame.user_id)
        except BaseApplicationError as e:
            if e.error_code == ErrorCode.NOT_FOUND:
                await self.send_event(ErrorEvent("Unknown user", ErrorCode.UNAUTHORIZED))
            else:
                await self.send_event(ErrorEvent(e.message, e.error_code))
            return
        if not user.is_active:
            await self.send_event(ErrorEvent("Account is disabled", ErrorCode.UNAUTHORIZED))
            return

        self.user_id = user.id
        self.state = ConnectionState.ACTIVE

        previous = presence_registry.register(user.id, self.channel_name)
        if previous is not None:
            logger.info(f"User {user.id} reconnected, closing previous connection {previous}")
            await presence_registry.close_handle(previous)

        await database_sync_to_async(PresenceService.set_online)(user.id, True)
        await presence_registry.broadcast(PresenceEvent(user_id=user.id, online=True))
        logger.info(f"User {user.id} authenticated on {self.channel_name}")

    async def _handle_send_message(self, frame: SendMessageFrame):
        result = await message_pipeline.submit(frame.room_id, self.user_id, frame.content)
        if not result.success:
            await self.send_event(ErrorEvent.from_result(result))

    async def _handle_typing(self, frame: TypingFrame):
        result = await typing_router.notify_typing(frame.room_id, self.user_id, frame.is_typing)
        if not result.success:
            await self.send_event(ErrorEvent.from_result(result))

    # =========================================================================
    # Channel layer handlers
    # =========================================================================

    async def chat_event(self, event):
        """Handle chat.event: write the protocol payload to the socket."""
        if self.state == ConnectionState.CLOSED:
            return
        await self.send_json(event["payload"])

    async def chat_superseded(self, event):
        """Handle chat.superseded: another connection took over this user."""
        if self.state == ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        logger.info(f"Closing superseded connection for user {self.user_id}")
        await self.close(code=WS_CLOSE_CODES.SUPERSEDED)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def send_event(self, event):
        await self.send_json(event.to_dict())

    def _token_user_id(self) -> int | None:
        user = self.scope.get("user")
        if user is not None and user.is_authenticated:
            return user.id
        return None
