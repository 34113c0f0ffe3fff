"""
Chat system service layer.

This module provides the business rules of the chat system on top of the
persistence gateways in chat.repositories.

Services:
    RoomService: Membership resolution and room lifecycle (private find-or-create,
        group create, add/remove members). ``resolve_members`` is the single
        authorization checkpoint used by message and typing delivery.
    MessageService: Send, history and read receipts
    PresenceService: Persisted presence flags (non-fatal on storage failure)

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with a core.exceptions code
    - Gateways raise; services convert at their edge with handle_exception
    - Services never touch live connections; see chat.pipeline and chat.presence

Usage:
    from chat.services import MessageService, RoomService

    result = RoomService.find_or_create_private_room(alice.id, bob.id)
    if result.success:
        room = result.data

    result = MessageService.get_history(room.id, alice.id, limit=50)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)
from core.services import BaseService, ServiceResult
from authentication.repositories import UserRepository
from chat.constants import MESSAGE_CONFIG
from chat.repositories import MessageRepository, RoomRepository

if TYPE_CHECKING:
    from authentication.models import User
    from chat.models import ChatRoom, Message


class RoomService(BaseService):
    """
    Service for room membership and lifecycle.

    Methods:
        is_member / member_ids: Read-through membership lookups
        resolve_members: Authorize a user against a room and return its members
        find_or_create_private_room: Idempotent private room between two users
        create_group_room: New group with the creator as first member
        add_members / remove_member: Group membership changes
        get_members / list_rooms: Read operations for REST
    """

    @classmethod
    def is_member(cls, user_id: int, room_id: int) -> bool:
        return RoomRepository.is_member(user_id, room_id)

    @classmethod
    def member_ids(cls, room_id: int) -> list[int]:
        return RoomRepository.get_member_ids(room_id)

    @classmethod
    def check_membership(cls, room_id: int, user_id: int) -> ChatRoom:
        """
        Return the room if ``user_id`` belongs to it.

        Raises:
            NotFoundError: Room does not exist
            PermissionDeniedError: User is not a member
        """
        room = RoomRepository.get_room(room_id)
        if not RoomRepository.is_member(user_id, room_id):
            raise PermissionDeniedError(
                "Access denied",
                details={"room_id": room_id},
            )
        return room

    @classmethod
    def resolve_members(cls, room_id: int, user_id: int) -> ServiceResult[list[int]]:
        """
        Authorize ``user_id`` against ``room_id`` and return all member ids.

        Returns:
            ServiceResult with member ids in join order

        Error codes:
            NOT_FOUND: Room does not exist
            FORBIDDEN: User is not a member
            STORAGE_ERROR: Store unavailable
        """
        try:
            cls.check_membership(room_id, user_id)
            return ServiceResult.success(RoomRepository.get_member_ids(room_id))
        except BaseApplicationError as e:
            return cls.handle_exception(e, f"resolve_members room={room_id} user={user_id}", logging.INFO)

    @classmethod
    def find_or_create_private_room(cls, user_id: int, other_user_id: int) -> ServiceResult[ChatRoom]:
        """
        Return the private room between two users, creating it if needed.

        Idempotent and symmetric: either user calling in either order gets
        the same room. Two concurrent first calls race on the unique pair
        constraint; the loser re-reads and returns the winner's room.

        Error codes:
            INVALID_ARGUMENT: Both ids are the same user
            NOT_FOUND: The other user does not exist
        """
        if user_id == other_user_id:
            return ServiceResult.failure(
                "Cannot create chat with yourself",
                error_code=ErrorCode.INVALID_ARGUMENT,
            )

        try:
            missing = {user_id, other_user_id} - UserRepository.existing_ids([user_id, other_user_id])
            if missing:
                raise NotFoundError("User not found", details={"user_ids": sorted(missing)})

            room = RoomRepository.find_private_room(user_id, other_user_id)
            if room is not None:
                cls.get_logger().debug(f"Found existing private room {room.id} for {user_id}/{other_user_id}")
                return ServiceResult.success(room)

            try:
                room = RoomRepository.create_private_room(user_id, other_user_id)
            except ConflictError:
                room = RoomRepository.find_private_room(user_id, other_user_id)
                if room is None:
                    raise
                cls.get_logger().info(f"Private room race for {user_id}/{other_user_id}, reusing room {room.id}")
            return ServiceResult.success(room)
        except BaseApplicationError as e:
            return cls.handle_exception(e, "find_or_create_private_room", logging.INFO)

    @classmethod
    def create_group_room(
        cls,
        creator_id: int,
        name: str,
        member_ids: list[int] | None = None,
    ) -> ServiceResult[ChatRoom]:
        """
        Create a group room.

        The creator is always a member and is listed first.

        Error codes:
            INVALID_ARGUMENT: Blank name
            NOT_FOUND: A listed member does not exist
        """
        validation = cls.validate_required(name=name)
        if validation is not None:
            return validation

        member_ids = list(member_ids or [])
        try:
            missing = set(member_ids) - UserRepository.existing_ids(member_ids)
            if missing:
                raise NotFoundError("User not found", details={"user_ids": sorted(missing)})

            room = RoomRepository.create_group_room(name.strip(), creator_id, member_ids)
            return ServiceResult.success(room)
        except BaseApplicationError as e:
            return cls.handle_exception(e, "create_group_room", logging.INFO)

    @classmethod
    def add_members(cls, room_id: int, requester_id: int, user_ids: list[int]) -> ServiceResult[list[int]]:
        """
        Add users to a group room. Only the room creator may add members.

        Returns:
            ServiceResult with the ids that were newly added

        Error codes:
            NOT_FOUND: Room or a listed user does not exist
            FORBIDDEN: Requester is not the creator
            INVALID_ARGUMENT: Room is private
        """
        try:
            room = RoomRepository.get_room(room_id)
            if room.is_private:
                return ServiceResult.failure(
                    "Private chats have exactly two members",
                    error_code=ErrorCode.INVALID_ARGUMENT,
                )
            if room.created_by_id != requester_id:
                raise PermissionDeniedError("Only the room creator can add members")

            missing = set(user_ids) - UserRepository.existing_ids(user_ids)
            if missing:
                raise NotFoundError("User not found", details={"user_ids": sorted(missing)})

            added = RoomRepository.add_members(room_id, user_ids)
            cls.get_logger().info(f"Added {added} to room {room_id}")
            return ServiceResult.success(added)
        except BaseApplicationError as e:
            return cls.handle_exception(e, "add_members", logging.INFO)

    @classmethod
    def remove_member(cls, room_id: int, requester_id: int, user_id: int) -> ServiceResult[bool]:
        """
        Remove a member from a group room.

        The creator may remove anyone else; any member may remove themselves.

        Error codes:
            NOT_FOUND: Room does not exist or user is not a member
            FORBIDDEN: Requester may not remove this user
            INVALID_ARGUMENT: Room is private
            CONFLICT: The creator tried to leave their own group
        """
        try:
            room = RoomRepository.get_room(room_id)
            if room.is_private:
                return ServiceResult.failure(
                    "Private chats have exactly two members",
                    error_code=ErrorCode.INVALID_ARGUMENT,
                )
            if requester_id != user_id and room.created_by_id != requester_id:
                raise PermissionDeniedError("You can only remove yourself from the chat")
            if user_id == room.created_by_id:
                raise ConflictError("The room creator cannot leave the group")

            if not RoomRepository.remove_member(room_id, user_id):
                raise NotFoundError("User is not a member", details={"user_id": user_id})
            cls.get_logger().info(f"Removed user {user_id} from room {room_id} (by {requester_id})")
            return ServiceResult.success(True)
        except BaseApplicationError as e:
            return cls.handle_exception(e, "remove_member", logging.INFO)

    @classmethod
    def get_members(cls, room_id: int, requester_id: int) -> ServiceResult[list[User]]:
        try:
            cls.check_membership(room_id, requester_id)
            return ServiceResult.success(RoomRepository.get_members(room_id))
        except BaseApplicationError as e:
            return cls.handle_exception(e, "get_members", logging.INFO)

    @classmethod
    def list_rooms(cls, user_id: int) -> ServiceResult[list[ChatRoom]]:
        try:
            return ServiceResult.success(RoomRepository.get_rooms_for_user(user_id))
        except BaseApplicationError as e:
            return cls.handle_exception(e, "list_rooms")


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Validate, authorize and persist a message
        get_history: Recent messages in chronological order (marks them read)
        mark_as_read: Record that a user has read a room
    """

    @classmethod
    def validate_content(cls, content) -> ServiceResult | None:
        """Failure result for blank or oversized content, None when valid."""
        if not isinstance(content, str) or not content.strip():
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code=ErrorCode.INVALID_ARGUMENT,
            )
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message content cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code=ErrorCode.INVALID_ARGUMENT,
            )
        return None

    @classmethod
    def send_message(cls, room_id: int, sender_id: int, content: str) -> ServiceResult[Message]:
        """
        Persist a message from a room member.

        Content is validated before any storage access. The stored content
        is the trimmed text.

        Error codes:
            INVALID_ARGUMENT: Blank or oversized content
            NOT_FOUND: Room does not exist
            FORBIDDEN: Sender is not a member
            STORAGE_ERROR: Store unavailable (nothing persisted)
        """
        validation = cls.validate_content(content)
        if validation is not None:
            return validation

        try:
            RoomService.check_membership(room_id, sender_id)
            message = MessageRepository.create_message(room_id, sender_id, content.strip())
            cls.get_logger().debug(f"Stored message {message.id} in room {room_id} from {sender_id}")
            return ServiceResult.success(message)
        except BaseApplicationError as e:
            return cls.handle_exception(e, f"send_message room={room_id} sender={sender_id}", logging.INFO)

    @classmethod
    def get_history(cls, room_id: int, user_id: int, limit: int | None = None) -> ServiceResult[list[Message]]:
        """
        Return the most recent ``limit`` messages, oldest first, then mark
        them read for ``user_id``.

        Error codes:
            NOT_FOUND: Room does not exist
            FORBIDDEN: User is not a member
        """
        if limit is None:
            limit = settings.CHAT_HISTORY_DEFAULT_LIMIT
        limit = max(1, min(limit, MESSAGE_CONFIG.HISTORY_MAX_LIMIT))

        try:
            RoomService.check_membership(room_id, user_id)
            messages = MessageRepository.get_messages(room_id, limit)
            MessageRepository.mark_read(room_id, user_id)
            return ServiceResult.success(messages)
        except BaseApplicationError as e:
            return cls.handle_exception(e, "get_history", logging.INFO)

    @classmethod
    def mark_as_read(cls, room_id: int, user_id: int) -> ServiceResult[int]:
        """Mark messages from other members as read. Returns how many changed."""
        try:
            RoomService.check_membership(room_id, user_id)
            return ServiceResult.success(MessageRepository.mark_read(room_id, user_id))
        except BaseApplicationError as e:
            return cls.handle_exception(e, "mark_as_read", logging.INFO)


class PresenceService(BaseService):
    """
    Persisted presence flags.

    The live registry (chat.presence) is authoritative while the process runs;
    these flags let REST clients and other processes see who is online.
    Failures here never abort a connection.
    """

    @classmethod
    def set_online(cls, user_id: int, is_online: bool) -> bool:
        """
        Persist ``is_online`` for a user.

        Returns:
            True if stored, False if the store failed (logged, not raised)
        """
        try:
            UserRepository.update_online_status(user_id, is_online)
            return True
        except (StorageError, NotFoundError) as e:
            cls.get_logger().warning(f"Could not persist presence for user {user_id} (online={is_online}): {e}")
            return False

    @classmethod
    def reset_all(cls) -> int:
        """Mark every user offline, e.g. after a restart dropped all connections."""
        count = UserRepository.reset_online_status()
        cls.get_logger().info(f"Reset presence for {count} users")
        return count
