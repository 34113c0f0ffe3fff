"""
User persistence gateway.

Typed data access for users with no business logic. Every method raises from
core.exceptions: NotFoundError for missing users, ConflictError for duplicate
email/username, StorageError for any other database failure.

Usage:
    from authentication.repositories import UserRepository

    user = UserRepository.get_by_id(user_id)
    UserRepository.update_online_status(user.id, True)
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from core.decorators import translate_storage_errors
from core.exceptions import ConflictError, NotFoundError
from authentication.models import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Data access for User rows."""

    @staticmethod
    @translate_storage_errors
    def create_user(email: str, username: str, full_name: str = "", password: str | None = None) -> User:
        """
        Create a user.

        Raises:
            ConflictError: Email or username already taken
        """
        normalized = User.objects.normalize_email(email)
        if User.objects.filter(email__iexact=normalized).exists():
            raise ConflictError("Email already registered", details={"email": normalized})
        if User.objects.filter(username__iexact=username).exists():
            raise ConflictError("Username already taken", details={"username": username})

        with transaction.atomic():
            user = User.objects.create_user(
                email=normalized,
                username=username,
                full_name=full_name,
                password=password,
            )
        logger.info(f"Created user {user.id} ({user.username})")
        return user

    @staticmethod
    @translate_storage_errors
    def get_by_email(email: str) -> User:
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            raise NotFoundError("User not found", details={"email": email})
        return user

    @staticmethod
    @translate_storage_errors
    def get_by_id(user_id: int) -> User:
        user = User.objects.filter(id=user_id).first()
        if user is None:
            raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        return user

    @staticmethod
    @translate_storage_errors
    def existing_ids(user_ids) -> set[int]:
        """Return the subset of ``user_ids`` that exist."""
        return set(User.objects.filter(id__in=list(user_ids)).values_list("id", flat=True))

    @staticmethod
    @translate_storage_errors
    def update_online_status(user_id: int, is_online: bool) -> None:
        """
        Persist the presence flag and stamp last_seen.

        Raises:
            NotFoundError: User does not exist
        """
        updated = User.objects.filter(id=user_id).update(
            is_online=is_online,
            last_seen=timezone.now(),
        )
        if not updated:
            raise NotFoundError(f"User {user_id} not found", details={"user_id": user_id})

    @staticmethod
    @translate_storage_errors
    def list_users(exclude_user_id: int | None = None) -> list[User]:
        """All active users, optionally without the caller."""
        queryset = User.objects.filter(is_active=True)
        if exclude_user_id is not None:
            queryset = queryset.exclude(id=exclude_user_id)
        return list(queryset.order_by("full_name", "id"))

    @staticmethod
    @translate_storage_errors
    def reset_online_status() -> int:
        """Mark every user offline. Returns the number of rows changed."""
        return User.objects.filter(is_online=True).update(
            is_online=False,
            last_seen=timezone.now(),
        )
