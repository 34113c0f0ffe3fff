"""
Base exception classes for application-wide error handling.

Every failure that can reach a client carries one of a small set of
machine-readable codes. Persistence gateways raise these exceptions; services
convert expected ones into ``ServiceResult`` failures; the WebSocket consumer
turns failures into ``error`` events and REST views map codes to HTTP status.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed input (INVALID_ARGUMENT)
    ├── UnauthorizedError - Action before authenticating (UNAUTHORIZED)
    ├── PermissionDeniedError - Authenticated but not allowed (FORBIDDEN)
    ├── NotFoundError - Referenced entity missing (NOT_FOUND)
    ├── ConflictError - Uniqueness or state conflict (CONFLICT)
    └── StorageError - Durable store unavailable or failed (STORAGE_ERROR)

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(f"Room {room_id} not found", details={"room_id": room_id})

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=http_status_for(e.error_code))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class ErrorCode:
    """Machine-readable codes shared by services, REST and WebSocket errors."""

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, ids, etc.)
    """

    default_error_code: str = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Room 12 not found",
                "error_code": "NOT_FOUND",
                "details": {"room_id": 12}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input is malformed.

    Use for empty message content, unknown frame types, missing fields,
    or an operation that makes no sense for the target (adding members
    to a private room, opening a private room with yourself).
    """

    default_error_code: str = ErrorCode.INVALID_ARGUMENT


class UnauthorizedError(BaseApplicationError):
    """Raised when a connection acts before it has authenticated."""

    default_error_code: str = ErrorCode.UNAUTHORIZED


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when an authenticated user lacks permission for an operation.

    Example:
        if not RoomRepository.is_member(user_id, room_id):
            raise PermissionDeniedError("Access denied")
    """

    default_error_code: str = ErrorCode.FORBIDDEN


class NotFoundError(BaseApplicationError):
    """
    Raised when a referenced user, room or message does not exist.

    Use NotFoundError for single-entity lookups where existence is expected;
    list queries return empty results instead.
    """

    default_error_code: str = ErrorCode.NOT_FOUND


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current state.

    Use for:
    - Unique constraint violations (duplicate email, duplicate private pair)
    - Invalid state transitions (the creator leaving their own group)

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = ErrorCode.CONFLICT


class StorageError(BaseApplicationError):
    """
    Raised when the durable store fails.

    Gateways raise this instead of leaking ``django.db`` exceptions. Log the
    original error for debugging but don't expose it to clients.
    """

    default_error_code: str = ErrorCode.STORAGE_ERROR


HTTP_STATUS_BY_ERROR_CODE: dict[str, int] = {
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.STORAGE_ERROR: 503,
    ErrorCode.INTERNAL_ERROR: 500,
}


def http_status_for(error_code: str | None) -> int:
    """Return the HTTP status for an error code (400 when unknown)."""
    return HTTP_STATUS_BY_ERROR_CODE.get(error_code or "", 400)
