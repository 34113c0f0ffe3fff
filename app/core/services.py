"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with logging, validation and exception conversion

Pattern Comparison:
    - ServiceResult: expected failures (bad input, missing room, non-member)
    - Exceptions: raised by persistence gateways, converted at the service edge

Usage:
    from core.services import BaseService, ServiceResult

    class RoomService(BaseService):
        @classmethod
        def get_members(cls, room_id: int, user_id: int) -> ServiceResult[list]:
            try:
                cls.check_membership(room_id, user_id)
                return ServiceResult.success(RoomRepository.get_members(room_id))
            except BaseApplicationError as e:
                return cls.handle_exception(e, "get_members", log_level=logging.INFO)

    # In view
    result = RoomService.get_members(room_id, request.user.id)
    if result.success:
        return Response(UserSerializer(result.data, many=True).data)
    return Response(result.to_response(), status=http_status_for(result.error_code))

Related:
    - core.exceptions: error taxonomy and HTTP status mapping
    - core.decorators: storage error translation for gateways
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from core.exceptions import BaseApplicationError, ErrorCode

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code (see core.exceptions.ErrorCode)
        errors: Field-level errors for validation failures

    Usage:
        return ServiceResult.success(room)
        return ServiceResult.failure("Access denied", ErrorCode.FORBIDDEN)
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """Create a successful result carrying ``data``."""
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own message and code. Anything else is
        reported as INTERNAL_ERROR unless ``error_code`` overrides it.
        """
        if isinstance(exc, BaseApplicationError):
            return cls(
                success=False,
                error=exc.message,
                error_code=error_code or exc.error_code,
                errors=exc.details.get("errors") if exc.details else None,
            )
        return cls(
            success=False,
            error=str(exc),
            error_code=error_code or ErrorCode.INTERNAL_ERROR,
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Failures use the same shape as ``BaseApplicationError.to_dict``.
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {"error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def map(self, func: Callable[[Any], Any]) -> ServiceResult:
        """
        Transform the data if successful.

        Example:
            result = MessageService.get_history(room_id, user_id)
            serialized = result.map(lambda msgs: MessageSerializer(msgs, many=True).data)
        """
        if self.success:
            return ServiceResult.success(func(self.data))
        return self  # type: ignore

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Use @classmethod (no instance state)
        - Use ServiceResult for expected failures
        - Gateways raise core.exceptions errors; convert them with handle_exception
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get a logger named after the service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Convert exception to ServiceResult with logging.

        Expected application errors are logged without a traceback; anything
        else keeps ``exc_info`` so it can be debugged.

        Example:
            try:
                RoomRepository.add_members(room_id, user_ids)
            except BaseApplicationError as e:
                return cls.handle_exception(e, "add_members")
        """
        logger = cls.get_logger()
        message = f"{context}: {exc}" if context else str(exc)
        logger.log(log_level, message, exc_info=not isinstance(exc, BaseApplicationError))
        return ServiceResult.from_exception(exc)

    @classmethod
    def validate_required(cls, **kwargs) -> ServiceResult | None:
        """
        Validate that required fields are provided.

        Returns a failure result if any field is None or blank, None otherwise.

        Example:
            validation = cls.validate_required(name=name)
            if validation is not None:
                return validation
        """
        errors = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]

        if errors:
            return ServiceResult.failure(
                "Required fields missing",
                error_code=ErrorCode.INVALID_ARGUMENT,
                errors=errors,
            )
        return None
