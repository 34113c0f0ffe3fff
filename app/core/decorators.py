"""
Custom decorators for persistence gateways.

Gateways must only ever raise errors from core.exceptions. These decorators
translate driver-level failures so services and consumers never see
``django.db`` exceptions directly.

Usage:
    from core.decorators import translate_storage_errors

    class RoomRepository:
        @staticmethod
        @translate_storage_errors
        def get_room(room_id: int) -> ChatRoom:
            ...
"""

from __future__ import annotations

import functools
import logging
from typing import Callable

from django.db import DatabaseError, IntegrityError

from core.exceptions import ConflictError, StorageError

logger = logging.getLogger(__name__)


def translate_storage_errors(func: Callable):
    """
    Convert database failures raised by ``func`` into StorageError.

    IntegrityError is reported as ConflictError, since in this schema it only
    fires on unique constraints. Application errors pass through unchanged.

    Example:
        @translate_storage_errors
        def create_message(room_id, sender_id, content):
            return Message.objects.create(...)
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError as e:
            logger.info(f"Integrity conflict in {func.__qualname__}: {e}")
            raise ConflictError(
                "Record conflicts with existing data",
                details={"operation": func.__qualname__},
            ) from e
        except DatabaseError as e:
            logger.error(f"Storage failure in {func.__qualname__}: {e}")
            raise StorageError(
                "Storage unavailable",
                details={"operation": func.__qualname__},
            ) from e

    return wrapper


def log_request(logger_name: str | None = None):
    """
    Log request/response for debugging.

    Logs request method, path, user, and response status at DEBUG.

    Example:
        @log_request()
        def health_check(request):
            ...
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(request, *args, **kwargs):
            log = logging.getLogger(logger_name or func.__module__)

            user_str = str(request.user) if hasattr(request, "user") else "anonymous"
            log.debug(
                f"Request: {request.method} {request.path}",
                extra={"user": user_str, "method": request.method, "path": request.path},
            )

            response = func(request, *args, **kwargs)

            status_code = getattr(response, "status_code", "unknown")
            log.debug(
                f"Response: {status_code} for {request.method} {request.path}",
                extra={"status_code": status_code, "method": request.method, "path": request.path},
            )
            return response

        return wrapper

    return decorator
