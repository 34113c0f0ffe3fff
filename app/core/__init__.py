"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks shared by the domain apps:

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError and its taxonomy (ValidationError, UnauthorizedError,
      PermissionDeniedError, NotFoundError, ConflictError, StorageError)
    - ErrorCode, http_status_for

Decorators (import from core.decorators):
    - translate_storage_errors: Database errors -> StorageError/ConflictError
    - log_request: Request/response logging decorator

Note:
    Django models are NOT imported here to avoid AppRegistryNotReady errors.
    Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    UnauthorizedError,
    ValidationError,
    http_status_for,
)

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ErrorCode",
    "ValidationError",
    "UnauthorizedError",
    "NotFoundError",
    "PermissionDeniedError",
    "ConflictError",
    "StorageError",
    "http_status_for",
]
