# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application error hierarchy.

Every business-rule violation raised by a service is an AppError. Each
class carries the HTTP status it maps to and a default machine-readable
error code; the API layer renders any AppError into the standard error
envelope without further translation.

Domain modules subclass these with their own default codes:

    class StudentNotFoundError(NotFoundError):
        default_code = "STUDENT_NOT_FOUND"
        default_message = "Student not found"

Example:
    >>> raise ConflictError("Username already exists", "DUPLICATE_USERNAME")
"""

from typing import Any


class AppError(Exception):
    """Base class for errors that map to an HTTP response.

    Attributes:
        status_code: HTTP status returned to the client.
        error_code: Machine-readable error code.
        message: Human-readable message.
        details: Optional structured details (field errors, ids).
        context: Extra values that are logged but never returned.
    """

    status_code: int = 500
    default_code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: Any = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.default_code
        self.details = details
        self.context = context or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.error_code!r}, {self.message!r})"


class BadRequestError(AppError):
    """Raised for malformed or semantically invalid input."""

    status_code = 400
    default_code = "BAD_REQUEST"
    default_message = "Bad request"


class ValidationError(BadRequestError):
    """Raised when request data fails validation."""

    default_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    status_code = 401
    default_code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(AppError):
    """Raised when the caller may not touch the resource."""

    status_code = 403
    default_code = "FORBIDDEN"
    default_message = "Access denied"


class NotFoundError(AppError):
    """Raised when a resource does not exist or is soft-deleted."""

    status_code = 404
    default_code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    """Raised when a unique key is already taken."""

    status_code = 409
    default_code = "CONFLICT"
    default_message = "Resource already exists"


class UnprocessableEntityError(AppError):
    """Raised when a request is well-formed but violates a business rule."""

    status_code = 422
    default_code = "UNPROCESSABLE_ENTITY"
    default_message = "Request cannot be processed"


class TenantNotFoundError(NotFoundError):
    """Raised when a referenced tenant does not exist."""

    default_code = "TENANT_NOT_FOUND"
    default_message = "Tenant not found"


class MissingTenantError(BadRequestError):
    """Raised when a SUPER_ADMIN omits the tenant of a tenant-owned row."""

    default_code = "MISSING_TENANT_ID"
    default_message = "tenant_id is required when creating as SUPER_ADMIN"


class CrossTenantAccessError(ForbiddenError):
    """Raised when a caller reaches into another tenant."""

    default_message = "Cannot access resources of another tenant"
