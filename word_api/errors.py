"""Domain error taxonomy shared by the data access layer and the HTTP surface.

Every failure that leaves the data access layer is one of these classes. The
``message`` attribute is safe to show to clients; raw backend diagnostics stay
on ``__cause__`` and in server-side logs.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFLICT = "CONFLICT"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    UNAVAILABLE = "UNAVAILABLE"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    UNKNOWN = "UNKNOWN"


class DomainError(Exception):
    """Base class for classified outcomes."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    default_message = "An internal error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists"


class ValidationFailedError(DomainError):
    kind = ErrorKind.VALIDATION_FAILED
    default_message = "Invalid input"


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class UnavailableError(DomainError):
    kind = ErrorKind.UNAVAILABLE
    default_message = "Database temporarily unavailable"


class PoolExhaustedError(UnavailableError):
    """No pooled connection became free within the configured timeout."""

    default_message = "Database temporarily unavailable"


class PermissionDeniedError(DomainError):
    kind = ErrorKind.PERMISSION_DENIED
    default_message = "Permission denied"


class UnknownError(DomainError):
    kind = ErrorKind.UNKNOWN
    default_message = "An internal database error occurred"


ERROR_CLASSES: dict[ErrorKind, type[DomainError]] = {
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.VALIDATION_FAILED: ValidationFailedError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.UNAVAILABLE: UnavailableError,
    ErrorKind.PERMISSION_DENIED: PermissionDeniedError,
    ErrorKind.UNKNOWN: UnknownError,
}
