"""Typed failures raised by services.

Every error carries a stable ``code`` used in the structured error body.
Services raise; the HTTP layer maps each kind to a status code.
"""

from typing import Any


class StoreRatingsError(Exception):
    """Base class for all domain failures."""

    code = "ERROR"

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(StoreRatingsError):
    """Referenced user, store or rating does not exist."""

    code = "NOT_FOUND"


class AuthorizationError(StoreRatingsError):
    """Role or ownership does not permit the operation."""

    code = "FORBIDDEN"


class AuthenticationError(StoreRatingsError):
    """Bad credentials or an invalid/expired token."""

    code = "UNAUTHENTICATED"


class ConstraintError(StoreRatingsError):
    """Value out of range or an owner assignment the rules do not allow."""

    code = "CONSTRAINT_VIOLATION"


class ConflictError(StoreRatingsError):
    """Another record already uses the same name or email."""

    code = "CONFLICT"


class NoChangeError(StoreRatingsError):
    """Update request does not change anything."""

    code = "NO_CHANGE"
