from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``extra`` carries additional JSON fields that the HTTP layer merges into
    the error body (e.g. the list of meal windows on a rejected check-in).
    """

    status_code = 500

    def __init__(self, message: str = "", *, extra: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.extra = dict(extra or {})


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid or the session is missing."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a referenced row does not exist (or is not visible)."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when a uniqueness rule would be violated."""

    status_code = 409


class DuplicateEntryError(Exception):
    """Raised by repositories when the database rejects a duplicate key."""
