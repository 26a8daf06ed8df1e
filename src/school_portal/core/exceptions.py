from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class OutOfRange(ValidationError):
    """Raised when a numeric value falls outside its allowed bounds."""

    def __init__(self, message: str, *, field: str):
        super().__init__(message)
        self.field = field


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class Unauthenticated(DomainError):
    """Raised when there is no valid session (never logged in, or timed out)."""

    def __init__(self, message: str = "Authentication required", *, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class Unauthorized(DomainError):
    """Raised when the current role lacks permission for an action."""


class SecurityTokenMismatch(DomainError):
    """Raised when a mutating request carries a missing or wrong CSRF token."""


class RecordNotFound(DomainError):
    """Raised when a record does not exist or is not visible to the caller."""


class DuplicateRecord(DomainError):
    """Raised by repositories when a unique key rejects an insert."""


class StorageUnavailable(DomainError):
    """Raised when the database cannot be reached or fails unexpectedly."""
