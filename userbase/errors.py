"""Exceptions raised by the user repository, service and password hasher."""

from __future__ import annotations


class UserbaseError(RuntimeError):
    """Base class for all errors raised by the user management core."""


class UserNotFoundError(UserbaseError):
    """Raised when no active user matches the requested key."""

    def __init__(self, key: object = None) -> None:
        message = "User not found" if key is None else f"User not found: {key}"
        super().__init__(message)
        self.key = key


class ConstraintViolationError(UserbaseError):
    """Raised when a write would break a uniqueness constraint."""

    field: str = ""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or f"{self.field} already exists")


class DuplicateEmailError(ConstraintViolationError):
    """Raised when another active user already owns the email address."""

    field = "email"


class DuplicateUsernameError(ConstraintViolationError):
    """Raised when another active user already owns the username."""

    field = "username"


class PasswordHashingError(UserbaseError):
    """Raised when the password hashing backend fails."""


class StorageError(UserbaseError):
    """Raised when the backing store fails for reasons other than constraints."""


__all__ = [
    "ConstraintViolationError",
    "DuplicateEmailError",
    "DuplicateUsernameError",
    "PasswordHashingError",
    "StorageError",
    "UserNotFoundError",
    "UserbaseError",
]
