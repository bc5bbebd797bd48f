"""Core package for the userbase user management service."""

from __future__ import annotations

from typing import Any

from .database import Database, resolve_database_path
from .errors import (
    ConstraintViolationError,
    DuplicateEmailError,
    DuplicateUsernameError,
    PasswordHashingError,
    StorageError,
    UserNotFoundError,
)


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the fully wired API application."""

    from .application import create_application as _create_application

    return _create_application(*args, **kwargs)


__all__ = [
    "ConstraintViolationError",
    "Database",
    "DuplicateEmailError",
    "DuplicateUsernameError",
    "PasswordHashingError",
    "StorageError",
    "UserNotFoundError",
    "create_app",
    "resolve_database_path",
]
