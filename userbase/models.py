"""Domain models for persisted user accounts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class NewUser:
    """A user account that has not been written to the store yet."""

    username: str
    email: str
    password_hash: str


@dataclass(frozen=True)
class User:
    """Represents a user account stored in the users table."""

    id: int
    username: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


__all__ = ["NewUser", "User"]
