"""Persistence of user accounts with soft-delete semantics."""
from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .database import Database, current_timestamp, parse_datetime, serialize_datetime
from .errors import (
    ConstraintViolationError,
    DuplicateEmailError,
    DuplicateUsernameError,
    StorageError,
    UserNotFoundError,
)
from .models import NewUser, User

_USER_COLUMNS = "id, username, email, password_hash, created_at, updated_at, deleted_at"


class UserRepository(ABC):
    """Storage contract for user accounts.

    Reads only ever return rows whose ``deleted_at`` marker is unset. Lookups
    that miss raise :class:`UserNotFoundError`; writes that collide with an
    active row raise :class:`DuplicateEmailError` or
    :class:`DuplicateUsernameError`. Any other store failure surfaces as
    :class:`StorageError`.
    """

    @abstractmethod
    def create(self, new_user: NewUser) -> User:
        """Insert a user and return it with the store-assigned fields."""

    @abstractmethod
    def get_by_id(self, user_id: int) -> User:
        """Return the active user with ``user_id``."""

    @abstractmethod
    def get_by_email(self, email: str) -> User:
        """Return the active user whose email matches exactly (case-sensitive)."""

    @abstractmethod
    def get_by_username(self, username: str) -> User:
        """Return the active user whose username matches exactly."""

    @abstractmethod
    def update(self, user: User) -> User:
        """Persist username, email and password hash for an existing active user.

        Refreshes ``updated_at`` and returns the stored row. A missing or
        soft-deleted id raises :class:`UserNotFoundError`; updates never
        insert.
        """

    @abstractmethod
    def delete(self, user_id: int) -> None:
        """Soft delete the user. Missing or already deleted ids are a no-op."""

    @abstractmethod
    def list(self, limit: int, offset: int) -> List[User]:
        """Return at most ``limit`` active users in id order after skipping ``offset``."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of active users."""


def check_page(limit: int, offset: int) -> None:
    if limit < 0:
        raise ValueError("limit must not be negative")
    if offset < 0:
        raise ValueError("offset must not be negative")


def _constraint_error(exc: sqlite3.IntegrityError) -> ConstraintViolationError:
    message = str(exc)
    if "users.email" in message:
        return DuplicateEmailError()
    if "users.username" in message:
        return DuplicateUsernameError()
    return ConstraintViolationError(message)


class SQLiteUserRepository(UserRepository):
    """User repository backed by the ``users`` table of a :class:`Database`."""

    def __init__(self, database: Database) -> None:
        self._database = database

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            with self._database.connect() as conn:
                yield conn
        except sqlite3.IntegrityError as exc:
            raise _constraint_error(exc) from exc
        except sqlite3.Error as exc:
            raise StorageError(f"User storage failed: {exc}") from exc

    def create(self, new_user: NewUser) -> User:
        now = serialize_datetime(current_timestamp())
        with self._connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO users (username, email, password_hash, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (new_user.username, new_user.email, new_user.password_hash, now, now),
            )
            row = self._fetch_active(conn, "id = ?", cursor.lastrowid)
        if row is None:
            raise StorageError("Failed to load user after creation")
        return self._row_to_user(row)

    def get_by_id(self, user_id: int) -> User:
        return self._get_one("id = ?", user_id)

    def get_by_email(self, email: str) -> User:
        return self._get_one("email = ?", email)

    def get_by_username(self, username: str) -> User:
        return self._get_one("username = ?", username)

    def update(self, user: User) -> User:
        now = serialize_datetime(current_timestamp())
        with self._connection() as conn:
            cursor = conn.execute(
                """
                UPDATE users
                   SET username = ?, email = ?, password_hash = ?, updated_at = ?
                 WHERE id = ? AND deleted_at IS NULL
                """,
                (user.username, user.email, user.password_hash, now, user.id),
            )
            if cursor.rowcount == 0:
                raise UserNotFoundError(user.id)
            row = self._fetch_active(conn, "id = ?", user.id)
        if row is None:
            raise UserNotFoundError(user.id)
        return self._row_to_user(row)

    def delete(self, user_id: int) -> None:
        now = serialize_datetime(current_timestamp())
        with self._connection() as conn:
            conn.execute(
                "UPDATE users SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                (now, user_id),
            )

    def list(self, limit: int, offset: int) -> List[User]:
        check_page(limit, offset)
        with self._connection() as conn:
            rows = conn.execute(
                f"""
                SELECT {_USER_COLUMNS} FROM users
                 WHERE deleted_at IS NULL
                 ORDER BY id
                 LIMIT ? OFFSET ?
                """,
                (limit, offset),
            ).fetchall()
        return [self._row_to_user(row) for row in rows]

    def count(self) -> int:
        with self._connection() as conn:
            row = conn.execute("SELECT COUNT(*) FROM users WHERE deleted_at IS NULL").fetchone()
        return int(row[0])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _get_one(self, condition: str, value: object) -> User:
        with self._connection() as conn:
            row = self._fetch_active(conn, condition, value)
        if row is None:
            raise UserNotFoundError(value)
        return self._row_to_user(row)

    @staticmethod
    def _fetch_active(conn: sqlite3.Connection, condition: str, value: object) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE {condition} AND deleted_at IS NULL",
            (value,),
        ).fetchone()

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        deleted_at = row["deleted_at"]
        return User(
            id=int(row["id"]),
            username=str(row["username"]),
            email=str(row["email"]),
            password_hash=str(row["password_hash"]),
            created_at=parse_datetime(str(row["created_at"])),
            updated_at=parse_datetime(str(row["updated_at"])),
            deleted_at=parse_datetime(str(deleted_at)) if deleted_at is not None else None,
        )


__all__ = ["SQLiteUserRepository", "UserRepository", "check_page"]
