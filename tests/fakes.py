"""In-memory test doubles for the user repository."""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, List

from userbase.database import current_timestamp
from userbase.errors import DuplicateEmailError, DuplicateUsernameError, UserNotFoundError
from userbase.models import NewUser, User
from userbase.repository import UserRepository, check_page


class InMemoryUserRepository(UserRepository):
    """Dictionary-backed repository that honours the soft-delete contract."""

    def __init__(self) -> None:
        self._rows: Dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, new_user: NewUser) -> User:
        with self._lock:
            self._check_unique(new_user.username, new_user.email, exclude_id=None)
            now = current_timestamp()
            user = User(
                id=self._next_id,
                username=new_user.username,
                email=new_user.email,
                password_hash=new_user.password_hash,
                created_at=now,
                updated_at=now,
            )
            self._rows[user.id] = user
            self._next_id += 1
            return user

    def get_by_id(self, user_id: int) -> User:
        user = self._rows.get(user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError(user_id)
        return user

    def get_by_email(self, email: str) -> User:
        for user in self._active():
            if user.email == email:
                return user
        raise UserNotFoundError(email)

    def get_by_username(self, username: str) -> User:
        for user in self._active():
            if user.username == username:
                return user
        raise UserNotFoundError(username)

    def update(self, user: User) -> User:
        with self._lock:
            current = self.get_by_id(user.id)
            self._check_unique(user.username, user.email, exclude_id=user.id)
            stored = replace(
                current,
                username=user.username,
                email=user.email,
                password_hash=user.password_hash,
                updated_at=current_timestamp(),
            )
            self._rows[user.id] = stored
            return stored

    def delete(self, user_id: int) -> None:
        with self._lock:
            user = self._rows.get(user_id)
            if user is not None and not user.is_deleted:
                self._rows[user_id] = replace(user, deleted_at=current_timestamp())

    def list(self, limit: int, offset: int) -> List[User]:
        check_page(limit, offset)
        return self._active()[offset:offset + limit]

    def count(self) -> int:
        return len(self._active())

    def raw_rows(self) -> List[User]:
        """Every stored row, soft-deleted ones included."""

        return [self._rows[key] for key in sorted(self._rows)]

    def _active(self) -> List[User]:
        return [user for user in self.raw_rows() if not user.is_deleted]

    def _check_unique(self, username: str, email: str, *, exclude_id: int | None) -> None:
        for user in self._active():
            if user.id == exclude_id:
                continue
            if user.email == email:
                raise DuplicateEmailError()
            if user.username == username:
                raise DuplicateUsernameError()


__all__ = ["InMemoryUserRepository"]
