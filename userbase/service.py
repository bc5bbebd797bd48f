"""Business rules for the user account lifecycle."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from .errors import DuplicateEmailError, DuplicateUsernameError, UserNotFoundError
from .hashing import PasswordHasher
from .models import NewUser, User
from .repository import UserRepository
from .schemas import CreateUserRequest, UpdateUserRequest, UserResponse


class UserService:
    """Coordinate uniqueness checks, partial updates and persistence.

    The uniqueness checks here are a read-then-write sequence and are not
    atomic with the write that follows. Two concurrent requests for the same
    email or username can both pass the check; the store's partial unique
    indexes reject the second insert, and the repository reports it as the
    same duplicate error the check would have raised.
    """

    def __init__(self, repository: UserRepository, hasher: PasswordHasher) -> None:
        self._repository = repository
        self._hasher = hasher

    def create_user(self, request: CreateUserRequest) -> UserResponse:
        if self._find_by_email(request.email) is not None:
            raise DuplicateEmailError()
        if self._find_by_username(request.username) is not None:
            raise DuplicateUsernameError()

        password_hash = self._hasher.hash(request.password)
        user = self._repository.create(
            NewUser(username=request.username, email=request.email, password_hash=password_hash)
        )
        return self._to_response(user)

    def get_user(self, user_id: int) -> UserResponse:
        return self._to_response(self._repository.get_by_id(user_id))

    def update_user(self, user_id: int, request: UpdateUserRequest) -> UserResponse:
        user = self._repository.get_by_id(user_id)

        if request.username and request.username != user.username:
            existing = self._find_by_username(request.username)
            if existing is not None and existing.id != user_id:
                raise DuplicateUsernameError()
            user = replace(user, username=request.username)

        if request.email and request.email != user.email:
            existing = self._find_by_email(request.email)
            if existing is not None and existing.id != user_id:
                raise DuplicateEmailError()
            user = replace(user, email=request.email)

        return self._to_response(self._repository.update(user))

    def delete_user(self, user_id: int) -> None:
        self._repository.delete(user_id)

    def list_users(self, limit: int, offset: int) -> List[UserResponse]:
        return [self._to_response(user) for user in self._repository.list(limit, offset)]

    def verify_password(self, user_id: int, password: str) -> bool:
        """Return ``True`` if ``password`` matches the stored hash for the user."""

        try:
            user = self._repository.get_by_id(user_id)
        except UserNotFoundError:
            return False
        return self._hasher.verify(password, user.password_hash)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _find_by_email(self, email: str) -> Optional[User]:
        try:
            return self._repository.get_by_email(email)
        except UserNotFoundError:
            return None

    def _find_by_username(self, username: str) -> Optional[User]:
        try:
            return self._repository.get_by_username(username)
        except UserNotFoundError:
            return None

    @staticmethod
    def _to_response(user: User) -> UserResponse:
        return UserResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


__all__ = ["UserService"]
