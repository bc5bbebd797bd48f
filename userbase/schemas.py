"""Request and response models for user management."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator

from .hashing import MAX_PASSWORD_BYTES, password_fits

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 72


def _check_email(value: str) -> str:
    # Syntax check only; the address is stored exactly as supplied.
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"email is not a valid address: {exc}") from exc
    return value


def _check_password(value: str) -> str:
    if not password_fits(value):
        raise ValueError(f"password must not exceed {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
    return value


def _check_username(value: str) -> str:
    if not USERNAME_MIN_LENGTH <= len(value) <= USERNAME_MAX_LENGTH:
        raise ValueError(
            f"username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    return value


class CreateUserRequest(BaseModel):
    username: str = Field(..., description="Unique login name")
    email: str = Field(..., max_length=254, description="Unique email address")
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        description="Plaintext password, hashed before storage",
    )

    @field_validator("username")
    @classmethod
    def _validate_username(cls, value: str) -> str:
        return _check_username(value)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str) -> str:
        return _check_password(value)


class UpdateUserRequest(BaseModel):
    """Partial update: ``None`` or an empty string leaves the attribute unchanged."""

    username: Optional[str] = Field(default=None, description="New login name")
    email: Optional[str] = Field(default=None, max_length=254, description="New email address")

    @field_validator("username")
    @classmethod
    def _validate_username(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        return _check_username(value)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        return _check_email(value)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    users: List[UserResponse]
    limit: int
    offset: int


class UserProfileResponse(BaseModel):
    profile: UserResponse


__all__ = [
    "CreateUserRequest",
    "PASSWORD_MAX_LENGTH",
    "PASSWORD_MIN_LENGTH",
    "USERNAME_MAX_LENGTH",
    "USERNAME_MIN_LENGTH",
    "UpdateUserRequest",
    "UserListResponse",
    "UserProfileResponse",
    "UserResponse",
]
