"""Password hashing built on passlib's bcrypt support."""

from __future__ import annotations

from passlib.context import CryptContext
from passlib.exc import MissingBackendError, PasslibSecurityError

from .errors import PasswordHashingError

DEFAULT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


def password_fits(password: str) -> bool:
    return len(password.encode("utf-8")) <= MAX_PASSWORD_BYTES


class PasswordHasher:
    """One-way salted password hashing with constant-time verification.

    Every call to :meth:`hash` draws a fresh salt, which bcrypt embeds in the
    returned string together with the cost factor, so hashes of the same
    password never compare equal.
    """

    def __init__(self, *, rounds: int = DEFAULT_ROUNDS) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
            bcrypt__truncate_error=True,
        )
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        if not password_fits(password):
            raise PasswordHashingError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
        try:
            return self._context.hash(password)
        except (MissingBackendError, PasslibSecurityError, ValueError, TypeError, OSError) as exc:
            raise PasswordHashingError("Failed to hash password") from exc

    def verify(self, password: str, hashed: str) -> bool:
        if not hashed or not password_fits(password):
            return False
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            return False


__all__ = ["DEFAULT_ROUNDS", "MAX_PASSWORD_BYTES", "PasswordHasher", "password_fits"]
