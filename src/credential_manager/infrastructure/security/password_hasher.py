"""Bcrypt password hasher adapter."""

from __future__ import annotations

import hashlib

import bcrypt

from credential_manager.application.ports.password_hasher_port import PasswordHasherPort

BCRYPT_COST = 12


class PasswordHashingError(RuntimeError):
    """Raised when a plaintext password cannot be turned into a stored form."""


class EmptyPasswordError(PasswordHashingError, ValueError):
    """Raised when hashing is requested for an empty password."""

    def __init__(self) -> None:
        super().__init__("password cannot be empty")


def _prehash(password: str) -> bytes:
    # bcrypt rejects inputs over 72 bytes; a hex SHA-256 digest is always 64.
    return hashlib.sha256(password.encode("utf-8")).hexdigest().encode("ascii")


class BcryptPasswordHasher(PasswordHasherPort):
    """Password hashing adapter using bcrypt.

    Stored forms are modular-crypt strings (``$2b$<cost>$<salt><digest>``), so
    verification reads the cost and salt back out of the stored value.
    """

    def __init__(self, *, rounds: int = BCRYPT_COST) -> None:
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        if not password:
            raise EmptyPasswordError()
        try:
            hashed = bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=self._rounds))
        except ValueError as exc:
            raise PasswordHashingError("bcrypt hashing failed") from exc
        return hashed.decode("utf-8")

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_prehash(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False
