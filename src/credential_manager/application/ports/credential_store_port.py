"""Port for credential persistence keyed by username."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


@dataclass(frozen=True)
class CredentialRecord:
    """Credential persistence model."""

    username: str
    hashed_secret: str
    created_at: int
    updated_at: int | None = None


class CredentialWriteOutcome(StrEnum):
    """Outcomes of atomic credential writes."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    UPDATED = "updated"
    NOT_FOUND = "not_found"


class CredentialStoreError(RuntimeError):
    """Raised when the persistence layer fails for reasons unrelated to existence."""


class CredentialStorePort(Protocol):
    """Credential store contract.

    Both writes are atomic with respect to username uniqueness; callers never
    lock around them.
    """

    async def create_if_absent(
        self,
        *,
        username: str,
        hashed_secret: str,
        created_at: int,
    ) -> CredentialWriteOutcome:
        """Insert a record unless one exists for username."""

    async def replace_if_exists(
        self,
        *,
        username: str,
        hashed_secret: str,
        updated_at: int,
    ) -> CredentialWriteOutcome:
        """Replace the stored secret of an existing record; never inserts."""

    async def get_by_username(self, *, username: str) -> CredentialRecord | None:
        """Return the record stored for username or None."""

    async def ping(self) -> None:
        """Probe store connectivity, raising CredentialStoreError on failure."""
