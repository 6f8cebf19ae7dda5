"""Application service for credential signup and reset use-cases."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from credential_manager.application.ports.credential_store_port import (
    CredentialStorePort,
    CredentialWriteOutcome,
)
from credential_manager.application.ports.password_hasher_port import PasswordHasherPort
from credential_manager.domain.credentials import (
    ViolationReason,
    validate_password,
    validate_username,
)

logger = logging.getLogger(__name__)


class CredentialOutcome(StrEnum):
    """Supported signup/reset outcomes."""

    CREATED = "created"
    UPDATED = "updated"
    INVALID_INPUT = "invalid_input"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class CredentialResult:
    """Use-case result model.

    ``field`` and ``reason`` are set only for ``INVALID_INPUT``.
    """

    outcome: CredentialOutcome
    field: str | None = None
    reason: ViolationReason | None = None


def _unix_now() -> int:
    return int(time.time())


def check_credentials(*, username: str, password: str) -> CredentialResult | None:
    """Return an INVALID_INPUT result for the first violated rule, if any."""

    username_violation = validate_username(username)
    if username_violation is not None:
        return CredentialResult(
            outcome=CredentialOutcome.INVALID_INPUT,
            field="username",
            reason=username_violation,
        )
    password_violation = validate_password(password)
    if password_violation is not None:
        return CredentialResult(
            outcome=CredentialOutcome.INVALID_INPUT,
            field="password",
            reason=password_violation,
        )
    return None


class CredentialService:
    """Orchestrate validate, hash and persist for signup and reset.

    Store and hashing failures propagate to the caller unchanged; nothing is
    retried.
    """

    def __init__(
        self,
        *,
        store: CredentialStorePort,
        password_hasher: PasswordHasherPort,
        clock: Callable[[], int] = _unix_now,
    ) -> None:
        self._store = store
        self._password_hasher = password_hasher
        self._clock = clock

    async def signup(self, *, username: str, password: str) -> CredentialResult:
        """Create a credential for a username that does not exist yet."""

        invalid = check_credentials(username=username, password=password)
        if invalid is not None:
            logger.info(
                "signup_rejected username=%s field=%s reason=%s",
                username,
                invalid.field,
                invalid.reason,
            )
            return invalid

        hashed_secret = await self._hash(password)
        outcome = await self._store.create_if_absent(
            username=username,
            hashed_secret=hashed_secret,
            created_at=self._clock(),
        )
        if outcome is CredentialWriteOutcome.ALREADY_EXISTS:
            logger.info("signup_conflict username=%s", username)
            return CredentialResult(outcome=CredentialOutcome.ALREADY_EXISTS)

        logger.info("signup_created username=%s", username)
        return CredentialResult(outcome=CredentialOutcome.CREATED)

    async def reset(self, *, username: str, password: str) -> CredentialResult:
        """Replace the credential of an existing username."""

        invalid = check_credentials(username=username, password=password)
        if invalid is not None:
            logger.info(
                "reset_rejected username=%s field=%s reason=%s",
                username,
                invalid.field,
                invalid.reason,
            )
            return invalid

        hashed_secret = await self._hash(password)
        outcome = await self._store.replace_if_exists(
            username=username,
            hashed_secret=hashed_secret,
            updated_at=self._clock(),
        )
        if outcome is CredentialWriteOutcome.NOT_FOUND:
            logger.warning("reset_target_missing username=%s", username)
            return CredentialResult(outcome=CredentialOutcome.NOT_FOUND)

        logger.info("reset_updated username=%s", username)
        return CredentialResult(outcome=CredentialOutcome.UPDATED)

    async def check_store(self) -> None:
        """Probe the credential store; raises on connectivity failure."""

        await self._store.ping()

    async def _hash(self, password: str) -> str:
        # bcrypt is CPU-bound and must not run on the event loop.
        return await asyncio.to_thread(self._password_hasher.hash_password, password)
