"""SQLAlchemy adapter for credential persistence."""

from __future__ import annotations

from typing import cast

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from credential_manager.application.ports.credential_store_port import (
    CredentialRecord,
    CredentialStoreError,
    CredentialStorePort,
    CredentialWriteOutcome,
)
from credential_manager.infrastructure.db.metadata import credentials
from credential_manager.infrastructure.db.session import create_session_factory


class SqlAlchemyCredentialStore(CredentialStorePort):
    """Credential store backed by SQLAlchemy async sessions.

    Uniqueness of ``username`` is enforced by the database constraint
    ``uq_credentials_username``; a losing concurrent insert surfaces as
    ``IntegrityError`` and is reported as ``ALREADY_EXISTS``.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_if_absent(
        self,
        *,
        username: str,
        hashed_secret: str,
        created_at: int,
    ) -> CredentialWriteOutcome:
        statement = sa.insert(credentials).values(
            username=username,
            hashed_secret=hashed_secret,
            created_at=created_at,
        )
        async with self._session_factory() as session:
            try:
                await session.execute(statement)
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return CredentialWriteOutcome.ALREADY_EXISTS
            except (SQLAlchemyError, OSError) as exc:
                raise CredentialStoreError("failed to insert credential") from exc
        return CredentialWriteOutcome.CREATED

    async def replace_if_exists(
        self,
        *,
        username: str,
        hashed_secret: str,
        updated_at: int,
    ) -> CredentialWriteOutcome:
        statement = (
            sa.update(credentials)
            .where(credentials.c.username == username)
            .values(hashed_secret=hashed_secret, updated_at=updated_at)
        )
        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                await session.commit()
            except (SQLAlchemyError, OSError) as exc:
                raise CredentialStoreError("failed to update credential") from exc

        if result.rowcount != 1:
            return CredentialWriteOutcome.NOT_FOUND
        return CredentialWriteOutcome.UPDATED

    async def get_by_username(self, *, username: str) -> CredentialRecord | None:
        statement = sa.select(
            credentials.c.username,
            credentials.c.hashed_secret,
            credentials.c.created_at,
            credentials.c.updated_at,
        ).where(credentials.c.username == username).limit(1)

        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
            except (SQLAlchemyError, OSError) as exc:
                raise CredentialStoreError("failed to read credential") from exc

        row = result.mappings().first()
        if row is None:
            return None
        return _to_credential_record(row)

    async def ping(self) -> None:
        try:
            async with self._engine.connect() as connection:
                await connection.execute(sa.text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            raise CredentialStoreError("credential store unreachable") from exc

    async def dispose(self) -> None:
        """Close pooled connections held by the engine."""

        await self._engine.dispose()


def _to_credential_record(row: sa.RowMapping) -> CredentialRecord:
    raw_updated_at = row["updated_at"]
    return CredentialRecord(
        username=cast(str, row["username"]),
        hashed_secret=cast(str, row["hashed_secret"]),
        created_at=int(row["created_at"]),
        updated_at=None if raw_updated_at is None else int(raw_updated_at),
    )
