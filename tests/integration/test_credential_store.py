from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
import sqlalchemy as sa

from credential_manager.application.ports.credential_store_port import (
    CredentialStoreError,
    CredentialWriteOutcome,
)
from credential_manager.infrastructure.db.credential_store import SqlAlchemyCredentialStore
from credential_manager.infrastructure.db.schema import ensure_schema
from credential_manager.infrastructure.db.session import create_database_engine


async def _store(tmp_path: Path, filename: str) -> SqlAlchemyCredentialStore:
    engine = create_database_engine(f"sqlite+aiosqlite:///{tmp_path / filename}")
    await ensure_schema(engine)
    return SqlAlchemyCredentialStore(engine)


@pytest.mark.asyncio
async def test_ensure_schema_is_idempotent(tmp_path: Path) -> None:
    store = await _store(tmp_path, "schema_idempotent.db")
    await store.create_if_absent(username="user@example.com", hashed_secret="h1", created_at=1)

    await ensure_schema(store.engine)

    record = await store.get_by_username(username="user@example.com")
    assert record is not None
    await store.dispose()


@pytest.mark.asyncio
async def test_create_if_absent_inserts_once_then_reports_existing(tmp_path: Path) -> None:
    store = await _store(tmp_path, "create_once.db")

    first = await store.create_if_absent(
        username="user@example.com",
        hashed_secret="hash-one",
        created_at=100,
    )
    second = await store.create_if_absent(
        username="user@example.com",
        hashed_secret="hash-two",
        created_at=200,
    )

    assert first is CredentialWriteOutcome.CREATED
    assert second is CredentialWriteOutcome.ALREADY_EXISTS
    record = await store.get_by_username(username="user@example.com")
    assert record is not None
    assert record.hashed_secret == "hash-one"
    assert record.created_at == 100
    assert record.updated_at is None
    await store.dispose()


@pytest.mark.asyncio
async def test_username_is_case_sensitive_as_stored(tmp_path: Path) -> None:
    store = await _store(tmp_path, "case_sensitive.db")

    lower = await store.create_if_absent(
        username="user@example.com",
        hashed_secret="h1",
        created_at=1,
    )
    upper = await store.create_if_absent(
        username="User@example.com",
        hashed_secret="h2",
        created_at=1,
    )

    assert lower is CredentialWriteOutcome.CREATED
    assert upper is CredentialWriteOutcome.CREATED
    await store.dispose()


@pytest.mark.asyncio
async def test_concurrent_creates_leave_exactly_one_record(tmp_path: Path) -> None:
    store = await _store(tmp_path, "concurrent_create.db")

    outcomes = await asyncio.gather(
        *(
            store.create_if_absent(
                username="race@example.com",
                hashed_secret=f"hash-{index}",
                created_at=index,
            )
            for index in range(5)
        )
    )

    assert outcomes.count(CredentialWriteOutcome.CREATED) == 1
    assert outcomes.count(CredentialWriteOutcome.ALREADY_EXISTS) == 4
    async with store.engine.connect() as connection:
        count = await connection.scalar(sa.text("SELECT COUNT(*) FROM credentials"))
    assert count == 1
    await store.dispose()


@pytest.mark.asyncio
async def test_replace_if_exists_updates_secret_and_timestamp(tmp_path: Path) -> None:
    store = await _store(tmp_path, "replace_existing.db")
    await store.create_if_absent(username="user@example.com", hashed_secret="old", created_at=10)

    outcome = await store.replace_if_exists(
        username="user@example.com",
        hashed_secret="new",
        updated_at=20,
    )

    assert outcome is CredentialWriteOutcome.UPDATED
    record = await store.get_by_username(username="user@example.com")
    assert record is not None
    assert record.hashed_secret == "new"
    assert record.created_at == 10
    assert record.updated_at == 20
    await store.dispose()


@pytest.mark.asyncio
async def test_replace_if_exists_never_creates_missing_record(tmp_path: Path) -> None:
    store = await _store(tmp_path, "replace_missing.db")

    outcome = await store.replace_if_exists(
        username="ghost@example.com",
        hashed_secret="new",
        updated_at=20,
    )

    assert outcome is CredentialWriteOutcome.NOT_FOUND
    assert await store.get_by_username(username="ghost@example.com") is None
    await store.dispose()


@pytest.mark.asyncio
async def test_ping_succeeds_for_reachable_database(tmp_path: Path) -> None:
    store = await _store(tmp_path, "ping_ok.db")

    await store.ping()
    await store.dispose()


@pytest.mark.asyncio
async def test_unreachable_database_raises_store_error(tmp_path: Path) -> None:
    missing_dir = tmp_path / "missing" / "nested"
    engine = create_database_engine(f"sqlite+aiosqlite:///{missing_dir / 'store.db'}")
    store = SqlAlchemyCredentialStore(engine)

    with pytest.raises(CredentialStoreError):
        await store.ping()
    with pytest.raises(CredentialStoreError):
        await store.create_if_absent(
            username="user@example.com",
            hashed_secret="h",
            created_at=1,
        )
    await store.dispose()
