"""Async SQLAlchemy engine and session factory helpers."""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

_POOL_SIZE = 5
_POOL_MAX_OVERFLOW = 20
_POOL_RECYCLE_SECONDS = 300


def create_database_engine(database_url: str, *, password: str | None = None) -> AsyncEngine:
    """Create the async engine, injecting a separately configured password."""

    url = make_url(database_url)
    if password and url.password is None:
        url = url.set(password=password)

    engine_options: dict[str, Any] = {}
    if url.get_backend_name() != "sqlite":
        engine_options.update(
            pool_size=_POOL_SIZE,
            max_overflow=_POOL_MAX_OVERFLOW,
            pool_recycle=_POOL_RECYCLE_SECONDS,
        )
    return create_async_engine(url, **engine_options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a reusable async session factory bound to the provided engine."""

    return async_sessionmaker(engine, expire_on_commit=False)
