"""Idempotent schema creation run once at startup."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from credential_manager.infrastructure.db.metadata import metadata


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create missing credential tables; existing tables are left untouched."""

    async with engine.begin() as connection:
        await connection.run_sync(metadata.create_all, checkfirst=True)
