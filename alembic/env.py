"""Alembic environment for the credential store schema."""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from sqlalchemy.engine import Connection

from alembic import context
from credential_manager.config.settings import load_settings
from credential_manager.infrastructure.db.metadata import metadata
from credential_manager.infrastructure.db.session import create_database_engine

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _migration_target() -> tuple[str, str | None]:
    """Return the database URL and password migrations should run against.

    An explicit ``sqlalchemy.url`` option wins; otherwise the runtime
    ``DATABASE_URL``/``DATABASE_PASSWORD`` settings are used.
    """

    explicit_url = config.get_main_option("sqlalchemy.url")
    if explicit_url:
        return explicit_url, None
    settings = load_settings()
    return settings.database_url, settings.database_password


def _apply_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=metadata)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    database_url, database_password = _migration_target()
    engine = create_database_engine(database_url, password=database_password)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_apply_migrations)
    finally:
        await engine.dispose()


def _migrate_offline() -> None:
    database_url, _ = _migration_target()
    context.configure(
        url=database_url,
        target_metadata=metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    _migrate_offline()
else:
    asyncio.run(_migrate_online())
