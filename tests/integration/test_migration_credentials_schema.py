from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.config import Config

from alembic import command
from credential_manager.config.settings import load_settings


def _upgrade_head(tmp_path: Path) -> str:
    db_path = tmp_path / "credentials_migration.db"
    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_path}")

    command.upgrade(alembic_config, "head")
    return f"sqlite+pysqlite:///{db_path}"


def test_migration_creates_credentials_table(tmp_path: Path) -> None:
    database_url = _upgrade_head(tmp_path)
    engine = sa.create_engine(database_url)

    inspector = sa.inspect(engine)

    assert "credentials" in inspector.get_table_names()
    columns = {column["name"]: column for column in inspector.get_columns("credentials")}
    assert set(columns) == {"id", "username", "hashed_secret", "created_at", "updated_at"}
    assert columns["username"]["nullable"] is False
    assert columns["hashed_secret"]["nullable"] is False
    assert columns["updated_at"]["nullable"] is True


def test_migration_enforces_unique_username(tmp_path: Path) -> None:
    database_url = _upgrade_head(tmp_path)
    engine = sa.create_engine(database_url)

    inspector = sa.inspect(engine)
    uniques = {
        tuple(constraint["column_names"])
        for constraint in inspector.get_unique_constraints("credentials")
    }

    assert ("username",) in uniques


def test_migration_uses_database_url_setting_when_no_url_is_configured(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    db_path = tmp_path / "credentials_from_settings.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("ENVIRONMENT", "development")
    load_settings.cache_clear()

    try:
        command.upgrade(Config("alembic.ini"), "head")
    finally:
        load_settings.cache_clear()

    inspector = sa.inspect(sa.create_engine(f"sqlite+pysqlite:///{db_path}"))
    assert "credentials" in inspector.get_table_names()
