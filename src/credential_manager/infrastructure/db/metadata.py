"""SQLAlchemy metadata definitions for credential tables."""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()
sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")

credentials = sa.Table(
    "credentials",
    metadata,
    sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
    sa.Column("username", sa.Text(), nullable=False),
    sa.Column("hashed_secret", sa.Text(), nullable=False),
    sa.Column("created_at", sqlite_bigint, nullable=False),
    sa.Column("updated_at", sqlite_bigint, nullable=True),
    sa.UniqueConstraint("username", name="uq_credentials_username"),
)
