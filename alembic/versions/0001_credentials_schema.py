"""Create the credentials table keyed uniquely by username."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_credentials_schema"
down_revision = None
branch_labels = None
depends_on = None

sqlite_bigint = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "credentials",
        sa.Column("id", sqlite_bigint, primary_key=True, autoincrement=True),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("hashed_secret", sa.Text(), nullable=False),
        sa.Column("created_at", sqlite_bigint, nullable=False),
        sa.Column("updated_at", sqlite_bigint, nullable=True),
        sa.UniqueConstraint("username", name="uq_credentials_username"),
    )


def downgrade() -> None:
    op.drop_table("credentials")
