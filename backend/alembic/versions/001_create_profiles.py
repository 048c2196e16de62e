"""Create profiles table with a unique index on usr_name.

Revision ID: 001_create_profiles
Revises: None
Create Date: 2026-10-19

The unique index is what rejects a second registration of the same usrName
when two requests both pass the existence pre-check.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_create_profiles"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("usr_name", sa.String(100), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("favorite_exercise", sa.String(200), nullable=True),
        sa.Column("age", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_profiles_usr_name", "profiles", ["usr_name"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_profiles_usr_name", table_name="profiles")
    op.drop_table("profiles")
