"""Initial migration: users and verification_logs tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    # Unique index is the atomic guard against duplicate signups
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Create verification_logs table (append-only)
    op.create_table(
        "verification_logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("postcode", sa.Text(), nullable=True),
        sa.Column("suburb", sa.Text(), nullable=True),
        sa.Column("state", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_verification_logs_user_id", "verification_logs", ["user_id"])
    op.create_index("ix_verification_logs_timestamp", "verification_logs", ["timestamp"])


def downgrade() -> None:
    op.drop_table("verification_logs")
    op.drop_table("users")
