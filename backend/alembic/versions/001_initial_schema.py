"""Initial schema: users and CV records.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), default=""),
        sa.Column("last_name", sa.String(100), default=""),
        sa.Column("is_active", sa.Boolean(), default=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "cv_records",
        sa.Column("id", sa.String(24), primary_key=True),
        sa.Column("owner_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("storage_path", sa.String(1024), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("position", sa.String(255), default="Processing..."),
        sa.Column("summary", sa.Text(), default="Processing..."),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("owner_id", "storage_path", name="uq_cv_records_owner_path"),
    )
    op.create_index("ix_cv_records_owner_id", "cv_records", ["owner_id"])
    op.create_index("ix_cv_records_position", "cv_records", ["position"])
    op.create_index("idx_cv_records_owner_created", "cv_records", ["owner_id", "created_at"])
    op.create_index("idx_cv_records_owner_position", "cv_records", ["owner_id", "position"])


def downgrade() -> None:
    op.drop_table("cv_records")
    op.drop_table("users")
