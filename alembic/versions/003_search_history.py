"""Create search_history table.

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""

import sqlalchemy as sa
from alembic import op

revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "search_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("address_hash", sa.String(64), nullable=False),
        sa.Column("search_type", sa.String(10), nullable=False),
        sa.Column("property_record_id", sa.Uuid(), nullable=True),
        sa.Column("was_cache_hit", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("enriched", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("credits_consumed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["property_record_id"], ["property_records.id"], ondelete="SET NULL"),
        sa.CheckConstraint("search_type IN ('basic', 'smart')", name="ck_search_history_search_type"),
    )
    op.create_index("ix_search_history_user_created", "search_history", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_search_history_user_created", table_name="search_history")
    op.drop_table("search_history")
