"""Create pins table.

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""

import sqlalchemy as sa
from alembic import op

revision = "004"
down_revision = "003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pins",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("property_record_id", sa.Uuid(), nullable=True),
        sa.Column("search_history_id", sa.Uuid(), nullable=True),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("address_hash", sa.String(64), nullable=False),
        sa.Column("latitude", sa.Double(), nullable=False),
        sa.Column("longitude", sa.Double(), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["property_record_id"], ["property_records.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["search_history_id"], ["search_history.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_pins_user_created", "pins", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_pins_user_created", table_name="pins")
    op.drop_table("pins")
