"""Create property_records table.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "property_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("address_hash", sa.String(64), nullable=False),
        sa.Column("normalized_address", sa.Text(), nullable=False),
        sa.Column("latitude", sa.Double(), nullable=True),
        sa.Column("longitude", sa.Double(), nullable=True),
        sa.Column("provider_data", _JSON, nullable=False, server_default=sa.text("'{}'")),
        sa.Column("provider_data_fresh", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("last_refreshed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_searches", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_searched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_pins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("address_hash", name="uq_property_records_address_hash"),
        sa.CheckConstraint("total_searches >= 0", name="ck_property_records_searches_nonneg"),
        sa.CheckConstraint("total_pins >= 0", name="ck_property_records_pins_nonneg"),
    )
    op.create_index("ix_property_records_total_searches", "property_records", ["total_searches"])
    op.create_index("ix_property_records_last_refreshed_at", "property_records", ["last_refreshed_at"])


def downgrade() -> None:
    op.drop_index("ix_property_records_last_refreshed_at", table_name="property_records")
    op.drop_index("ix_property_records_total_searches", table_name="property_records")
    op.drop_table("property_records")
