"""SearchHistory model: one row per basic or smart search a user runs."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from alset_api.models.base import Base, UUIDMixin, utcnow


class SearchHistory(Base, UUIDMixin):
    """A user's search against the property cache."""

    __tablename__ = "search_history"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    address_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    search_type: Mapped[str] = mapped_column(String(10), nullable=False)
    property_record_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("property_records.id", ondelete="SET NULL"), nullable=True
    )
    was_cache_hit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    enriched: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    credits_consumed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        CheckConstraint("search_type IN ('basic', 'smart')", name="ck_search_history_search_type"),
        Index("ix_search_history_user_created", "user_id", "created_at"),
    )
