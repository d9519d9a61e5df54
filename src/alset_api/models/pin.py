"""Pin model: a user's map pin on a looked-up property."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Double, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from alset_api.models.base import Base, UUIDMixin, utcnow


class Pin(Base, UUIDMixin):
    """A pin dropped by a user, optionally tied to the search that found the property."""

    __tablename__ = "pins"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    property_record_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("property_records.id", ondelete="SET NULL"), nullable=True
    )
    search_history_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("search_history.id", ondelete="SET NULL"), nullable=True
    )
    address: Mapped[str] = mapped_column(Text, nullable=False)
    address_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    latitude: Mapped[float] = mapped_column(Double, nullable=False)
    longitude: Mapped[float] = mapped_column(Double, nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (Index("ix_pins_user_created", "user_id", "created_at"),)
