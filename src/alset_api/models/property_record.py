"""PropertyRecord model: cached provider payload and usage counters per normalized address."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Double, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from alset_api.models.base import Base, PortableJSON, TimestampMixin, UUIDMixin


class PropertyRecord(Base, UUIDMixin, TimestampMixin):
    """One row per unique normalized address, keyed by its hash."""

    __tablename__ = "property_records"

    address_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    normalized_address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Double, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Double, nullable=True)

    provider_data: Mapped[dict] = mapped_column(PortableJSON, nullable=False, default=dict)
    provider_data_fresh: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    last_refreshed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    total_searches: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_searched_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    total_pins: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        UniqueConstraint("address_hash", name="uq_property_records_address_hash"),
        CheckConstraint("total_searches >= 0", name="ck_property_records_searches_nonneg"),
        CheckConstraint("total_pins >= 0", name="ck_property_records_pins_nonneg"),
        Index("ix_property_records_total_searches", "total_searches"),
        Index("ix_property_records_last_refreshed_at", "last_refreshed_at"),
    )

    @property
    def has_provider_data(self) -> bool:
        return bool(self.provider_data)
