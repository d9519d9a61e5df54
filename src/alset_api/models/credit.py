"""Credit ledger models: per-user balance and append-only transaction log."""

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from alset_api.models.base import Base, PortableJSON, TimestampMixin, UUIDMixin, utcnow


class CreditActionType(enum.StrEnum):
    """Reason a credit transaction was recorded."""

    SEARCH_SMART = "search_smart"
    PIN_CREATION = "pin_creation"
    MARKET_ANALYSIS = "market_analysis"
    PROPERTY_INSIGHTS = "property_insights"
    REFUND = "refund"
    BONUS = "bonus"
    PURCHASE = "purchase"
    SUBSCRIPTION = "subscription"


class CreditAccount(Base, UUIDMixin, TimestampMixin):
    """Current credit balance for one user of the external auth provider."""

    __tablename__ = "credit_accounts"

    user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (CheckConstraint("balance >= 0", name="ck_credit_accounts_balance_nonneg"),)


class CreditTransaction(Base, UUIDMixin):
    """Immutable record of a single debit or credit against an account."""

    __tablename__ = "credit_transactions"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    action_type: Mapped[str] = mapped_column(String(30), nullable=False)
    credits_consumed: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    credits_added: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    details: Mapped[dict] = mapped_column(PortableJSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_credit_transactions_user_created", "user_id", "created_at"),
        Index("ix_credit_transactions_reference", "reference_id"),
        # A consumption can be refunded at most once
        Index(
            "uq_credit_transactions_refund_reference",
            "reference_id",
            unique=True,
            postgresql_where=text("action_type = 'refund'"),
            sqlite_where=text("action_type = 'refund'"),
        ),
    )
