"""Pydantic v2 schemas for the credit ledger."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from alset_api.schemas.common import PaginationMeta


class CreditBalanceResponse(BaseModel):
    """Current credit balance. All zeros for users without an account."""

    model_config = {"from_attributes": True}

    user_id: str
    balance: int = 0
    total_earned: int = 0
    total_spent: int = 0


class CreditTransactionResponse(BaseModel):
    """A single ledger entry."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    action_type: str
    credits_consumed: int
    credits_added: int
    balance_after: int
    description: str | None = None
    reference_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class PaginatedCreditTransactionResponse(BaseModel):
    """Paginated list of ledger entries."""

    items: list[CreditTransactionResponse]
    pagination: PaginationMeta


class MonthlyUsage(BaseModel):
    month: str = Field(description="Calendar month as YYYY-MM")
    credits: int


class CreditUsageStatsResponse(BaseModel):
    """Aggregate credit usage."""

    balance: int
    total_earned: int
    total_spent: int
    transaction_count: int
    most_used_action: str | None = None
    average_credits_per_action: float
    consumed_by_action: dict[str, int] = Field(default_factory=dict)
    monthly_usage: list[MonthlyUsage] = Field(default_factory=list)
