"""Credit ledger API endpoints for the authenticated user."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.core.dependencies import get_async_session, get_current_user_id
from alset_api.schemas.common import PaginationMeta
from alset_api.schemas.credits import (
    CreditBalanceResponse,
    CreditTransactionResponse,
    CreditUsageStatsResponse,
    MonthlyUsage,
    PaginatedCreditTransactionResponse,
)
from alset_api.services.credit_service import get_balance, get_usage_stats, list_transactions

credits_router = APIRouter(prefix="/credits", tags=["credits"])


@credits_router.get("/balance", response_model=CreditBalanceResponse)
async def credit_balance(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> CreditBalanceResponse:
    """Current balance; zeros for users who have never held credits."""
    account = await get_balance(session, user_id)
    if account is None:
        return CreditBalanceResponse(user_id=user_id)
    return CreditBalanceResponse.model_validate(account)


@credits_router.get("/history", response_model=PaginatedCreditTransactionResponse)
async def credit_history(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    user_id: Annotated[str, Depends(get_current_user_id)],
    page: int = Query(1, ge=1),  # noqa: B008
    page_size: int = Query(20, ge=1, le=100),  # noqa: B008
) -> PaginatedCreditTransactionResponse:
    """List the user's credit transactions, newest first."""
    transactions, total = await list_transactions(session, user_id, page=page, page_size=page_size)
    return PaginatedCreditTransactionResponse(
        items=[CreditTransactionResponse.model_validate(t) for t in transactions],
        pagination=PaginationMeta.build(total=total, page=page, page_size=page_size),
    )


@credits_router.get("/stats", response_model=CreditUsageStatsResponse)
async def credit_stats(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> CreditUsageStatsResponse:
    stats = await get_usage_stats(session, user_id)
    return CreditUsageStatsResponse(
        balance=stats.balance,
        total_earned=stats.total_earned,
        total_spent=stats.total_spent,
        transaction_count=stats.transaction_count,
        most_used_action=stats.most_used_action,
        average_credits_per_action=stats.average_credits_per_action,
        consumed_by_action=stats.consumed_by_action,
        monthly_usage=[MonthlyUsage(month=month, credits=credits) for month, credits in stats.monthly_usage],
    )
