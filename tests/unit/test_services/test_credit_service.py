"""Unit tests for the credit ledger service against in-memory SQLite."""

import uuid
from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.models.credit import CreditActionType
from alset_api.services.credit_service import (
    CreditTransactionNotFoundError,
    InsufficientCreditsError,
    add_credits,
    can_perform_action,
    consume_credits,
    ensure_account,
    get_balance,
    get_usage_stats,
    list_transactions,
    refund_credits,
)

USER = "user-1"


class TestAccounts:
    """Tests for get_balance and ensure_account."""

    async def test_no_account(self, async_session: AsyncSession) -> None:
        assert await get_balance(async_session, USER) is None

    async def test_ensure_account_is_idempotent(self, async_session: AsyncSession) -> None:
        first = await ensure_account(async_session, USER)
        second = await ensure_account(async_session, USER)
        assert first.id == second.id
        assert second.balance == 0


class TestAddCredits:
    """Tests for add_credits."""

    async def test_creates_account_and_records_transaction(self, async_session: AsyncSession) -> None:
        txn = await add_credits(async_session, USER, 10, CreditActionType.PURCHASE, description="Starter pack")

        assert txn.credits_added == 10
        assert txn.balance_after == 10
        assert txn.action_type == "purchase"
        account = await get_balance(async_session, USER)
        assert account is not None
        assert account.balance == 10
        assert account.total_earned == 10

    async def test_accumulates(self, async_session: AsyncSession) -> None:
        await add_credits(async_session, USER, 10)
        txn = await add_credits(async_session, USER, 5)
        assert txn.balance_after == 15

    @pytest.mark.parametrize("amount", [0, -3])
    async def test_rejects_non_positive(self, async_session: AsyncSession, amount: int) -> None:
        with pytest.raises(ValueError, match="positive"):
            await add_credits(async_session, USER, amount)


class TestConsumeCredits:
    """Tests for consume_credits."""

    async def test_debits_balance(self, async_session: AsyncSession) -> None:
        await add_credits(async_session, USER, 10)
        txn = await consume_credits(
            async_session, USER, CreditActionType.SEARCH_SMART, 3, reference_id="abc", details={"k": "v"}
        )

        assert txn.credits_consumed == 3
        assert txn.balance_after == 7
        assert txn.reference_id == "abc"
        assert txn.details == {"k": "v"}
        account = await get_balance(async_session, USER)
        assert account is not None
        assert account.balance == 7
        assert account.total_spent == 3

    async def test_insufficient_balance(self, async_session: AsyncSession) -> None:
        await add_credits(async_session, USER, 2)
        with pytest.raises(InsufficientCreditsError) as exc_info:
            await consume_credits(async_session, USER, CreditActionType.MARKET_ANALYSIS, 5)

        assert exc_info.value.required == 5
        assert exc_info.value.available == 2
        account = await get_balance(async_session, USER)
        assert account is not None
        assert account.balance == 2

    async def test_no_account_is_insufficient(self, async_session: AsyncSession) -> None:
        with pytest.raises(InsufficientCreditsError) as exc_info:
            await consume_credits(async_session, USER, CreditActionType.SEARCH_SMART, 1)
        assert exc_info.value.available == 0

    async def test_balance_never_negative(self, async_session: AsyncSession) -> None:
        await add_credits(async_session, USER, 3)
        successes = 0
        for _ in range(5):
            try:
                await consume_credits(async_session, USER, CreditActionType.SEARCH_SMART, 1)
                successes += 1
            except InsufficientCreditsError:
                pass

        assert successes == 3
        account = await get_balance(async_session, USER)
        assert account is not None
        assert account.balance == 0

    async def test_rejects_non_positive(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="positive"):
            await consume_credits(async_session, USER, CreditActionType.SEARCH_SMART, 0)


class TestRefunds:
    """Tests for refund_credits."""

    async def test_refund_restores_balance(self, async_session: AsyncSession) -> None:
        await add_credits(async_session, USER, 5)
        spent = await consume_credits(async_session, USER, CreditActionType.PROPERTY_INSIGHTS, 2)

        refund = await refund_credits(async_session, USER, spent.id, reason="Provider outage")

        assert refund.action_type == "refund"
        assert refund.credits_added == 2
        assert refund.balance_after == 5
        assert refund.reference_id == str(spent.id)
        assert refund.description == "Provider outage"
        account = await get_balance(async_session, USER)
        assert account is not None
        assert account.total_spent == 0

    async def test_refund_only_once(self, async_session: AsyncSession) -> None:
        await add_credits(async_session, USER, 5)
        spent = await consume_credits(async_session, USER, CreditActionType.SEARCH_SMART, 1)
        await refund_credits(async_session, USER, spent.id)

        with pytest.raises(ValueError, match="already refunded"):
            await refund_credits(async_session, USER, spent.id)

        account = await get_balance(async_session, USER)
        assert account is not None
        assert account.balance == 5

    async def test_unknown_transaction(self, async_session: AsyncSession) -> None:
        with pytest.raises(CreditTransactionNotFoundError):
            await refund_credits(async_session, USER, uuid.uuid4())

    async def test_other_users_transaction_not_found(self, async_session: AsyncSession) -> None:
        await add_credits(async_session, USER, 5)
        spent = await consume_credits(async_session, USER, CreditActionType.SEARCH_SMART, 1)
        with pytest.raises(CreditTransactionNotFoundError):
            await refund_credits(async_session, "someone-else", spent.id)

    async def test_cannot_refund_a_credit(self, async_session: AsyncSession) -> None:
        granted = await add_credits(async_session, USER, 5)
        with pytest.raises(ValueError, match="consumptions"):
            await refund_credits(async_session, USER, granted.id)


class TestQueries:
    """Tests for can_perform_action, list_transactions and get_usage_stats."""

    async def test_can_perform_action(self, async_session: AsyncSession) -> None:
        await add_credits(async_session, USER, 2)
        allowed = await can_perform_action(async_session, USER, 2)
        denied = await can_perform_action(async_session, USER, 5)

        assert allowed.allowed is True
        assert allowed.shortfall == 0
        assert denied.allowed is False
        assert denied.balance == 2
        assert denied.shortfall == 3

    async def test_can_perform_action_without_account(self, async_session: AsyncSession) -> None:
        check = await can_perform_action(async_session, USER, 1)
        assert check.allowed is False
        assert check.balance == 0

    async def test_list_transactions_paginates(self, async_session: AsyncSession) -> None:
        for _ in range(5):
            await add_credits(async_session, USER, 1)
        await add_credits(async_session, "other", 1)

        page_one, total = await list_transactions(async_session, USER, page=1, page_size=2)
        page_three, _ = await list_transactions(async_session, USER, page=3, page_size=2)

        assert total == 5
        assert len(page_one) == 2
        assert len(page_three) == 1
        assert all(t.user_id == USER for t in page_one + page_three)

    async def test_usage_stats(self, async_session: AsyncSession) -> None:
        await add_credits(async_session, USER, 10)
        await consume_credits(async_session, USER, CreditActionType.SEARCH_SMART, 2)
        await consume_credits(async_session, USER, CreditActionType.SEARCH_SMART, 2)
        await consume_credits(async_session, USER, CreditActionType.MARKET_ANALYSIS, 1)

        now = datetime.now(UTC)
        stats = await get_usage_stats(async_session, USER, now=now)

        assert stats.balance == 5
        assert stats.total_earned == 10
        assert stats.total_spent == 5
        assert stats.transaction_count == 4
        assert stats.most_used_action == "search_smart"
        assert stats.average_credits_per_action == pytest.approx(1.67)
        assert stats.consumed_by_action == {"search_smart": 4, "market_analysis": 1}
        assert len(stats.monthly_usage) == 6
        assert stats.monthly_usage[-1] == (now.strftime("%Y-%m"), 5)

    async def test_usage_stats_without_account(self, async_session: AsyncSession) -> None:
        stats = await get_usage_stats(async_session, USER)
        assert stats.balance == 0
        assert stats.most_used_action is None
        assert stats.average_credits_per_action == 0.0
        assert all(credits == 0 for _, credits in stats.monthly_usage)
