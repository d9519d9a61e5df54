"""Credit service: per-user balances and the transaction ledger.

Balances only change through single conditional ``UPDATE ... RETURNING``
statements, so concurrent debits are serialized by the database row lock
and a debit that would overdraw the account matches no row.
"""

import uuid
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.models.credit import CreditAccount, CreditActionType, CreditTransaction

_MONTHLY_USAGE_MONTHS = 6


class InsufficientCreditsError(Exception):
    """The account balance does not cover the requested debit."""

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(f"Insufficient credits: {required} required, {available} available")


class CreditTransactionNotFoundError(LookupError):
    """No transaction with the given id exists for the user."""


@dataclass
class ActionCheck:
    """Whether a user can afford an action, and by how much they fall short."""

    allowed: bool
    balance: int
    required: int

    @property
    def shortfall(self) -> int:
        return max(self.required - self.balance, 0)


@dataclass
class UsageStats:
    """Aggregate credit usage for one user."""

    balance: int = 0
    total_earned: int = 0
    total_spent: int = 0
    transaction_count: int = 0
    most_used_action: str | None = None
    average_credits_per_action: float = 0.0
    consumed_by_action: dict[str, int] = field(default_factory=dict)
    monthly_usage: list[tuple[str, int]] = field(default_factory=list)


def _require_positive(amount: int) -> None:
    if amount <= 0:
        msg = "Credit amount must be positive"
        raise ValueError(msg)


async def get_balance(session: AsyncSession, user_id: str) -> CreditAccount | None:
    """Return the user's credit account, or None if they have never held credits."""
    result = await session.execute(select(CreditAccount).where(CreditAccount.user_id == user_id))
    return result.scalar_one_or_none()


async def ensure_account(session: AsyncSession, user_id: str) -> CreditAccount:
    """Return the user's account, creating an empty one if needed.

    Concurrent first calls for one user resolve to a single row.
    """
    dialect = session.get_bind().dialect.name
    insert_fn = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = (
        insert_fn(CreditAccount)
        .values(user_id=user_id, balance=0, total_earned=0, total_spent=0)
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    await session.execute(stmt)
    result = await session.execute(
        select(CreditAccount).where(CreditAccount.user_id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def consume_credits(
    session: AsyncSession,
    user_id: str,
    action_type: CreditActionType,
    amount: int,
    *,
    description: str | None = None,
    reference_id: str | None = None,
    details: dict[str, Any] | None = None,
    commit: bool = True,
) -> CreditTransaction:
    """Debit credits and record the transaction.

    Args:
        session: Database session.
        user_id: Auth provider subject.
        action_type: Action the credits pay for.
        amount: Credits to debit (positive).
        description: Optional human-readable description.
        reference_id: Optional id of the entity the debit relates to.
        details: Optional JSON metadata.
        commit: Commit the session after writing.

    Returns:
        The recorded CreditTransaction.

    Raises:
        ValueError: If amount is not positive.
        InsufficientCreditsError: If the balance does not cover ``amount``.
    """
    _require_positive(amount)

    stmt = (
        update(CreditAccount)
        .where(CreditAccount.user_id == user_id, CreditAccount.balance >= amount)
        .values(
            balance=CreditAccount.balance - amount,
            total_spent=CreditAccount.total_spent + amount,
        )
        .returning(CreditAccount.balance)
        .execution_options(synchronize_session=False)
    )
    new_balance = (await session.execute(stmt)).scalar_one_or_none()
    if new_balance is None:
        account = await get_balance(session, user_id)
        available = account.balance if account is not None else 0
        logger.info(f"Credit debit refused for user {user_id}: {amount} required, {available} available")
        raise InsufficientCreditsError(required=amount, available=available)

    transaction = CreditTransaction(
        user_id=user_id,
        action_type=CreditActionType(action_type).value,
        credits_consumed=amount,
        credits_added=0,
        balance_after=new_balance,
        description=description,
        reference_id=reference_id,
        details=details or {},
    )
    session.add(transaction)
    await session.flush()
    if commit:
        await session.commit()

    logger.info(f"Consumed {amount} credits from user {user_id} for {transaction.action_type}")
    return transaction


async def _credit_account(
    session: AsyncSession,
    user_id: str,
    amount: int,
    *,
    earned: bool,
) -> int:
    await ensure_account(session, user_id)
    values: dict[str, Any] = {"balance": CreditAccount.balance + amount}
    if earned:
        values["total_earned"] = CreditAccount.total_earned + amount
    else:
        values["total_spent"] = CreditAccount.total_spent - amount
    stmt = (
        update(CreditAccount)
        .where(CreditAccount.user_id == user_id)
        .values(**values)
        .returning(CreditAccount.balance)
        .execution_options(synchronize_session=False)
    )
    return (await session.execute(stmt)).scalar_one()


async def add_credits(
    session: AsyncSession,
    user_id: str,
    amount: int,
    action_type: CreditActionType = CreditActionType.BONUS,
    *,
    description: str | None = None,
    reference_id: str | None = None,
    details: dict[str, Any] | None = None,
    commit: bool = True,
) -> CreditTransaction:
    """Credit an account (creating it if needed) and record the transaction.

    Raises:
        ValueError: If amount is not positive.
    """
    _require_positive(amount)
    new_balance = await _credit_account(session, user_id, amount, earned=True)

    transaction = CreditTransaction(
        user_id=user_id,
        action_type=CreditActionType(action_type).value,
        credits_consumed=0,
        credits_added=amount,
        balance_after=new_balance,
        description=description,
        reference_id=reference_id,
        details=details or {},
    )
    session.add(transaction)
    await session.flush()
    if commit:
        await session.commit()

    logger.info(f"Added {amount} credits to user {user_id} ({transaction.action_type})")
    return transaction


async def refund_credits(
    session: AsyncSession,
    user_id: str,
    transaction_id: uuid.UUID,
    reason: str | None = None,
) -> CreditTransaction:
    """Refund a consumption transaction in full.

    A consumption is refunded at most once; the refund transaction carries
    the original transaction id as its ``reference_id``.

    Args:
        session: Database session.
        user_id: Owner of the transaction.
        transaction_id: Id of the consumption to refund.
        reason: Optional reason stored as the refund description.

    Returns:
        The refund transaction.

    Raises:
        CreditTransactionNotFoundError: If the user has no such transaction.
        ValueError: If the transaction is not a consumption or was already refunded.
    """
    result = await session.execute(
        select(CreditTransaction).where(
            CreditTransaction.id == transaction_id,
            CreditTransaction.user_id == user_id,
        )
    )
    original = result.scalar_one_or_none()
    if original is None:
        msg = f"Credit transaction {transaction_id} not found"
        raise CreditTransactionNotFoundError(msg)
    if original.credits_consumed <= 0:
        msg = "Only credit consumptions can be refunded"
        raise ValueError(msg)

    reference_id = str(original.id)
    existing = await session.execute(
        select(CreditTransaction.id).where(
            CreditTransaction.action_type == CreditActionType.REFUND.value,
            CreditTransaction.reference_id == reference_id,
        )
    )
    if existing.first() is not None:
        msg = f"Credit transaction {transaction_id} was already refunded"
        raise ValueError(msg)

    amount = original.credits_consumed
    try:
        new_balance = await _credit_account(session, user_id, amount, earned=False)
        refund = CreditTransaction(
            user_id=user_id,
            action_type=CreditActionType.REFUND.value,
            credits_consumed=0,
            credits_added=amount,
            balance_after=new_balance,
            description=reason or f"Refund of {original.action_type}",
            reference_id=reference_id,
            details={"refunded_action": original.action_type},
        )
        session.add(refund)
        await session.flush()
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        msg = f"Credit transaction {transaction_id} was already refunded"
        raise ValueError(msg) from e

    logger.info(f"Refunded {amount} credits to user {user_id} for transaction {transaction_id}")
    return refund


async def can_perform_action(session: AsyncSession, user_id: str, amount: int) -> ActionCheck:
    """Check whether the user's balance covers ``amount`` without debiting."""
    _require_positive(amount)
    account = await get_balance(session, user_id)
    balance = account.balance if account is not None else 0
    return ActionCheck(allowed=balance >= amount, balance=balance, required=amount)


async def list_transactions(
    session: AsyncSession,
    user_id: str,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[CreditTransaction], int]:
    """List a user's transactions, newest first.

    Returns:
        Tuple of (transactions, total count).
    """
    total = (
        await session.execute(
            select(func.count()).select_from(CreditTransaction).where(CreditTransaction.user_id == user_id)
        )
    ).scalar_one()

    result = await session.execute(
        select(CreditTransaction)
        .where(CreditTransaction.user_id == user_id)
        .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


def _monthly_usage(consumptions: list[CreditTransaction], now: datetime) -> list[tuple[str, int]]:
    months: list[str] = []
    year, month = now.year, now.month
    for _ in range(_MONTHLY_USAGE_MONTHS):
        months.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12

    totals: dict[str, int] = defaultdict(int)
    for txn in consumptions:
        totals[txn.created_at.strftime("%Y-%m")] += txn.credits_consumed
    return [(key, totals.get(key, 0)) for key in reversed(months)]


async def get_usage_stats(session: AsyncSession, user_id: str, now: datetime | None = None) -> UsageStats:
    """Summarize a user's credit usage.

    ``average_credits_per_action`` is total spent divided by the number of
    consumption transactions, rounded to two decimals.  ``monthly_usage``
    covers the last six calendar months, oldest first.
    """
    account = await get_balance(session, user_id)
    if account is None:
        return UsageStats(monthly_usage=_monthly_usage([], now or datetime.now(UTC)))

    count = (
        await session.execute(
            select(func.count()).select_from(CreditTransaction).where(CreditTransaction.user_id == user_id)
        )
    ).scalar_one()

    result = await session.execute(
        select(CreditTransaction).where(
            CreditTransaction.user_id == user_id,
            CreditTransaction.credits_consumed > 0,
        )
    )
    consumptions = list(result.scalars().all())

    action_counts = Counter(txn.action_type for txn in consumptions)
    consumed_by_action: dict[str, int] = defaultdict(int)
    for txn in consumptions:
        consumed_by_action[txn.action_type] += txn.credits_consumed

    average = round(account.total_spent / len(consumptions), 2) if consumptions else 0.0

    return UsageStats(
        balance=account.balance,
        total_earned=account.total_earned,
        total_spent=account.total_spent,
        transaction_count=count,
        most_used_action=action_counts.most_common(1)[0][0] if action_counts else None,
        average_credits_per_action=average,
        consumed_by_action=dict(consumed_by_action),
        monthly_usage=_monthly_usage(consumptions, now or datetime.now(UTC)),
    )
