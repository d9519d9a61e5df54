"""Smart search service: credit-gated property lookups and per-user search history."""

import uuid
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.core.logging import redact_hash
from alset_api.lib.property_cache import StoreFailure, address_key
from alset_api.lib.property_data import PropertyDataProviderError
from alset_api.models.credit import CreditActionType
from alset_api.models.property_record import PropertyRecord
from alset_api.models.search_history import SearchHistory
from alset_api.services.credit_service import InsufficientCreditsError, can_perform_action, consume_credits
from alset_api.services.property_cache_service import PropertyDataCache

SEARCH_TYPE_BASIC = "basic"
SEARCH_TYPE_SMART = "smart"

DEGRADED_MESSAGE = "Property data is temporarily unavailable. Showing basic information only; no credits were used."


@dataclass
class SearchOutcome:
    """Result of a basic or smart search."""

    search_type: str
    enriched: bool
    was_cache_hit: bool
    credits_consumed: int
    record: PropertyRecord | None
    history_id: uuid.UUID
    payload: dict[str, Any] = field(default_factory=dict)
    message: str | None = None


async def _record_history(
    session: AsyncSession,
    *,
    user_id: str,
    address: str,
    address_hash: str,
    search_type: str,
    record: PropertyRecord | None,
    was_cache_hit: bool,
    enriched: bool,
    credits_consumed: int,
) -> SearchHistory:
    entry = SearchHistory(
        user_id=user_id,
        address=address.strip(),
        address_hash=address_hash,
        search_type=search_type,
        property_record_id=record.id if record is not None else None,
        was_cache_hit=was_cache_hit,
        enriched=enriched,
        credits_consumed=credits_consumed,
    )
    session.add(entry)
    await session.flush()
    return entry


async def smart_search(
    session: AsyncSession,
    cache: PropertyDataCache,
    user_id: str,
    address: str,
    coordinates: tuple[float, float] | None = None,
    force_refresh: bool = False,
    cost: int = 1,
) -> SearchOutcome:
    """Run an enriched property search, charging credits only when the provider is called.

    When the provider fails the search degrades to a basic result: no
    payload, no charge, and a user-facing message.

    Args:
        session: Database session shared with the cache's store.
        cache: Property data cache.
        user_id: Auth provider subject.
        address: Freeform address.
        coordinates: Optional (latitude, longitude) for new records.
        force_refresh: Bypass the freshness check.
        cost: Credits charged on a cache miss.

    Returns:
        SearchOutcome describing the search.

    Raises:
        InvalidAddressError: If the address is empty.
        InsufficientCreditsError: If the user cannot afford a smart search.
        StoreFailure: If the debit or the history entry could not be written.
    """
    _, address_hash = address_key(address)

    check = await can_perform_action(session, user_id, cost)
    if not check.allowed:
        raise InsufficientCreditsError(required=cost, available=check.balance)

    try:
        result = await cache.lookup(address, coordinates=coordinates, force_refresh=force_refresh)
    except PropertyDataProviderError as e:
        logger.warning(f"Smart search for {redact_hash(address_hash)} degraded to basic: {e.message}")
        record = await cache.get_record(address)
        entry = await _record_history(
            session,
            user_id=user_id,
            address=address,
            address_hash=address_hash,
            search_type=SEARCH_TYPE_SMART,
            record=record,
            was_cache_hit=False,
            enriched=False,
            credits_consumed=0,
        )
        await session.commit()
        return SearchOutcome(
            search_type=SEARCH_TYPE_SMART,
            enriched=False,
            was_cache_hit=False,
            credits_consumed=0,
            record=record,
            history_id=entry.id,
            message=DEGRADED_MESSAGE,
        )

    credits_consumed = 0 if result.was_cache_hit else cost
    try:
        if not result.was_cache_hit:
            await consume_credits(
                session,
                user_id,
                CreditActionType.SEARCH_SMART,
                cost,
                description="Smart property search",
                reference_id=str(result.record.id),
                details={"address_hash": address_hash},
                commit=False,
            )
        entry = await _record_history(
            session,
            user_id=user_id,
            address=address,
            address_hash=address_hash,
            search_type=SEARCH_TYPE_SMART,
            record=result.record,
            was_cache_hit=result.was_cache_hit,
            enriched=bool(result.payload),
            credits_consumed=credits_consumed,
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        msg = f"Recording smart search for {redact_hash(address_hash)} failed: {e}"
        raise StoreFailure(msg) from e

    return SearchOutcome(
        search_type=SEARCH_TYPE_SMART,
        enriched=bool(result.payload),
        was_cache_hit=result.was_cache_hit,
        credits_consumed=credits_consumed,
        record=result.record,
        history_id=entry.id,
        payload=result.payload,
    )


async def basic_search(
    session: AsyncSession,
    cache: PropertyDataCache,
    user_id: str,
    address: str,
) -> SearchOutcome:
    """Record a free search and return the stored record if the address is known.

    Never contacts the provider and never charges credits.
    """
    _, address_hash = address_key(address)
    record = await cache.get_record(address)
    entry = await _record_history(
        session,
        user_id=user_id,
        address=address,
        address_hash=address_hash,
        search_type=SEARCH_TYPE_BASIC,
        record=record,
        was_cache_hit=record is not None,
        enriched=False,
        credits_consumed=0,
    )
    await session.commit()
    return SearchOutcome(
        search_type=SEARCH_TYPE_BASIC,
        enriched=False,
        was_cache_hit=record is not None,
        credits_consumed=0,
        record=record,
        history_id=entry.id,
    )


async def list_search_history(
    session: AsyncSession,
    user_id: str,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[SearchHistory], int]:
    """List a user's searches, newest first.

    Returns:
        Tuple of (entries, total count).
    """
    total = (
        await session.execute(select(func.count()).select_from(SearchHistory).where(SearchHistory.user_id == user_id))
    ).scalar_one()
    result = await session.execute(
        select(SearchHistory)
        .where(SearchHistory.user_id == user_id)
        .order_by(SearchHistory.created_at.desc(), SearchHistory.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def delete_search_history_entry(session: AsyncSession, user_id: str, entry_id: uuid.UUID) -> bool:
    """Delete one of the user's history entries.

    Returns:
        True if an entry was deleted, False if the user has no such entry.
    """
    result = await session.execute(
        delete(SearchHistory).where(SearchHistory.id == entry_id, SearchHistory.user_id == user_id)
    )
    await session.commit()
    return bool(result.rowcount)
