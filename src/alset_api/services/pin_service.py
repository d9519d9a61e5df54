"""Pin service: user map pins on cached properties.

Creating a pin stores the pin row, optionally debits credits, and bumps the
property's ``total_pins`` counter in one transaction.
"""

import uuid

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.core.logging import redact_hash
from alset_api.lib.property_cache import PropertyNotFoundError, StoreFailure, address_key
from alset_api.models.credit import CreditActionType
from alset_api.models.pin import Pin
from alset_api.models.property_record import PropertyRecord
from alset_api.models.search_history import SearchHistory
from alset_api.services.credit_service import consume_credits
from alset_api.services.property_cache_service import PropertyDataCache


class SearchHistoryEntryNotFoundError(LookupError):
    """The referenced search history entry does not exist for the user."""


async def create_pin(
    session: AsyncSession,
    cache: PropertyDataCache,
    user_id: str,
    address: str,
    latitude: float,
    longitude: float,
    *,
    search_history_id: uuid.UUID | None = None,
    title: str | None = None,
    cost: int = 0,
) -> tuple[Pin, PropertyRecord]:
    """Pin a previously looked-up property for a user.

    Args:
        session: Database session shared with the cache's store.
        cache: Property data cache.
        user_id: Auth provider subject.
        address: Freeform address of the pinned property.
        latitude: Pin latitude.
        longitude: Pin longitude.
        search_history_id: Optional search that found the property; must
            belong to ``user_id``.
        title: Optional label.
        cost: Credits charged for the pin; 0 makes it free.

    Returns:
        Tuple of (pin, property record with the updated pin count).

    Raises:
        InvalidAddressError: If the address is empty.
        PropertyNotFoundError: If the address has never been looked up.
        SearchHistoryEntryNotFoundError: If ``search_history_id`` is unknown
            or belongs to another user.
        InsufficientCreditsError: If ``cost`` exceeds the user's balance.
        StoreFailure: If the pin could not be written.
    """
    _, address_hash = address_key(address)
    record = await cache.get_record(address)
    if record is None:
        raise PropertyNotFoundError(address_hash)

    try:
        if search_history_id is not None:
            entry = await session.get(SearchHistory, search_history_id)
            if entry is None or entry.user_id != user_id:
                msg = f"Search history entry {search_history_id} not found"
                raise SearchHistoryEntryNotFoundError(msg)
        if cost > 0:
            await consume_credits(
                session,
                user_id,
                CreditActionType.PIN_CREATION,
                cost,
                description="Property pin",
                reference_id=str(record.id),
                details={"address_hash": address_hash},
                commit=False,
            )
        pin = Pin(
            user_id=user_id,
            property_record_id=record.id,
            search_history_id=search_history_id,
            address=address.strip(),
            address_hash=address_hash,
            latitude=latitude,
            longitude=longitude,
            title=title,
        )
        session.add(pin)
        await session.flush()
    except SQLAlchemyError as e:
        await session.rollback()
        msg = f"Creating pin for {redact_hash(address_hash)} failed: {e}"
        raise StoreFailure(msg) from e

    # Commits the pin and any debit together with the counter.
    try:
        record = await cache.increment_pin_count(address)
    except PropertyNotFoundError:
        await session.rollback()
        raise

    logger.info(f"User {user_id} pinned {redact_hash(address_hash)} ({record.total_pins} pins)")
    return pin, record


async def list_pins(
    session: AsyncSession,
    user_id: str,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Pin], int]:
    """List a user's pins, newest first.

    Returns:
        Tuple of (pins, total count).
    """
    total = (await session.execute(select(func.count()).select_from(Pin).where(Pin.user_id == user_id))).scalar_one()
    result = await session.execute(
        select(Pin)
        .where(Pin.user_id == user_id)
        .order_by(Pin.created_at.desc(), Pin.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def delete_pin(session: AsyncSession, user_id: str, pin_id: uuid.UUID) -> bool:
    """Delete one of the user's pins. The property's pin counter is not decremented.

    Returns:
        True if a pin was deleted, False if the user has no such pin.
    """
    result = await session.execute(delete(Pin).where(Pin.id == pin_id, Pin.user_id == user_id))
    await session.commit()
    return bool(result.rowcount)
