"""Property data cache service: read-through/write-through cache of provider payloads.

Records are keyed by the SHA-256 hash of the normalized address.  A lookup
counts one search, serves the stored payload while it is fresh, and
otherwise fetches from the provider under a per-address lock so concurrent
lookups for one address share a single provider call.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from loguru import logger

from alset_api.core.logging import redact_hash
from alset_api.lib.property_cache import (
    FRESHNESS_WINDOW,
    KeyedLockTable,
    PropertyNotFoundError,
    PropertyRecordStore,
    StoreFailure,
    address_key,
    is_fresh,
    needs_refresh,
)
from alset_api.lib.property_data import BasePropertyDataProvider, PropertyDataProviderError
from alset_api.models.property_record import PropertyRecord

DEFAULT_PROVIDER_TIMEOUT = 10.0  # seconds


@dataclass
class LookupResult:
    """Outcome of a cache lookup."""

    record: PropertyRecord
    payload: dict[str, Any]
    was_cache_hit: bool


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PropertyDataCache:
    """Cache of third-party property data keyed by normalized-address hash.

    Args:
        store: Persistent record store bound to the caller's session.
        provider: Property data provider used on misses and stale reads.
        locks: Refresh lock table; share one instance across all requests
            in the process so refreshes of one address are serialized.
        ttl: Freshness window for stored payloads.
        provider_timeout: Upper bound in seconds on a single provider call.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        store: PropertyRecordStore,
        provider: BasePropertyDataProvider,
        *,
        locks: KeyedLockTable | None = None,
        ttl: timedelta = FRESHNESS_WINDOW,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._provider = provider
        self._locks = locks if locks is not None else KeyedLockTable()
        self._ttl = ttl
        self._provider_timeout = provider_timeout
        self._clock = clock

    def is_fresh(self, last_refreshed_at: datetime | None) -> bool:
        """Whether a payload refreshed at ``last_refreshed_at`` is within the freshness window."""
        return is_fresh(last_refreshed_at, self._clock(), self._ttl)

    async def lookup(
        self,
        address: str,
        coordinates: tuple[float, float] | None = None,
        force_refresh: bool = False,
    ) -> LookupResult:
        """Return the property payload for an address, refreshing it when needed.

        Args:
            address: Freeform address.
            coordinates: Optional (latitude, longitude) stored when the record
                is first created.
            force_refresh: Fetch from the provider even if the payload is fresh.

        Returns:
            LookupResult with the record, its payload, and whether the provider
            was skipped.

        Raises:
            InvalidAddressError: If the address is empty.
            PropertyDataProviderError: If a required refresh failed.  The
                stored payload is left untouched.
            StoreFailure: If the store could not be read or written.
        """
        normalized, address_hash = address_key(address)
        short = redact_hash(address_hash)

        record = await self._store.get_by_hash(address_hash)
        if record is None:
            latitude, longitude = coordinates if coordinates is not None else (None, None)
            record, created = await self._store.insert_if_absent(address_hash, normalized, latitude, longitude)
            if created:
                logger.info(f"Created property record {short}")

        record = await self._store.increment_searches(address_hash, self._clock())
        if record is None:
            msg = f"Property record {short} missing during search count"
            raise StoreFailure(msg)
        await self._store.commit()

        if not needs_refresh(record, self._clock(), self._ttl, force=force_refresh):
            logger.debug(f"Property cache hit for {short}")
            return LookupResult(record=record, payload=record.provider_data, was_cache_hit=True)

        observed_refresh = record.last_refreshed_at
        async with self._locks.hold(address_hash):
            current = await self._store.get_by_hash(address_hash, refresh=True)
            if current is None:
                msg = f"Property record {short} missing before refresh"
                raise StoreFailure(msg)

            refreshed_meanwhile = (
                current.last_refreshed_at is not None
                and current.last_refreshed_at != observed_refresh
                and current.provider_data_fresh
                and current.has_provider_data
            )
            if refreshed_meanwhile or not needs_refresh(current, self._clock(), self._ttl, force=force_refresh):
                logger.debug(f"Sharing concurrent refresh for {short}")
                return LookupResult(record=current, payload=current.provider_data, was_cache_hit=True)

            payload = await self._fetch(address.strip(), short)
            refreshed = await self._store.replace_provider_data(address_hash, payload, self._clock())
            if refreshed is None:
                msg = f"Property record {short} missing during refresh"
                raise StoreFailure(msg)
            await self._store.commit()

        logger.info(f"Refreshed property data for {short} from {self._provider.provider_name}")
        return LookupResult(record=refreshed, payload=refreshed.provider_data, was_cache_hit=False)

    async def _fetch(self, address: str, short: str) -> dict[str, Any]:
        try:
            return await asyncio.wait_for(self._provider.fetch_by_address(address), timeout=self._provider_timeout)
        except TimeoutError as e:
            logger.warning(f"Provider {self._provider.provider_name} timed out for {short}")
            raise PropertyDataProviderError(
                self._provider.provider_name,
                f"Provider call exceeded {self._provider_timeout}s",
            ) from e
        except PropertyDataProviderError as e:
            logger.warning(f"Provider {e.provider_name} failed for {short}: {e.message}")
            raise

    async def increment_pin_count(self, address: str) -> PropertyRecord:
        """Atomically add one pin to an existing record.

        Raises:
            InvalidAddressError: If the address is empty.
            PropertyNotFoundError: If the address has never been looked up.
        """
        _, address_hash = address_key(address)
        record = await self._store.increment_pins(address_hash, self._clock())
        if record is None:
            raise PropertyNotFoundError(address_hash)
        await self._store.commit()
        return record

    async def invalidate(self, address: str) -> PropertyRecord:
        """Mark a record's payload stale so the next lookup refreshes it.

        Raises:
            InvalidAddressError: If the address is empty.
            PropertyNotFoundError: If the address has never been looked up.
        """
        _, address_hash = address_key(address)
        record = await self._store.mark_stale(address_hash, self._clock())
        if record is None:
            raise PropertyNotFoundError(address_hash)
        await self._store.commit()
        logger.info(f"Invalidated property data for {redact_hash(address_hash)}")
        return record

    async def get_record(self, address: str) -> PropertyRecord | None:
        _, address_hash = address_key(address)
        return await self._store.get_by_hash(address_hash)

    async def most_searched(self, limit: int = 10) -> list[PropertyRecord]:
        if limit < 1:
            msg = "limit must be at least 1"
            raise ValueError(msg)
        return await self._store.most_searched(limit)

    async def recently_refreshed(self, limit: int = 10) -> list[PropertyRecord]:
        if limit < 1:
            msg = "limit must be at least 1"
            raise ValueError(msg)
        return await self._store.recently_refreshed(limit)
