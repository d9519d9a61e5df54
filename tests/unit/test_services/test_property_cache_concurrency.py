"""Concurrency tests for PropertyDataCache refresh single-flighting.

Uses an in-memory store so several lookups can be in flight at once
without sharing one database session.
"""

import asyncio
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest

from alset_api.lib.property_cache import KeyedLockTable
from alset_api.lib.property_data import PropertyDataProviderError
from alset_api.models.property_record import PropertyRecord
from alset_api.services.property_cache_service import PropertyDataCache
from tests.conftest import SAMPLE_PAYLOAD, FakeClock, FakeProvider

ADDRESS = "742 Evergreen Terrace, Springfield"


class InMemoryStore:
    """Dict-backed stand-in for PropertyRecordStore."""

    def __init__(self) -> None:
        self.records: dict[str, PropertyRecord] = {}
        self.commits = 0

    async def get_by_hash(self, address_hash: str, *, refresh: bool = False) -> PropertyRecord | None:
        await asyncio.sleep(0)
        return self.records.get(address_hash)

    async def insert_if_absent(
        self,
        address_hash: str,
        normalized_address: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> tuple[PropertyRecord, bool]:
        await asyncio.sleep(0)
        if address_hash in self.records:
            return self.records[address_hash], False
        record = PropertyRecord(
            id=uuid.uuid4(),
            address_hash=address_hash,
            normalized_address=normalized_address,
            latitude=latitude,
            longitude=longitude,
            provider_data={},
            provider_data_fresh=False,
            last_refreshed_at=None,
            total_searches=0,
            last_searched_at=None,
            total_pins=0,
        )
        self.records[address_hash] = record
        return record, True

    async def increment_searches(self, address_hash: str, now: datetime) -> PropertyRecord | None:
        record = self.records.get(address_hash)
        if record is not None:
            record.total_searches += 1
            record.last_searched_at = now
        return record

    async def replace_provider_data(
        self, address_hash: str, payload: dict[str, Any], now: datetime
    ) -> PropertyRecord | None:
        record = self.records.get(address_hash)
        if record is not None:
            record.provider_data = payload
            record.last_refreshed_at = now
            record.provider_data_fresh = True
        return record

    async def commit(self) -> None:
        self.commits += 1


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def gated_provider() -> FakeProvider:
    provider = FakeProvider()
    provider.gate = asyncio.Event()
    return provider


@pytest.fixture
def locks() -> KeyedLockTable:
    return KeyedLockTable()


def _cache(store: InMemoryStore, provider: FakeProvider, locks: KeyedLockTable) -> PropertyDataCache:
    # One cache per "request", all sharing the process-wide lock table
    return PropertyDataCache(store, provider, locks=locks, provider_timeout=2.0, clock=FakeClock())  # type: ignore[arg-type]


async def _until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    async def _wait() -> None:
        while not predicate():
            await asyncio.sleep(0)

    await asyncio.wait_for(_wait(), timeout)


class TestSingleFlight:
    """Concurrent lookups for one unseen address issue exactly one provider call."""

    async def test_two_concurrent_lookups_share_one_fetch(
        self, memory_store: InMemoryStore, gated_provider: FakeProvider, locks: KeyedLockTable
    ) -> None:
        first = asyncio.create_task(_cache(memory_store, gated_provider, locks).lookup(ADDRESS))
        second = asyncio.create_task(_cache(memory_store, gated_provider, locks).lookup(ADDRESS))

        await _until(lambda: len(gated_provider.calls) == 1)
        gated_provider.gate.set()
        results = await asyncio.gather(first, second)

        assert len(gated_provider.calls) == 1
        assert sorted(r.was_cache_hit for r in results) == [False, True]
        assert all(r.payload == SAMPLE_PAYLOAD for r in results)
        record = next(iter(memory_store.records.values()))
        assert record.total_searches == 2
        assert len(locks) == 0

    async def test_many_concurrent_lookups(
        self, memory_store: InMemoryStore, gated_provider: FakeProvider, locks: KeyedLockTable
    ) -> None:
        tasks = [asyncio.create_task(_cache(memory_store, gated_provider, locks).lookup(ADDRESS)) for _ in range(8)]

        await _until(lambda: len(gated_provider.calls) == 1)
        gated_provider.gate.set()
        results = await asyncio.gather(*tasks)

        assert len(gated_provider.calls) == 1
        assert sum(1 for r in results if not r.was_cache_hit) == 1
        assert len(memory_store.records) == 1

    async def test_different_addresses_fetch_in_parallel(
        self, memory_store: InMemoryStore, gated_provider: FakeProvider, locks: KeyedLockTable
    ) -> None:
        first = asyncio.create_task(_cache(memory_store, gated_provider, locks).lookup("1 Elm Rd"))
        second = asyncio.create_task(_cache(memory_store, gated_provider, locks).lookup("2 Elm Rd"))

        await _until(lambda: len(gated_provider.calls) == 2)
        gated_provider.gate.set()
        results = await asyncio.gather(first, second)

        assert all(not r.was_cache_hit for r in results)

    async def test_failed_refresh_is_not_shared(
        self, memory_store: InMemoryStore, gated_provider: FakeProvider, locks: KeyedLockTable
    ) -> None:
        gated_provider.fail()
        first = asyncio.create_task(_cache(memory_store, gated_provider, locks).lookup(ADDRESS))
        second = asyncio.create_task(_cache(memory_store, gated_provider, locks).lookup(ADDRESS))

        await _until(lambda: len(gated_provider.calls) == 1)
        gated_provider.gate.set()
        results = await asyncio.gather(first, second, return_exceptions=True)

        assert all(isinstance(r, PropertyDataProviderError) for r in results)
        assert len(gated_provider.calls) == 2
        record = next(iter(memory_store.records.values()))
        assert record.provider_data == {}

    async def test_cancelled_lookup_writes_nothing(
        self, memory_store: InMemoryStore, gated_provider: FakeProvider, locks: KeyedLockTable
    ) -> None:
        task = asyncio.create_task(_cache(memory_store, gated_provider, locks).lookup(ADDRESS))
        await _until(lambda: len(gated_provider.calls) == 1)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        record = next(iter(memory_store.records.values()))
        assert record.provider_data == {}
        assert record.last_refreshed_at is None
        assert len(locks) == 0
