"""Unit tests for PropertyRecordStore against in-memory SQLite."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from alset_api.lib.address import hash_address
from alset_api.lib.property_cache import PropertyRecordStore, StoreFailure, as_utc

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
ADDRESS_HASH = hash_address("1 Elm Rd, Springfield, IL")


class TestInsertIfAbsent:
    """Tests for insert_if_absent."""

    async def test_creates_empty_record(self, store: PropertyRecordStore) -> None:
        record, created = await store.insert_if_absent(ADDRESS_HASH, "1 ELM RD, SPRINGFIELD, IL", 39.78, -89.65)
        assert created is True
        assert record.address_hash == ADDRESS_HASH
        assert record.provider_data == {}
        assert record.provider_data_fresh is False
        assert record.last_refreshed_at is None
        assert record.total_searches == 0
        assert record.latitude == pytest.approx(39.78)

    async def test_second_insert_is_noop(self, store: PropertyRecordStore) -> None:
        first, _ = await store.insert_if_absent(ADDRESS_HASH, "1 ELM RD, SPRINGFIELD, IL", 1.0, 2.0)
        second, created = await store.insert_if_absent(ADDRESS_HASH, "1 ELM RD, SPRINGFIELD, IL", 3.0, 4.0)
        assert created is False
        assert second.id == first.id
        assert second.latitude == pytest.approx(1.0)


class TestAtomicUpdates:
    """Tests for the UPDATE ... RETURNING mutations."""

    async def test_increment_searches(self, store: PropertyRecordStore) -> None:
        await store.insert_if_absent(ADDRESS_HASH, "1 ELM RD")
        await store.increment_searches(ADDRESS_HASH, NOW)
        record = await store.increment_searches(ADDRESS_HASH, NOW)
        assert record is not None
        assert record.total_searches == 2
        assert as_utc(record.last_searched_at) == NOW

    async def test_increment_pins(self, store: PropertyRecordStore) -> None:
        await store.insert_if_absent(ADDRESS_HASH, "1 ELM RD")
        record = await store.increment_pins(ADDRESS_HASH, NOW)
        assert record is not None
        assert record.total_pins == 1
        assert record.total_searches == 0

    async def test_replace_provider_data_sets_all_fields(self, store: PropertyRecordStore) -> None:
        await store.insert_if_absent(ADDRESS_HASH, "1 ELM RD")
        record = await store.replace_provider_data(ADDRESS_HASH, {"zpid": 9}, NOW)
        assert record is not None
        assert record.provider_data == {"zpid": 9}
        assert record.provider_data_fresh is True
        assert as_utc(record.last_refreshed_at) == NOW

    async def test_replace_is_wholesale(self, store: PropertyRecordStore) -> None:
        await store.insert_if_absent(ADDRESS_HASH, "1 ELM RD")
        await store.replace_provider_data(ADDRESS_HASH, {"zpid": 9, "bedrooms": 3}, NOW)
        record = await store.replace_provider_data(ADDRESS_HASH, {"zpid": 10}, NOW)
        assert record is not None
        assert record.provider_data == {"zpid": 10}

    async def test_mark_stale(self, store: PropertyRecordStore) -> None:
        await store.insert_if_absent(ADDRESS_HASH, "1 ELM RD")
        await store.replace_provider_data(ADDRESS_HASH, {"zpid": 9}, NOW)
        record = await store.mark_stale(ADDRESS_HASH, NOW)
        assert record is not None
        assert record.provider_data_fresh is False
        assert record.provider_data == {"zpid": 9}

    async def test_updates_on_unknown_hash_return_none(self, store: PropertyRecordStore) -> None:
        missing = "f" * 64
        assert await store.increment_searches(missing, NOW) is None
        assert await store.increment_pins(missing, NOW) is None
        assert await store.replace_provider_data(missing, {"x": 1}, NOW) is None
        assert await store.mark_stale(missing, NOW) is None

    async def test_committed_changes_visible_to_fresh_read(self, store: PropertyRecordStore) -> None:
        await store.insert_if_absent(ADDRESS_HASH, "1 ELM RD")
        await store.increment_pins(ADDRESS_HASH, NOW)
        await store.commit()
        record = await store.get_by_hash(ADDRESS_HASH, refresh=True)
        assert record is not None
        assert record.total_pins == 1


class TestListings:
    """Tests for most_searched and recently_refreshed."""

    async def _seed(self, store: PropertyRecordStore) -> list[str]:
        hashes = [hash_address(f"{n} Elm Rd") for n in range(1, 4)]
        for index, address_hash in enumerate(hashes):
            await store.insert_if_absent(address_hash, f"{index + 1} ELM RD")
            for _ in range(index + 1):
                await store.increment_searches(address_hash, NOW)
        await store.commit()
        return hashes

    async def test_most_searched_order(self, store: PropertyRecordStore) -> None:
        hashes = await self._seed(store)
        records = await store.most_searched(2)
        assert [r.address_hash for r in records] == [hashes[2], hashes[1]]

    async def test_recently_refreshed_excludes_empty_payloads(self, store: PropertyRecordStore) -> None:
        hashes = await self._seed(store)
        await store.replace_provider_data(hashes[0], {"zpid": 1}, NOW - timedelta(hours=2))
        await store.replace_provider_data(hashes[1], {"zpid": 2}, NOW)
        await store.replace_provider_data(hashes[2], {}, NOW + timedelta(hours=1))
        await store.commit()

        records = await store.recently_refreshed(10)
        assert [r.address_hash for r in records] == [hashes[1], hashes[0]]


class TestStoreFailure:
    """SQLAlchemy errors are wrapped and the session is rolled back."""

    async def test_execute_error_wrapped(self) -> None:
        session = AsyncMock()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("database is locked"))
        store = PropertyRecordStore(session)

        with pytest.raises(StoreFailure) as exc_info:
            await store.get_by_hash(ADDRESS_HASH)

        assert isinstance(exc_info.value.__cause__, OperationalError)
        session.rollback.assert_awaited_once()

    async def test_commit_error_wrapped(self) -> None:
        session = AsyncMock()
        session.commit.side_effect = OperationalError("COMMIT", {}, Exception("disk I/O error"))
        store = PropertyRecordStore(session)

        with pytest.raises(StoreFailure):
            await store.commit()
        session.rollback.assert_awaited_once()
