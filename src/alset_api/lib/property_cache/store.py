"""Persistent store for property records.

Every mutation is a single ``UPDATE ... RETURNING`` (or an
``INSERT ... ON CONFLICT DO NOTHING``) so counters and payload refreshes
are atomic at the database without read-modify-write from Python.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import String, cast, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from alset_api.lib.property_cache.errors import StoreFailure
from alset_api.models.property_record import PropertyRecord


class PropertyRecordStore:
    """Property record reads and atomic writes over one AsyncSession.

    SQLAlchemy errors roll the session back and are re-raised as StoreFailure.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _execute(self, stmt: Executable) -> Any:
        try:
            return await self._session.execute(stmt)
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StoreFailure(f"Property store operation failed: {e}") from e

    async def _update_returning(self, address_hash: str, **values: Any) -> PropertyRecord | None:
        stmt = (
            update(PropertyRecord)
            .where(PropertyRecord.address_hash == address_hash)
            .values(**values)
            .returning(PropertyRecord)
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        result = await self._execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_hash(self, address_hash: str, *, refresh: bool = False) -> PropertyRecord | None:
        """Fetch a record by address hash.

        Args:
            address_hash: SHA-256 hex of the normalized address.
            refresh: Overwrite any instance already in the identity map with
                the row as currently stored.
        """
        stmt = select(PropertyRecord).where(PropertyRecord.address_hash == address_hash)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self._execute(stmt)
        return result.scalar_one_or_none()

    async def insert_if_absent(
        self,
        address_hash: str,
        normalized_address: str,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> tuple[PropertyRecord, bool]:
        """Create an empty record for ``address_hash`` unless one exists.

        Concurrent inserts of the same hash resolve to one row.

        Returns:
            Tuple of (record, created).
        """
        values = {
            "address_hash": address_hash,
            "normalized_address": normalized_address,
            "latitude": latitude,
            "longitude": longitude,
            "provider_data": {},
            "provider_data_fresh": False,
            "total_searches": 0,
            "total_pins": 0,
        }
        dialect = self._session.get_bind().dialect.name
        insert_fn = pg_insert if dialect == "postgresql" else sqlite_insert
        stmt = insert_fn(PropertyRecord).values(**values).on_conflict_do_nothing(index_elements=["address_hash"])
        result = await self._execute(stmt)
        created = bool(result.rowcount)

        record = await self.get_by_hash(address_hash, refresh=True)
        if record is None:
            msg = f"Property record for {address_hash[:12]} vanished after insert"
            raise StoreFailure(msg)
        return record, created

    async def increment_searches(self, address_hash: str, now: datetime) -> PropertyRecord | None:
        return await self._update_returning(
            address_hash,
            total_searches=PropertyRecord.total_searches + 1,
            last_searched_at=now,
        )

    async def increment_pins(self, address_hash: str, now: datetime) -> PropertyRecord | None:
        return await self._update_returning(
            address_hash,
            total_pins=PropertyRecord.total_pins + 1,
            updated_at=now,
        )

    async def replace_provider_data(
        self,
        address_hash: str,
        payload: dict[str, Any],
        now: datetime,
    ) -> PropertyRecord | None:
        """Replace the payload and mark it fresh in one statement.

        ``provider_data``, ``last_refreshed_at`` and ``provider_data_fresh``
        always change together.
        """
        return await self._update_returning(
            address_hash,
            provider_data=payload,
            last_refreshed_at=now,
            provider_data_fresh=True,
            updated_at=now,
        )

    async def mark_stale(self, address_hash: str, now: datetime) -> PropertyRecord | None:
        return await self._update_returning(address_hash, provider_data_fresh=False, updated_at=now)

    async def most_searched(self, limit: int) -> list[PropertyRecord]:
        stmt = (
            select(PropertyRecord)
            .order_by(PropertyRecord.total_searches.desc(), PropertyRecord.address_hash)
            .limit(limit)
        )
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def recently_refreshed(self, limit: int) -> list[PropertyRecord]:
        stmt = (
            select(PropertyRecord)
            .where(
                PropertyRecord.last_refreshed_at.is_not(None),
                cast(PropertyRecord.provider_data, String) != "{}",
            )
            .order_by(PropertyRecord.last_refreshed_at.desc(), PropertyRecord.address_hash)
            .limit(limit)
        )
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StoreFailure(f"Property store commit failed: {e}") from e

    async def rollback(self) -> None:
        await self._session.rollback()
