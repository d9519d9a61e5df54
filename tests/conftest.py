"""Shared test fixtures: settings, in-memory database, fake provider, clock, and auth tokens."""

import asyncio
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from alset_api.core.config import Settings
from alset_api.core.security import create_access_token
from alset_api.lib.property_cache import KeyedLockTable, PropertyRecordStore
from alset_api.lib.property_data import BasePropertyDataProvider, PropertyDataProviderError
from alset_api.models.base import Base
from alset_api.services.property_cache_service import PropertyDataCache

TEST_JWT_SECRET = "test-secret-key-not-for-production-000000"
TEST_USER_ID = "8d5e4f1c-2b3a-4c6d-9e8f-7a6b5c4d3e2f"

SAMPLE_PAYLOAD: dict[str, Any] = {
    "zpid": 29384756,
    "zestimate": 452300,
    "bedrooms": 3,
    "bathrooms": 2,
    "livingArea": 1850,
    "yearBuilt": 1998,
    "homeType": "SINGLE_FAMILY",
}


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeProvider(BasePropertyDataProvider):
    """In-memory provider that records calls and can fail, stall, or return queued payloads."""

    def __init__(self, payload: dict[str, Any] | None = None) -> None:
        self.payload = dict(payload if payload is not None else SAMPLE_PAYLOAD)
        self.calls: list[str] = []
        self.fail_with: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.delay: float = 0.0

    @property
    def provider_name(self) -> str:
        return "fake"

    async def fetch_by_address(self, address: str) -> dict[str, Any]:
        self.calls.append(address)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        return dict(self.payload)

    def fail(self, message: str = "Provider returned HTTP 503") -> None:
        self.fail_with = PropertyDataProviderError(self.provider_name, message, status_code=503)


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        auth_jwt_secret=TEST_JWT_SECRET,
        rapidapi_key="test-rapidapi-key",
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine with all tables."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def store(async_session: AsyncSession) -> PropertyRecordStore:
    return PropertyRecordStore(async_session)


@pytest.fixture
def cache(store: PropertyRecordStore, fake_provider: FakeProvider, clock: FakeClock) -> PropertyDataCache:
    """PropertyDataCache over the in-memory database and the fake provider."""
    return PropertyDataCache(store, fake_provider, locks=KeyedLockTable(), provider_timeout=1.0, clock=clock)


@pytest.fixture
def user_token() -> str:
    """A bearer token shaped like the auth provider's."""
    return create_access_token(subject=TEST_USER_ID, secret_key=TEST_JWT_SECRET, email="buyer@example.com")
