"""Fixtures for API integration tests: an app wired to in-memory SQLite and the fake provider."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from alset_api.api.router import create_router
from alset_api.core.config import Settings, get_settings
from alset_api.core.dependencies import get_async_session, get_property_provider, get_refresh_locks
from alset_api.lib.property_cache import KeyedLockTable
from tests.conftest import FakeProvider


@pytest.fixture
def app(settings: Settings, async_session: AsyncSession, fake_provider: FakeProvider) -> FastAPI:
    """FastAPI app with all v1 routers and test dependencies."""
    app = FastAPI()
    app.include_router(create_router(settings))
    locks = KeyedLockTable()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_async_session] = lambda: async_session
    app.dependency_overrides[get_property_provider] = lambda: fake_provider
    app.dependency_overrides[get_refresh_locks] = lambda: locks
    return app


@pytest.fixture
def client(app: FastAPI, user_token: str) -> AsyncClient:
    """Client authenticated as the test user."""
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {user_token}"},
    )


@pytest.fixture
def unauth_client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
