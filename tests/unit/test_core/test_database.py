"""Tests for the database engine and session management module."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import text

import alset_api.core.database as db_module
from alset_api.core.database import dispose_engine, get_engine, get_session_factory, init_engine, session_scope


@pytest.fixture(autouse=True)
def _restore_engine_state():
    original = db_module._engine, db_module._session_factory
    yield
    db_module._engine, db_module._session_factory = original


class TestEngineState:
    """Tests for get_engine and get_session_factory."""

    def test_raises_when_not_initialized(self) -> None:
        original_engine, original_factory = db_module._engine, db_module._session_factory
        db_module._engine = None
        db_module._session_factory = None
        try:
            with pytest.raises(RuntimeError, match="Database engine not initialized"):
                get_engine()
            with pytest.raises(RuntimeError, match="Session factory not initialized"):
                get_session_factory()
        finally:
            db_module._engine, db_module._session_factory = original_engine, original_factory

    async def test_init_and_dispose(self) -> None:
        engine = init_engine("sqlite+aiosqlite:///:memory:")
        try:
            assert get_engine() is engine
            assert get_session_factory() is not None
        finally:
            await dispose_engine()
        assert db_module._engine is None


class TestInitEngine:
    """Tests for init_engine keyword handling."""

    def test_postgres_gets_pool_defaults(self) -> None:
        with patch("alset_api.core.database.create_async_engine", return_value=MagicMock()) as mock_create:
            init_engine("postgresql+asyncpg://localhost/db", echo=False)
            mock_create.assert_called_once_with(
                "postgresql+asyncpg://localhost/db",
                echo=False,
                pool_size=10,
                max_overflow=5,
                pool_pre_ping=True,
            )

    def test_schema_sets_search_path(self) -> None:
        with patch("alset_api.core.database.create_async_engine", return_value=MagicMock()) as mock_create:
            init_engine("postgresql+asyncpg://localhost/db", schema="pr_42")
            kwargs = mock_create.call_args.kwargs
            assert kwargs["connect_args"] == {"options": "-c search_path=pr_42,public"}

    def test_sqlite_skips_pool_sizing(self) -> None:
        with patch("alset_api.core.database.create_async_engine", return_value=MagicMock()) as mock_create:
            init_engine("sqlite+aiosqlite:///:memory:")
            mock_create.assert_called_once_with("sqlite+aiosqlite:///:memory:")


class TestSessionScope:
    """Tests for session_scope."""

    async def test_yields_working_session(self) -> None:
        init_engine("sqlite+aiosqlite:///:memory:")
        try:
            async with session_scope() as session:
                assert (await session.execute(text("SELECT 1"))).scalar_one() == 1
        finally:
            await dispose_engine()

    async def test_reraises(self) -> None:
        init_engine("sqlite+aiosqlite:///:memory:")
        try:
            with pytest.raises(RuntimeError, match="boom"):
                async with session_scope():
                    raise RuntimeError("boom")
        finally:
            await dispose_engine()
