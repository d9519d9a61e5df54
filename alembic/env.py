"""Alembic environment configuration for async SQLAlchemy migrations."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, text
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alset_api.core.config import get_settings

# Importing the package registers every model on Base.metadata
from alset_api.models import CreditAccount, CreditTransaction, Pin, PropertyRecord, SearchHistory  # noqa: F401
from alset_api.models.base import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _settings_url_and_schema() -> tuple[str, str | None]:
    settings = get_settings()
    return settings.database_url, settings.database_schema


def _configure(schema: str | None, **kwargs: object) -> None:
    options: dict[str, object] = {"target_metadata": target_metadata, "compare_type": True, **kwargs}
    if schema is not None:
        options["version_table_schema"] = schema
    context.configure(**options)


def run_migrations_offline() -> None:
    """Emit migration SQL without a database connection."""
    url, schema = _settings_url_and_schema()
    _configure(schema, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run migrations synchronously on an open connection."""
    _, schema = _settings_url_and_schema()
    if schema is not None and connection.dialect.name == "postgresql":
        connection.execute(text(f'SET search_path TO "{schema}", public'))
    _configure(schema, connection=connection, render_as_batch=connection.dialect.name == "sqlite")

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Open an async engine and run migrations through it."""
    url, schema = _settings_url_and_schema()
    configuration = config.get_section(config.config_ini_section, {})
    configuration["sqlalchemy.url"] = url

    connectable = async_engine_from_config(configuration, prefix="sqlalchemy.", poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        if schema is not None and connection.dialect.name == "postgresql":
            await connection.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))
            await connection.commit()
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
