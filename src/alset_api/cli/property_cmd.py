"""Property data cache CLI commands for operators."""

import asyncio
import json
from datetime import timedelta
from typing import TYPE_CHECKING

import typer

from alset_api.lib.address import parse_address_components
from alset_api.lib.property_cache import InvalidAddressError, PropertyNotFoundError, StoreFailure
from alset_api.lib.property_data import PropertyDataProviderError, summarize_payload

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from alset_api.core.config import Settings
    from alset_api.services.property_cache_service import PropertyDataCache

property_app = typer.Typer()


@property_app.command("lookup")
def lookup(
    address: str = typer.Argument(..., help="Freeform street address"),
    force: bool = typer.Option(False, "--force", help="Refetch even if cached data is fresh"),  # noqa: FBT001
    raw: bool = typer.Option(False, "--raw", help="Print the raw provider payload"),  # noqa: FBT001
) -> None:
    """Look up a property through the cache."""
    asyncio.run(_lookup(address, force, raw))


@property_app.command("popular")
def popular(
    limit: int = typer.Option(10, "--limit", min=1, help="Number of properties to show"),
) -> None:
    """List the most searched properties."""
    asyncio.run(_popular(limit))


@property_app.command("invalidate")
def invalidate(
    address: str = typer.Argument(..., help="Freeform street address"),
) -> None:
    """Mark a property's cached data stale."""
    asyncio.run(_invalidate(address))


def _build_cache(session: "AsyncSession", settings: "Settings") -> "PropertyDataCache":
    from alset_api.lib.property_cache import PropertyRecordStore
    from alset_api.lib.property_data import get_configured_provider
    from alset_api.services.property_cache_service import PropertyDataCache

    return PropertyDataCache(
        PropertyRecordStore(session),
        get_configured_provider(settings),
        ttl=timedelta(hours=settings.property_cache_ttl_hours),
        provider_timeout=settings.property_provider_timeout,
    )


async def _lookup(address: str, force: bool, raw: bool) -> None:
    from alset_api.core.config import get_settings
    from alset_api.core.database import dispose_engine, init_engine, session_scope

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        async with session_scope() as session:
            cache = _build_cache(session, settings)
            try:
                result = await cache.lookup(address, force_refresh=force)
            except InvalidAddressError as e:
                typer.echo(f"Error: {e}", err=True)
                raise typer.Exit(code=1) from e
            except (PropertyDataProviderError, StoreFailure) as e:
                typer.echo(f"Lookup failed: {e}", err=True)
                raise typer.Exit(code=1) from e

            record = result.record
            typer.echo(f"Address:        {record.normalized_address}")
            typer.echo(f"Hash:           {record.address_hash}")
            components = {k: v for k, v in parse_address_components(record.normalized_address).to_dict().items() if v}
            typer.echo(f"Components:     {components}")
            typer.echo(f"Cache hit:      {'yes' if result.was_cache_hit else 'no'}")
            typer.echo(f"Last refreshed: {record.last_refreshed_at or 'never'}")
            typer.echo(f"Searches:       {record.total_searches}")
            typer.echo(f"Pins:           {record.total_pins}")
            summary = {k: v for k, v in summarize_payload(result.payload).to_dict().items() if v is not None}
            for key, value in summary.items():
                typer.echo(f"  {key}: {value}")
            if raw:
                typer.echo(json.dumps(result.payload, indent=2, default=str))
    finally:
        await dispose_engine()


async def _popular(limit: int) -> None:
    from alset_api.core.config import get_settings
    from alset_api.core.database import dispose_engine, init_engine, session_scope

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        async with session_scope() as session:
            records = await _build_cache(session, settings).most_searched(limit)
            if not records:
                typer.echo("No properties found.")
                return
            for record in records:
                typer.echo(f"{record.total_searches:>6}  {record.total_pins:>5}  {record.normalized_address}")
    finally:
        await dispose_engine()


async def _invalidate(address: str) -> None:
    from alset_api.core.config import get_settings
    from alset_api.core.database import dispose_engine, init_engine, session_scope

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)
    try:
        async with session_scope() as session:
            try:
                record = await _build_cache(session, settings).invalidate(address)
            except InvalidAddressError as e:
                typer.echo(f"Error: {e}", err=True)
                raise typer.Exit(code=1) from e
            except PropertyNotFoundError as e:
                typer.echo(f"No cached property for {address!r}", err=True)
                raise typer.Exit(code=1) from e
            typer.echo(f"Invalidated {record.normalized_address}")
    finally:
        await dispose_engine()
