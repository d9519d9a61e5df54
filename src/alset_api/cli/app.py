"""Typer CLI root application with serve command."""

import typer

from alset_api.core.config import get_settings
from alset_api.core.logging import setup_logging

app = typer.Typer(name="alset-api", help="Alset property data service CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),  # noqa: FBT001
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
    workers: int = typer.Option(1, "--workers", min=1, help="Worker processes (ignored with --reload)"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "alset_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=None if reload else workers,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from alset_api.cli.credits_cmd import credits_app
    from alset_api.cli.db_cmd import db_app
    from alset_api.cli.property_cmd import property_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(property_app, name="property", help="Property data cache commands")
    app.add_typer(credits_app, name="credits", help="Credit ledger commands")


_register_subcommands()
