"""Typer CLI root: logging setup, the API server, and the geocode command group."""

import typer

from reseller_map.core.config import get_settings
from reseller_map.core.logging import setup_logging

app = typer.Typer(name="reseller-map", help="Resolve reseller addresses to map coordinates")


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG, including every provider attempt"),
) -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("127.0.0.1", "--host", help="Bind host"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the geocoding API (the cache opens on startup and closes on shutdown)."""
    import uvicorn

    uvicorn.run("reseller_map.main:create_app", factory=True, host=host, port=port, reload=reload)


def _register_subcommands() -> None:
    from reseller_map.cli.geocode_cmd import geocode_app

    app.add_typer(geocode_app, name="geocode", help="Resolve addresses and inspect the cache")


_register_subcommands()
