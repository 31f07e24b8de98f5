"""Geocoding CLI commands for single and batch address resolution."""

import asyncio
from pathlib import Path

import typer

geocode_app = typer.Typer()


@geocode_app.command("one")
def geocode_one(
    address: str = typer.Argument(..., help="Freeform address to resolve"),  # noqa: B008
) -> None:
    """Resolve one address and print its coordinates."""
    asyncio.run(_geocode_one(address))


@geocode_app.command("batch")
def geocode_batch(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text file with one address per line"),  # noqa: B008
    pacing: str | None = typer.Option(None, "--pacing", help="sequential or concurrent (defaults to settings)"),
    concurrency: int | None = typer.Option(None, "--concurrency", min=1, help="Worker count for concurrent pacing"),
) -> None:
    """Resolve every address in a file and print a summary."""
    if pacing is not None and pacing not in ("sequential", "concurrent"):
        raise typer.BadParameter("must be 'sequential' or 'concurrent'", param_hint="--pacing")
    asyncio.run(_geocode_batch(file, pacing, concurrency))


@geocode_app.command("cache-stats")
def cache_stats() -> None:
    """Show durable cache statistics."""
    from reseller_map.core.config import get_settings
    from reseller_map.lib.geocoder import open_cache

    settings = get_settings()
    with open_cache(settings) as cache:
        durable = cache.durable
        stats = durable.stats() if durable is not None else None

    if stats is None:
        typer.echo("No durable cache configured.")
        return
    typer.echo(f"Cached addresses: {stats.entry_count}")
    typer.echo(f"  Oldest entry:   {stats.oldest_entry or '-'}")
    typer.echo(f"  Newest entry:   {stats.newest_entry or '-'}")


async def _geocode_one(address: str) -> None:
    """Async implementation of single-address resolution."""
    from reseller_map.core.config import get_settings
    from reseller_map.lib.geocoder import ConfigurationError, open_cache
    from reseller_map.services.resolution_service import build_resolver

    settings = get_settings()
    with open_cache(settings) as cache:
        resolver = build_resolver(settings, cache)
        try:
            resolution = await resolver.resolve_detailed(address)
        except ConfigurationError as e:
            typer.echo(f"Configuration error: {e}", err=True)
            raise typer.Exit(code=2) from e

    if resolution.result is None:
        typer.echo(f"Not found: {resolution.normalized or address!r}")
        raise typer.Exit(code=1)

    source = "cache" if resolution.from_cache else resolution.outcomes[-1].provider
    typer.echo(f"{resolution.result.latitude}, {resolution.result.longitude} ({source})")


async def _geocode_batch(file: Path, pacing: str | None, concurrency: int | None) -> None:
    """Async implementation of batch resolution."""
    from reseller_map.core.config import get_settings
    from reseller_map.lib.geocoder import ConfigurationError, open_cache
    from reseller_map.services.batch_service import BatchResolver
    from reseller_map.services.resolution_service import build_resolver

    settings = get_settings()
    addresses = [line for line in file.read_text(encoding="utf-8").splitlines() if line.strip()]

    with open_cache(settings) as cache:
        resolver = build_resolver(settings, cache)
        batch = BatchResolver(
            resolver,
            pacing=pacing or settings.geocoder_pacing,
            concurrency=concurrency or settings.geocoder_concurrency,
        )
        typer.echo(f"Resolving {len(addresses)} addresses ({batch.pacing}, {batch.worker_count} worker(s))")
        try:
            report = await batch.resolve_many(addresses)
        except ConfigurationError as e:
            typer.echo(f"Configuration error: {e}", err=True)
            raise typer.Exit(code=2) from e

    for entry in report.entries:
        typer.echo(f"{entry.latitude}\t{entry.longitude}\t{entry.address}")

    typer.echo("\nGeocoding completed:")
    typer.echo(f"  Total records:  {report.total}")
    typer.echo(f"  Succeeded:      {report.succeeded}")
    typer.echo(f"  Failed:         {report.failed}")
    typer.echo(f"  Cache hits:     {report.cache_hits}")
    if report.last_error:
        typer.echo(f"  Last error:     {report.last_error}")
