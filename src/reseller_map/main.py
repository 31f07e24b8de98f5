"""FastAPI application factory.

Creates the FastAPI app with lifespan management of the geocoding cache
and resolver.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from reseller_map.core.config import get_settings
from reseller_map.core.logging import setup_logging
from reseller_map.lib.geocoder import open_cache
from reseller_map.services.batch_service import build_batch_resolver
from reseller_map.services.resolution_service import build_resolver


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Open the cache and build the resolver on startup; close the cache on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)

    with open_cache(settings) as cache:
        resolver = build_resolver(settings, cache)
        app.state.cache = cache
        app.state.resolver = resolver
        app.state.batch_resolver = build_batch_resolver(settings, resolver)
        yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Reseller Map",
        description="Address resolution for the reseller map",
        version="0.1.0",
        lifespan=lifespan,
    )

    from reseller_map.api.router import create_router

    app.include_router(create_router(settings))

    return app
