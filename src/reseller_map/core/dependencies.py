"""FastAPI dependency injection for the resolver, batch resolver, and map secret check."""

import hmac
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request, status

from reseller_map.core.config import Settings, get_settings
from reseller_map.lib.geocoder import ChainedCache
from reseller_map.services.batch_service import BatchResolver
from reseller_map.services.resolution_service import AddressResolver


def get_resolver(request: Request) -> AddressResolver:
    """Return the application-wide resolver created during lifespan startup."""
    return request.app.state.resolver


def get_batch_resolver(request: Request) -> BatchResolver:
    """Return the application-wide batch resolver created during lifespan startup."""
    return request.app.state.batch_resolver


def get_cache(request: Request) -> ChainedCache:
    """Return the application-wide cache chain."""
    return request.app.state.cache


def verify_map_key(
    settings: Annotated[Settings, Depends(get_settings)],
    key: Annotated[str | None, Query(description="Map access secret")] = None,
) -> None:
    """Reject the request unless it carries the configured map secret.

    No check is made when ``MAP_SECRET`` is unset.

    Raises:
        HTTPException: 401 if the secret is configured and does not match.
    """
    if not settings.map_secret:
        return
    if key is None or not hmac.compare_digest(key.encode(), settings.map_secret.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
