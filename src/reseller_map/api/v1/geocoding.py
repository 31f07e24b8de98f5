"""Geocoding API endpoints: single address, batch, nearby search, and cache stats."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger

from reseller_map.core.dependencies import get_batch_resolver, get_cache, get_resolver, verify_map_key
from reseller_map.lib.geocoder import CacheError, ChainedCache, ConfigurationError
from reseller_map.schemas.geocoding import (
    BatchGeocodeRequest,
    BatchGeocodeResponse,
    CacheStatsResponse,
    CoordinatesResponse,
    GeocodeRequest,
    NearbyRequest,
    NearbyResellerResponse,
    NearbyResponse,
    ResolvedAddressResponse,
)
from reseller_map.services.batch_service import BatchResolver
from reseller_map.services.resolution_service import AddressResolver, NearbyReseller, find_nearby_resellers

geocoding_router = APIRouter(prefix="/geocode", tags=["geocoding"], dependencies=[Depends(verify_map_key)])

_NOT_CONFIGURED = "Geocoding is not configured on this server."

# Seconds between client-disconnect checks while a batch is running
DISCONNECT_POLL_INTERVAL = 0.5


async def _cancel_on_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    """Set ``cancel_event`` once the client has gone away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling batch geocoding")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_INTERVAL)


@geocoding_router.post("", response_model=CoordinatesResponse)
async def geocode_address(
    body: GeocodeRequest,
    resolver: AddressResolver = Depends(get_resolver),  # noqa: B008
) -> CoordinatesResponse:
    """Resolve one freeform address to coordinates."""
    if not body.address.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Address must not be empty or whitespace-only.",
        )

    try:
        result = await resolver.resolve(body.address)
    except ConfigurationError as e:
        logger.error(f"Geocoding configuration error: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_NOT_CONFIGURED) from e

    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")

    return CoordinatesResponse(lat=result.latitude, lng=result.longitude)


@geocoding_router.post("/batch", response_model=BatchGeocodeResponse)
async def geocode_batch(
    body: BatchGeocodeRequest,
    request: Request,
    batch_resolver: BatchResolver = Depends(get_batch_resolver),  # noqa: B008
) -> BatchGeocodeResponse:
    """Resolve many addresses; only resolved ones are returned.

    Remaining addresses are skipped if the client disconnects mid-batch.
    """
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_cancel_on_disconnect(request, cancel_event))
    try:
        report = await batch_resolver.resolve_many(body.addresses, cancel_event)
    except ConfigurationError as e:
        logger.error(f"Geocoding configuration error: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_NOT_CONFIGURED) from e
    finally:
        watcher.cancel()

    return BatchGeocodeResponse(
        results=[ResolvedAddressResponse(address=e.address, lat=e.latitude, lng=e.longitude) for e in report.entries],
        succeeded=report.succeeded,
        failed=report.failed,
        skipped=report.skipped,
        cache_hits=report.cache_hits,
        last_error=report.last_error,
    )


@geocoding_router.post("/nearby", response_model=NearbyResponse)
async def geocode_nearby(
    body: NearbyRequest,
    resolver: AddressResolver = Depends(get_resolver),  # noqa: B008
) -> NearbyResponse:
    """Resolve a candidate address and list resellers within the radius."""
    resellers = [NearbyReseller(name=r.name, address=r.address, latitude=r.lat, longitude=r.lng) for r in body.resellers]
    try:
        found = await find_nearby_resellers(resolver, body.address, resellers, radius_km=body.radius_km)
    except ConfigurationError as e:
        logger.error(f"Geocoding configuration error: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=_NOT_CONFIGURED) from e

    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")

    center, matches = found
    return NearbyResponse(
        center=CoordinatesResponse(lat=center.latitude, lng=center.longitude),
        radius_km=body.radius_km,
        resellers=[
            NearbyResellerResponse(
                name=m.item.name,
                address=m.item.address,
                lat=m.item.latitude,  # type: ignore[arg-type]
                lng=m.item.longitude,  # type: ignore[arg-type]
                distance_km=round(m.distance_km, 3),
            )
            for m in matches
        ],
    )


@geocoding_router.get("/cache", response_model=CacheStatsResponse)
async def cache_stats(
    cache: ChainedCache = Depends(get_cache),  # noqa: B008
) -> CacheStatsResponse:
    """Report durable cache statistics."""
    durable = cache.durable
    if durable is None:
        return CacheStatsResponse(entry_count=0)
    try:
        stats = durable.stats()
    except CacheError as e:
        logger.warning(f"Cache stats unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Cache unavailable.") from e
    return CacheStatsResponse(
        entry_count=stats.entry_count,
        oldest_entry=stats.oldest_entry,
        newest_entry=stats.newest_entry,
    )
