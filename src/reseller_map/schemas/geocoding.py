"""Pydantic v2 schemas for geocoding operations."""

from datetime import datetime

from pydantic import BaseModel, Field


class GeocodeRequest(BaseModel):
    """Request to resolve one freeform address."""

    address: str = Field(..., min_length=1, max_length=500, description="Freeform address (1-500 characters)")


class CoordinatesResponse(BaseModel):
    """Resolved coordinates for one address."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class BatchGeocodeRequest(BaseModel):
    """Request to resolve many addresses at once."""

    addresses: list[str] = Field(..., min_length=1, max_length=1000)


class ResolvedAddressResponse(BaseModel):
    """One resolved input address."""

    address: str
    lat: float
    lng: float


class BatchGeocodeResponse(BaseModel):
    """Resolved entries plus batch counters.

    Only resolved addresses appear in ``results``.
    """

    results: list[ResolvedAddressResponse]
    succeeded: int
    failed: int
    skipped: int = 0
    cache_hits: int = 0
    last_error: str | None = None


class ResellerLocation(BaseModel):
    """A reseller with coordinates already resolved by the caller."""

    name: str
    address: str = ""
    lat: float | None = None
    lng: float | None = None


class NearbyRequest(BaseModel):
    """Radius search around a candidate address."""

    address: str = Field(..., min_length=1, max_length=500)
    radius_km: float = Field(default=1.0, ge=0, le=500)
    resellers: list[ResellerLocation] = Field(default_factory=list)


class NearbyResellerResponse(BaseModel):
    """A reseller inside the search radius."""

    name: str
    address: str
    lat: float
    lng: float
    distance_km: float


class NearbyResponse(BaseModel):
    """Resolved candidate location and resellers within the radius, nearest first."""

    center: CoordinatesResponse
    radius_km: float
    resellers: list[NearbyResellerResponse]


class CacheStatsResponse(BaseModel):
    """Durable cache statistics."""

    entry_count: int
    oldest_entry: datetime | None = None
    newest_entry: datetime | None = None
