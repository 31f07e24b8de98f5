"""Great-circle distance and radius search around a resolved point."""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

EARTH_RADIUS_KM = 6371.0
DEFAULT_RADIUS_KM = 1.0

T = TypeVar("T")


@dataclass
class NearbyMatch(Generic[T]):
    """An item within the search radius and its distance from the center."""

    item: T
    distance_km: float


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two WGS84 points in kilometers.

    Args:
        lat1: Latitude of the first point.
        lng1: Longitude of the first point.
        lat2: Latitude of the second point.
        lng2: Longitude of the second point.

    Returns:
        Distance in kilometers on a spherical Earth (radius 6371 km).
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    s = math.sin(d_lat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(s)))


def find_nearby(
    center: tuple[float, float],
    items: Iterable[tuple[T, float | None, float | None]],
    radius_km: float = DEFAULT_RADIUS_KM,
) -> list[NearbyMatch[T]]:
    """Select items within ``radius_km`` of ``center``, nearest first.

    Items whose coordinates are missing or not finite are skipped.

    Args:
        center: (latitude, longitude) of the search center.
        items: (item, latitude, longitude) triples.
        radius_km: Inclusive search radius in kilometers.

    Returns:
        Matches sorted by ascending distance.

    Raises:
        ValueError: If radius_km is negative.
    """
    if radius_km < 0:
        msg = f"radius_km must be >= 0, got {radius_km}"
        raise ValueError(msg)

    center_lat, center_lng = center
    matches: list[NearbyMatch[T]] = []
    for item, lat, lng in items:
        if lat is None or lng is None or not (math.isfinite(lat) and math.isfinite(lng)):
            continue
        distance = haversine_km(center_lat, center_lng, lat, lng)
        if distance <= radius_km:
            matches.append(NearbyMatch(item=item, distance_km=distance))

    matches.sort(key=lambda m: m.distance_km)
    return matches
