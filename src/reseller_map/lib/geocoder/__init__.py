"""Geocoder library: address normalization, providers, pacing, and caching.

Public API:
    - normalize_address: Canonical single-line form of a raw address
    - has_country_word / looks_like_us_address: Country-context heuristics
    - BaseGeocoder: Abstract provider interface
    - GeocodingResult: Coordinates dataclass
    - GeocodingProviderError / ConfigurationError: Provider failure types
    - OpenCageGeocoder: OpenCage provider (primary, keyed)
    - NominatimGeocoder: OpenStreetMap Nominatim provider (secondary, keyless)
    - RateGate: Minimum-interval request pacing
    - CacheTier / MemoryCacheTier / DatabaseCacheTier / ChainedCache: Cache tiers
    - open_cache: Scoped acquisition of the configured cache chain
    - Attempt / AttemptKind / ResolutionPolicy / build_attempt_plan: Attempt strategies
    - haversine_km / find_nearby: Radius search
    - get_geocoder: Provider factory/registry
    - get_configured_providers: Primary and optional secondary provider from settings
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from reseller_map.lib.geocoder.address import (
    COUNTRY_HINTS,
    US_STATE_CODES,
    has_country_word,
    looks_like_us_address,
    normalize_address,
)
from reseller_map.lib.geocoder.base import (
    BaseGeocoder,
    ConfigurationError,
    GeocodingProviderError,
    GeocodingResult,
)
from reseller_map.lib.geocoder.cache import (
    CacheError,
    CacheStats,
    CacheTier,
    ChainedCache,
    DatabaseCacheTier,
    MemoryCacheTier,
    open_cache,
)
from reseller_map.lib.geocoder.distance import NearbyMatch, find_nearby, haversine_km
from reseller_map.lib.geocoder.nominatim import NominatimGeocoder
from reseller_map.lib.geocoder.opencage import OpenCageGeocoder
from reseller_map.lib.geocoder.pacing import RateGate
from reseller_map.lib.geocoder.plan import Attempt, AttemptKind, ResolutionPolicy, build_attempt_plan

if TYPE_CHECKING:
    from reseller_map.core.config import Settings

# Provider registry: all known providers
_PROVIDERS: dict[str, type[BaseGeocoder]] = {
    "opencage": OpenCageGeocoder,
    "nominatim": NominatimGeocoder,
}


def get_available_providers() -> list[str]:
    """Return the names of all registered geocoder providers.

    Returns:
        Sorted list of provider name strings.
    """
    return sorted(_PROVIDERS.keys())


def get_geocoder(provider: str = "opencage", **kwargs: Any) -> BaseGeocoder:
    """Get a geocoder instance by provider name.

    Args:
        provider: Provider name (e.g., "opencage").
        **kwargs: Additional arguments forwarded to the provider constructor
            (e.g., ``timeout=2.0``).

    Returns:
        An instance of the requested geocoder provider.

    Raises:
        ValueError: If the provider is not registered.
    """
    cls = _PROVIDERS.get(provider)
    if cls is None:
        msg = f"Unknown geocoder provider: {provider!r}. Available: {list(_PROVIDERS.keys())}"
        raise ValueError(msg)
    return cls(**kwargs)


def get_configured_providers(settings: Settings) -> tuple[BaseGeocoder, BaseGeocoder | None]:
    """Build the primary provider and, when enabled, the secondary provider.

    The primary provider is always returned, configured or not: a missing
    key only becomes an error once a resolution needs the network.

    Args:
        settings: Application settings.

    Returns:
        (primary, secondary) where secondary is None when disabled.
    """
    primary = get_geocoder(
        "opencage",
        api_key=settings.opencage_api_key,
        timeout=settings.geocoder_timeout,
        language=settings.geocoder_language,
    )
    secondary = None
    if settings.geocoder_nominatim_enabled:
        secondary = get_geocoder(
            "nominatim",
            timeout=settings.geocoder_nominatim_timeout,
            email=settings.geocoder_nominatim_email,
            user_agent=settings.geocoder_nominatim_user_agent,
        )
    return primary, secondary


__all__ = [
    "COUNTRY_HINTS",
    "US_STATE_CODES",
    "Attempt",
    "AttemptKind",
    "BaseGeocoder",
    "CacheError",
    "CacheStats",
    "CacheTier",
    "ChainedCache",
    "ConfigurationError",
    "DatabaseCacheTier",
    "GeocodingProviderError",
    "GeocodingResult",
    "MemoryCacheTier",
    "NearbyMatch",
    "NominatimGeocoder",
    "OpenCageGeocoder",
    "RateGate",
    "ResolutionPolicy",
    "build_attempt_plan",
    "find_nearby",
    "get_available_providers",
    "get_configured_providers",
    "get_geocoder",
    "has_country_word",
    "haversine_km",
    "looks_like_us_address",
    "normalize_address",
    "open_cache",
]
