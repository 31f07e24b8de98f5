"""Abstract base geocoder interface for pluggable provider support."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class GeocodingResult:
    """Coordinates produced by a provider or read back from the cache."""

    latitude: float
    longitude: float
    confidence_score: float | None = None
    raw_response: dict | None = None
    matched_address: str | None = None

    def __post_init__(self) -> None:
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            msg = f"coordinates must be finite, got ({self.latitude}, {self.longitude})"
            raise ValueError(msg)
        if not (-90 <= self.latitude <= 90):
            msg = f"latitude must be between -90 and 90, got {self.latitude}"
            raise ValueError(msg)
        if not (-180 <= self.longitude <= 180):
            msg = f"longitude must be between -180 and 180, got {self.longitude}"
            raise ValueError(msg)
        if self.confidence_score is not None and not (0 <= self.confidence_score <= 1):
            msg = f"confidence_score must be between 0 and 1, got {self.confidence_score}"
            raise ValueError(msg)


class ConfigurationError(Exception):
    """Raised when a provider is missing required configuration (e.g., its API key).

    Fatal and non-retryable: raised before any network call is attempted.
    """


class GeocodingProviderError(Exception):
    """Raised when a geocoding provider experiences a transport or service error.

    Distinguishes provider failures (timeout, HTTP error, connection error)
    from a successful response with no match (which returns None).

    Args:
        provider_name: Name of the failing provider.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the provider.
    """

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_name}: {message}")


class BaseGeocoder(ABC):
    """Abstract geocoder interface. All providers must implement this."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this geocoder provider."""

    @property
    def requires_api_key(self) -> bool:
        """Whether this provider requires an API key to function."""
        return False

    @property
    def is_configured(self) -> bool:
        """Whether this provider has all required configuration (e.g., API keys)."""
        return True

    @property
    def rate_limit_delay(self) -> float:
        """Minimum delay in seconds between requests (for rate-limited providers)."""
        return 0.0

    @abstractmethod
    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode a single query string.

        Args:
            address: Normalized address, optionally suffixed with a country.

        Returns:
            GeocodingResult or None if the provider found no match.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """
