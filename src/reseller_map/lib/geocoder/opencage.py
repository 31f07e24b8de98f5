"""OpenCage Geocoding API provider (primary).

Uses the OpenCage forward geocoding API
(https://opencagedata.com/api) for address-to-coordinate resolution.
Requires an API key; the free tier is limited to 1 req/sec.
"""

from loguru import logger

from reseller_map.lib.geocoder.base import (
    BaseGeocoder,
    ConfigurationError,
    GeocodingProviderError,
    GeocodingResult,
)
from reseller_map.lib.geocoder.http import fetch_json

OPENCAGE_API_URL = "https://api.opencagedata.com/geocode/v1/json"
DEFAULT_TIMEOUT = 10.0
DEFAULT_LANGUAGE = "en"


class OpenCageGeocoder(BaseGeocoder):
    """OpenCage geocoder provider."""

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self._api_key = api_key or ""
        self._timeout = timeout
        self._language = language

    @property
    def provider_name(self) -> str:
        return "opencage"

    @property
    def requires_api_key(self) -> bool:
        return True

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def rate_limit_delay(self) -> float:
        return 1.0

    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode a query string using the OpenCage API.

        Raises:
            ConfigurationError: If no API key is configured (before any request).
            GeocodingProviderError: On transport or service errors.
        """
        if not self._api_key:
            msg = "OPENCAGE_API_KEY is not configured"
            raise ConfigurationError(msg)

        data = await fetch_json(
            self.provider_name,
            OPENCAGE_API_URL,
            params={
                "q": address,
                "key": self._api_key,
                "limit": 1,
                "no_annotations": 1,
                "abbrv": 1,
                "language": self._language,
            },
            timeout=self._timeout,
        )
        if not isinstance(data, dict):
            raise GeocodingProviderError(self.provider_name, "Response body is not a JSON object")
        return self._parse_response(data)

    def _parse_response(self, data: dict) -> GeocodingResult | None:
        """Parse an OpenCage API response into a GeocodingResult.

        Args:
            data: Raw JSON response from OpenCage.

        Returns:
            GeocodingResult or None if no match found.
        """
        results = data.get("results") or []
        if not results:
            return None

        try:
            if not isinstance(results, list):
                msg = f"results is {type(results).__name__}, not a list"
                raise TypeError(msg)
            best = results[0]
            if not isinstance(best, dict):
                msg = f"result is {type(best).__name__}, not an object"
                raise TypeError(msg)
            geometry = best["geometry"]
            lat = geometry["lat"]
            lng = geometry["lng"]
            if isinstance(lat, bool) or isinstance(lng, bool):
                msg = "boolean coordinates"
                raise TypeError(msg)
            result = GeocodingResult(
                latitude=float(lat),
                longitude=float(lng),
                confidence_score=self._map_confidence(best.get("confidence")),
                raw_response={"results": results},
                matched_address=best.get("formatted"),
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to parse OpenCage response: {e}")
            raise GeocodingProviderError("opencage", f"Failed to parse response: {e}") from e

        return result

    @staticmethod
    def _map_confidence(confidence: object) -> float | None:
        """Map OpenCage's 0-10 confidence (bounding-box precision) to 0-1."""
        if not isinstance(confidence, int | float) or isinstance(confidence, bool):
            return None
        return max(0.0, min(float(confidence) / 10.0, 1.0))
