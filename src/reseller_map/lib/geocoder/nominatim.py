"""OpenStreetMap Nominatim geocoder provider (secondary).

Uses the Nominatim API (https://nominatim.org/release-docs/develop/api/Search/)
for address-to-coordinate resolution. Keyless and community-operated: the
usage policy requires an identifying User-Agent and at most 1 req/sec.
"""

from loguru import logger

from reseller_map.lib.geocoder.base import (
    BaseGeocoder,
    GeocodingProviderError,
    GeocodingResult,
)
from reseller_map.lib.geocoder.http import fetch_json

NOMINATIM_API_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "reseller-map/1.0"


class NominatimGeocoder(BaseGeocoder):
    """OpenStreetMap Nominatim geocoder provider."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        email: str = "",
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._timeout = timeout
        self._email = email
        self._user_agent = user_agent

    @property
    def provider_name(self) -> str:
        return "nominatim"

    @property
    def rate_limit_delay(self) -> float:
        return 1.0

    async def geocode(self, address: str) -> GeocodingResult | None:
        """Geocode a query string using the Nominatim search API.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """
        params: dict[str, str | int] = {"q": address, "format": "json", "limit": 1}
        if self._email:
            params["email"] = self._email

        data = await fetch_json(
            self.provider_name,
            NOMINATIM_API_URL,
            params=params,
            timeout=self._timeout,
            headers={"User-Agent": self._user_agent},
        )
        if not isinstance(data, list):
            raise GeocodingProviderError(self.provider_name, "Response body is not a JSON array")
        return self._parse_response(data)

    def _parse_response(self, data: list[dict]) -> GeocodingResult | None:
        """Parse the first search hit; lat/lon arrive as strings."""
        if not data:
            return None

        best = data[0]
        try:
            if not isinstance(best, dict):
                msg = f"result is {type(best).__name__}, not an object"
                raise TypeError(msg)
            importance = float(best.get("importance") or 0.0)
            return GeocodingResult(
                latitude=float(best["lat"]),
                longitude=float(best["lon"]),
                confidence_score=min(max(importance, 0.0), 1.0),
                raw_response={"results": data},
                matched_address=best.get("display_name"),
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to parse Nominatim response: {e}")
            raise GeocodingProviderError(self.provider_name, f"Failed to parse response: {e}") from e
