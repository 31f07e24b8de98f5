"""Shared HTTP GET for geocoding providers.

Every transport or service failure is converted into a
GeocodingProviderError tagged with the provider name, so the resolver can
record it as a failed attempt and move on.
"""

from typing import Any

import httpx
from loguru import logger

from reseller_map.lib.geocoder.base import GeocodingProviderError


async def fetch_json(
    provider_name: str,
    url: str,
    *,
    params: dict[str, str | int],
    timeout: float,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET ``url`` and decode the JSON body.

    Query text is never logged; it may carry a customer's address.

    Raises:
        GeocodingProviderError: On timeout, non-2xx status, connection
            failure, or an undecodable body.
    """
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
        return response.json()
    except httpx.TimeoutException as e:
        logger.warning(f"{provider_name} request timed out")
        raise GeocodingProviderError(provider_name, "Geocoding request timed out") from e
    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        logger.warning(f"{provider_name} returned HTTP {status_code}")
        raise GeocodingProviderError(provider_name, f"Provider returned HTTP {status_code}", status_code) from e
    except httpx.TransportError as e:
        logger.warning(f"{provider_name} connection error: {type(e).__name__}")
        raise GeocodingProviderError(provider_name, "Connection to geocoding provider failed") from e
    except Exception as e:
        logger.exception(f"{provider_name} unexpected error")
        raise GeocodingProviderError(provider_name, f"Unexpected error: {e}") from e
