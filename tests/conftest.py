"""Shared test fixtures for settings, cache storage, and scripted geocoders."""

from collections.abc import Callable, Iterator

import pytest
from sqlalchemy import Engine

from reseller_map.core.config import Settings
from reseller_map.core.database import create_cache_engine
from reseller_map.lib.geocoder.base import BaseGeocoder, GeocodingProviderError, GeocodingResult
from reseller_map.lib.geocoder.cache import ChainedCache, DatabaseCacheTier, MemoryCacheTier

Script = dict[str, GeocodingResult | Exception | None]


class ScriptedGeocoder(BaseGeocoder):
    """Test geocoder answering from a query -> outcome script and recording every call.

    Queries missing from the script return ``default``; an Exception value
    (or default) is raised instead of returned.
    """

    def __init__(
        self,
        name: str = "opencage",
        script: Script | None = None,
        default: GeocodingResult | Exception | None = None,
        configured: bool = True,
    ) -> None:
        self._name = name
        self.script = script or {}
        self.default = default
        self.configured = configured
        self.calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def geocode(self, address: str) -> GeocodingResult | None:
        self.calls.append(address)
        outcome = self.script.get(address, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def coords(latitude: float = 48.8566, longitude: float = 2.3522) -> GeocodingResult:
    """Build a GeocodingResult (defaults to central Paris)."""
    return GeocodingResult(latitude=latitude, longitude=longitude)


@pytest.fixture
def make_geocoder() -> Callable[..., ScriptedGeocoder]:
    """Factory for scripted geocoders."""
    return ScriptedGeocoder


@pytest.fixture
def provider_error() -> Callable[..., GeocodingProviderError]:
    """Factory for provider errors."""

    def _make(name: str = "opencage", status_code: int | None = 503) -> GeocodingProviderError:
        return GeocodingProviderError(name, f"Provider returned HTTP {status_code}", status_code=status_code)

    return _make


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test application settings with a temporary cache directory and no pacing."""
    return Settings(
        _env_file=None,
        opencage_api_key="test-opencage-key",
        cache_dir=str(tmp_path / "cache"),
        geocoder_request_interval=0,
        map_secret=None,
    )


@pytest.fixture
def cache_engine(tmp_path) -> Iterator[Engine]:
    """SQLite cache engine in a temporary directory."""
    engine = create_cache_engine(str(tmp_path / "cache"))
    yield engine
    engine.dispose()


@pytest.fixture
def durable_tier(cache_engine: Engine) -> DatabaseCacheTier:
    """Durable cache tier over the temporary engine."""
    return DatabaseCacheTier(cache_engine)


@pytest.fixture
def cache(durable_tier: DatabaseCacheTier) -> ChainedCache:
    """Memory tier in front of the durable tier."""
    return ChainedCache([MemoryCacheTier(), durable_tier])


@pytest.fixture
def make_coords() -> Callable[..., GeocodingResult]:
    """Factory for coordinate results."""
    return coords
