"""Two-tier coordinate cache keyed by normalized address.

``MemoryCacheTier`` is an in-process map cleared on restart.
``DatabaseCacheTier`` persists entries in SQLite through SQLAlchemy.
``ChainedCache`` composes tiers: reads fall through in order and back-fill
the faster tiers, writes go to every tier.

Cache access is synchronous: it never suspends a resolution, so concurrent
resolutions on one event loop see each ``put`` as atomic per key.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import Engine, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from reseller_map.core.config import Settings
from reseller_map.core.database import create_cache_engine
from reseller_map.lib.geocoder.base import GeocodingResult
from reseller_map.models.geo_cache import GeoCacheEntry


class CacheError(Exception):
    """Raised when a cache tier cannot be read or written.

    Non-fatal: callers continue without the cache.
    """


@dataclass
class CacheStats:
    """Summary of the durable cache contents."""

    entry_count: int
    oldest_entry: datetime | None
    newest_entry: datetime | None


class CacheTier(ABC):
    """A get/put store of coordinates keyed by normalized address."""

    @abstractmethod
    def get(self, address: str) -> GeocodingResult | None:
        """Return cached coordinates for a normalized address, or None on miss."""

    @abstractmethod
    def put(self, address: str, latitude: float, longitude: float) -> None:
        """Insert or overwrite the coordinates for a normalized address."""


class MemoryCacheTier(CacheTier):
    """Process-local cache tier with no persistence guarantee."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[float, float]] = {}

    def get(self, address: str) -> GeocodingResult | None:
        entry = self._entries.get(address)
        if entry is None:
            return None
        return GeocodingResult(latitude=entry[0], longitude=entry[1])

    def put(self, address: str, latitude: float, longitude: float) -> None:
        self._entries[address] = (latitude, longitude)

    def __len__(self) -> int:
        return len(self._entries)


class DatabaseCacheTier(CacheTier):
    """Durable cache tier backed by the ``geo_cache`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(engine, expire_on_commit=False)

    def get(self, address: str) -> GeocodingResult | None:
        """Look up a cached entry.

        Rows holding non-finite or out-of-range coordinates are treated as misses.

        Raises:
            CacheError: If the database cannot be read.
        """
        try:
            with self._session_factory() as session:
                entry = session.get(GeoCacheEntry, address)
        except SQLAlchemyError as e:
            raise CacheError(f"Cache lookup failed: {e}") from e

        if entry is None:
            return None
        try:
            return GeocodingResult(latitude=entry.latitude, longitude=entry.longitude)
        except (TypeError, ValueError):
            logger.warning("Ignoring cache entry with invalid coordinates")
            return None

    def put(self, address: str, latitude: float, longitude: float) -> None:
        """Upsert an entry (last write wins) and stamp it with the current time.

        Raises:
            CacheError: If the database cannot be written.
        """
        now = datetime.now(UTC)
        stmt = sqlite_insert(GeoCacheEntry).values(
            address=address,
            latitude=latitude,
            longitude=longitude,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[GeoCacheEntry.address],
            set_={"latitude": latitude, "longitude": longitude, "updated_at": now},
        )
        try:
            with self._session_factory() as session, session.begin():
                session.execute(stmt)
        except SQLAlchemyError as e:
            raise CacheError(f"Cache store failed: {e}") from e

    def stats(self) -> CacheStats:
        """Count entries and report the oldest/newest update times.

        Raises:
            CacheError: If the database cannot be read.
        """
        try:
            with self._session_factory() as session:
                row = session.execute(
                    select(
                        func.count(GeoCacheEntry.address),
                        func.min(GeoCacheEntry.updated_at),
                        func.max(GeoCacheEntry.updated_at),
                    )
                ).one()
        except SQLAlchemyError as e:
            raise CacheError(f"Cache stats failed: {e}") from e
        return CacheStats(entry_count=row[0], oldest_entry=row[1], newest_entry=row[2])

    def close(self) -> None:
        """Dispose of the engine and release connections."""
        self._engine.dispose()


class ChainedCache(CacheTier):
    """Ordered composition of cache tiers, fastest first."""

    def __init__(self, tiers: Sequence[CacheTier]) -> None:
        if not tiers:
            msg = "ChainedCache needs at least one tier"
            raise ValueError(msg)
        self.tiers = list(tiers)

    def get(self, address: str) -> GeocodingResult | None:
        """Read through the tiers, back-filling the ones that missed.

        A tier that fails to read is skipped; the error is raised only if
        no tier produced a hit.

        Raises:
            CacheError: If every tier missed and at least one of them failed.
        """
        first_error: CacheError | None = None
        for index, tier in enumerate(self.tiers):
            try:
                hit = tier.get(address)
            except CacheError as e:
                logger.warning(f"Cache tier {type(tier).__name__} read failed: {e}")
                first_error = first_error or e
                continue
            if hit is not None:
                for earlier in self.tiers[:index]:
                    try:
                        earlier.put(address, hit.latitude, hit.longitude)
                    except CacheError as e:
                        logger.warning(f"Cache tier {type(earlier).__name__} back-fill failed: {e}")
                return hit
        if first_error is not None:
            raise first_error
        return None

    def put(self, address: str, latitude: float, longitude: float) -> None:
        """Write to every tier.

        Raises:
            ValueError: If the coordinates are not finite WGS84 values.
            CacheError: After all tiers were attempted, if any of them failed.
        """
        GeocodingResult(latitude=latitude, longitude=longitude)
        first_error: CacheError | None = None
        for tier in self.tiers:
            try:
                tier.put(address, latitude, longitude)
            except CacheError as e:
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    @property
    def durable(self) -> DatabaseCacheTier | None:
        """The durable tier, if the chain has one."""
        for tier in self.tiers:
            if isinstance(tier, DatabaseCacheTier):
                return tier
        return None


@contextmanager
def open_cache(settings: Settings) -> Iterator[ChainedCache]:
    """Open the configured cache chain and dispose of the durable tier on exit.

    If the durable cache directory or database cannot be opened, a warning is
    logged and a memory-only chain is yielded instead, so resolution still
    works without persistence.

    Args:
        settings: Application settings (cache directory, memory tier flag).

    Yields:
        The composed cache.
    """
    try:
        engine = create_cache_engine(settings.resolved_cache_dir)
    except (SQLAlchemyError, OSError) as e:
        logger.warning(
            f"Cannot open geocoding cache in {settings.resolved_cache_dir}: {e}; continuing with memory cache only"
        )
        engine = None

    if engine is None:
        yield ChainedCache([MemoryCacheTier()])
        return

    durable = DatabaseCacheTier(engine)
    tiers: list[CacheTier] = [MemoryCacheTier()] if settings.cache_memory_enabled else []
    tiers.append(durable)
    logger.info(f"Geocoding cache opened at {settings.resolved_cache_dir}")
    try:
        yield ChainedCache(tiers)
    finally:
        durable.close()
