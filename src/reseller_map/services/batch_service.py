"""Batch resolution: deduplication, pacing discipline, partial failure, cancellation.

Each distinct normalized address is resolved at most once per batch and its
result is shared by every record carrying it.  A failing address never
aborts the batch; only a ConfigurationError does, because no address could
succeed without the credential.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from loguru import logger

from reseller_map.core.config import Settings
from reseller_map.lib.geocoder import ConfigurationError, GeocodingResult, normalize_address
from reseller_map.services.resolution_service import AddressResolver, Resolution

DEFAULT_CONCURRENCY = 3


class PacingMode(StrEnum):
    """How a batch schedules its resolutions."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


@dataclass
class ResolvedAddress:
    """A resolved input record."""

    address: str
    latitude: float
    longitude: float


@dataclass
class BatchReport:
    """Outcome of a batch: resolved entries plus aggregate counters.

    Counters are per input record, so duplicate addresses count once each.
    """

    entries: list[ResolvedAddress] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cache_hits: int = 0
    distinct_addresses: int = 0
    last_error: str | None = None
    cancelled: bool = False

    @property
    def total(self) -> int:
        return self.succeeded + self.failed + self.skipped


@dataclass
class _Group:
    """Input positions sharing one normalized address."""

    normalized: str
    indexes: list[int] = field(default_factory=list)
    resolution: Resolution | None = None
    error: str | None = None


class BatchResolver:
    """Resolve many addresses with a declared pacing discipline.

    Args:
        resolver: Single-address resolver (holds the shared cache and rate gates).
        pacing: ``sequential`` resolves one distinct address at a time;
            ``concurrent`` runs a fixed pool of workers over a shared queue.
        concurrency: Worker count for concurrent pacing.
    """

    def __init__(
        self,
        resolver: AddressResolver,
        pacing: PacingMode | str = PacingMode.SEQUENTIAL,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency <= 0:
            msg = "concurrency must be > 0"
            raise ValueError(msg)
        self.resolver = resolver
        self.pacing = PacingMode(pacing)
        self.concurrency = concurrency

    @property
    def worker_count(self) -> int:
        return 1 if self.pacing == PacingMode.SEQUENTIAL else self.concurrency

    async def resolve_many(
        self,
        addresses: Sequence[str],
        cancel_event: asyncio.Event | None = None,
    ) -> BatchReport:
        """Resolve a list of raw addresses.

        Args:
            addresses: Raw addresses, duplicates allowed.
            cancel_event: When set, workers stop taking new addresses and
                in-flight resolutions start no further attempts.

        Returns:
            BatchReport with resolved entries in input order.

        Raises:
            ConfigurationError: If the primary provider has no API key and a
                provider call was needed.
        """
        groups = self._group(addresses)
        queue: asyncio.Queue[_Group] = asyncio.Queue()
        for group in groups.values():
            queue.put_nowait(group)

        workers = [
            asyncio.create_task(self._worker(queue, cancel_event), name=f"geocode-worker-{i}")
            for i in range(min(self.worker_count, max(len(groups), 1)))
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        report = self._assemble(addresses, groups)
        report.cancelled = cancel_event is not None and cancel_event.is_set()
        logger.info(
            f"Batch geocoding finished: {report.succeeded} succeeded, {report.failed} failed, "
            f"{report.skipped} skipped, {report.cache_hits} cache hits "
            f"({report.distinct_addresses} distinct addresses)"
        )
        return report

    async def _worker(self, queue: asyncio.Queue[_Group], cancel_event: asyncio.Event | None) -> None:
        """Pull groups until the queue is empty or cancellation is requested."""
        while not (cancel_event is not None and cancel_event.is_set()):
            try:
                group = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                group.resolution = await self.resolver.resolve_detailed(group.normalized, cancel_event)
            except ConfigurationError:
                raise
            except Exception as e:
                logger.exception("Unexpected error while resolving an address")
                group.error = f"{type(e).__name__}: {e}"

    @staticmethod
    def _group(addresses: Sequence[str]) -> dict[str, _Group]:
        groups: dict[str, _Group] = {}
        for index, raw in enumerate(addresses):
            normalized = normalize_address(raw)
            if not normalized:
                continue
            groups.setdefault(normalized, _Group(normalized=normalized)).indexes.append(index)
        return groups

    @staticmethod
    def _assemble(addresses: Sequence[str], groups: dict[str, _Group]) -> BatchReport:
        """Build the report in input order from the per-group outcomes."""
        report = BatchReport(distinct_addresses=len(groups))
        by_index: dict[int, _Group] = {i: g for g in groups.values() for i in g.indexes}

        for index, raw in enumerate(addresses):
            group = by_index.get(index)
            if group is None:
                report.failed += 1
                report.unresolved.append(raw)
                report.last_error = "Empty address"
                continue

            resolution = group.resolution
            result: GeocodingResult | None = resolution.result if resolution else None
            if result is not None:
                report.succeeded += 1
                if resolution is not None and resolution.from_cache:
                    report.cache_hits += 1
                report.entries.append(ResolvedAddress(address=raw, latitude=result.latitude, longitude=result.longitude))
                continue

            report.unresolved.append(raw)
            never_started = resolution is None and group.error is None
            if never_started or (resolution is not None and resolution.cancelled):
                report.skipped += 1
                continue

            report.failed += 1
            if group.error is not None:
                report.last_error = group.error
            elif resolution is not None and resolution.last_error is not None:
                report.last_error = str(resolution.last_error)
            else:
                report.last_error = "Address not found"

        return report


def build_batch_resolver(settings: Settings, resolver: AddressResolver) -> BatchResolver:
    """Create a BatchResolver using the configured pacing discipline."""
    return BatchResolver(resolver, pacing=settings.geocoder_pacing, concurrency=settings.geocoder_concurrency)
