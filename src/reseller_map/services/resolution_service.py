"""Address resolution service: cache check, ordered provider attempts, cache write.

One resolution runs its attempts strictly one after another because each
step's necessity depends on the previous outcome.  Provider failures are
recorded as typed outcomes and never abort the resolution; exhausting every
attempt is a normal "not found" result.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from loguru import logger

from reseller_map.core.config import Settings
from reseller_map.lib.geocoder import (
    BaseGeocoder,
    CacheError,
    CacheTier,
    ConfigurationError,
    GeocodingProviderError,
    GeocodingResult,
    NearbyMatch,
    RateGate,
    ResolutionPolicy,
    build_attempt_plan,
    find_nearby,
    get_configured_providers,
    normalize_address,
)
from reseller_map.lib.geocoder.distance import DEFAULT_RADIUS_KM
from reseller_map.lib.geocoder.plan import Attempt

# Extra time granted on top of the provider's own HTTP timeout before an
# attempt is abandoned as hung
ATTEMPT_TIMEOUT_MARGIN = 5.0
DEFAULT_ATTEMPT_TIMEOUT = 15.0


class OutcomeStatus(StrEnum):
    """Result of a single provider attempt."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class AttemptOutcome:
    """Typed result of one attempt: coordinates, an explicit miss, or a provider error."""

    attempt: Attempt
    provider: str
    query: str
    result: GeocodingResult | None = None
    error: GeocodingProviderError | None = None

    @property
    def status(self) -> OutcomeStatus:
        if self.error is not None:
            return OutcomeStatus.FAILED
        if self.result is None:
            return OutcomeStatus.NOT_FOUND
        return OutcomeStatus.FOUND


@dataclass
class Resolution:
    """Full record of resolving one raw address."""

    address: str
    normalized: str
    result: GeocodingResult | None = None
    from_cache: bool = False
    cancelled: bool = False
    outcomes: list[AttemptOutcome] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.result is not None

    @property
    def last_error(self) -> GeocodingProviderError | None:
        for outcome in reversed(self.outcomes):
            if outcome.error is not None:
                return outcome.error
        return None


class AddressResolver:
    """Resolves raw addresses to coordinates through the cache and providers.

    Args:
        primary: Keyed, rate-limited provider used for every query variant.
        cache: Cache consulted before and written after provider attempts.
            ``None`` runs without caching.
        secondary: Optional keyless provider queried once with the bare address.
        policy: Fallback countries and heuristic toggles.
        gates: Rate gates keyed by provider name; providers without a gate
            are not paced.
        attempt_timeout: Upper bound in seconds for a single provider call.
    """

    def __init__(
        self,
        primary: BaseGeocoder,
        cache: CacheTier | None,
        secondary: BaseGeocoder | None = None,
        *,
        policy: ResolutionPolicy | None = None,
        gates: dict[str, RateGate] | None = None,
        attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT,
    ) -> None:
        if attempt_timeout <= 0:
            msg = "attempt_timeout must be > 0"
            raise ValueError(msg)
        self.primary = primary
        self.secondary = secondary
        self.cache = cache
        self.policy = policy or ResolutionPolicy()
        self.gates = gates or {}
        self.attempt_timeout = attempt_timeout

    async def resolve(
        self,
        address: str,
        cancel_event: asyncio.Event | None = None,
    ) -> GeocodingResult | None:
        """Resolve one raw address.

        Args:
            address: Raw address text.
            cancel_event: When set, no further provider attempts are started.

        Returns:
            GeocodingResult, or None if the address could not be resolved.

        Raises:
            ConfigurationError: If a provider call is needed and the primary
                provider has no API key.
        """
        resolution = await self.resolve_detailed(address, cancel_event)
        return resolution.result

    async def resolve_detailed(
        self,
        address: str,
        cancel_event: asyncio.Event | None = None,
    ) -> Resolution:
        """Resolve one raw address and return every attempt outcome.

        Args:
            address: Raw address text.
            cancel_event: When set, no further provider attempts are started.

        Returns:
            Resolution with the result (or None) and per-attempt outcomes.

        Raises:
            ConfigurationError: If a provider call is needed and the primary
                provider has no API key.
        """
        normalized = normalize_address(address)
        resolution = Resolution(address=address, normalized=normalized)
        if not normalized:
            return resolution

        cached = self._cache_get(normalized)
        if cached is not None:
            resolution.result = cached
            resolution.from_cache = True
            return resolution

        if not self.primary.is_configured:
            msg = f"{self.primary.provider_name} geocoder is missing its API key"
            raise ConfigurationError(msg)

        plan = build_attempt_plan(normalized, self.policy, has_alternate=self.secondary is not None)
        for attempt in plan:
            if cancel_event is not None and cancel_event.is_set():
                resolution.cancelled = True
                logger.debug(f"Resolution cancelled before {attempt.describe()}")
                return resolution

            outcome = await self._run_attempt(attempt, normalized)
            resolution.outcomes.append(outcome)
            if outcome.result is not None:
                resolution.result = outcome.result
                break

        if resolution.result is None:
            logger.debug(f"Address unresolved after {len(resolution.outcomes)} attempts")
            return resolution

        self._cache_put(normalized, resolution.result)
        return resolution

    async def _run_attempt(self, attempt: Attempt, normalized: str) -> AttemptOutcome:
        """Run one attempt against its provider, converting failures into an outcome."""
        provider = self.secondary if attempt.uses_alternate_provider and self.secondary else self.primary
        query = attempt.query_for(normalized)
        outcome = AttemptOutcome(attempt=attempt, provider=provider.provider_name, query=query)

        gate = self.gates.get(provider.provider_name)
        if gate is not None:
            await gate.wait()

        try:
            outcome.result = await asyncio.wait_for(provider.geocode(query), timeout=self.attempt_timeout)
        except TimeoutError:
            logger.warning(f"{provider.provider_name} attempt {attempt.describe()} timed out")
            outcome.error = GeocodingProviderError(provider.provider_name, "Attempt timed out")
        except GeocodingProviderError as e:
            logger.warning(f"{provider.provider_name} attempt {attempt.describe()} failed: {e.message}")
            outcome.error = e

        logger.debug(f"{provider.provider_name} {attempt.describe()} -> {outcome.status}")
        return outcome

    def _cache_get(self, normalized: str) -> GeocodingResult | None:
        if self.cache is None:
            return None
        try:
            return self.cache.get(normalized)
        except CacheError as e:
            logger.warning(f"Cache unavailable for lookup, continuing without it: {e}")
            return None

    def _cache_put(self, normalized: str, result: GeocodingResult) -> None:
        if self.cache is None:
            return
        try:
            self.cache.put(normalized, result.latitude, result.longitude)
        except CacheError as e:
            logger.warning(f"Cache unavailable for store, result not persisted: {e}")


def build_resolver(settings: Settings, cache: CacheTier | None) -> AddressResolver:
    """Wire providers, rate gates, and policy from settings.

    Args:
        settings: Application settings.
        cache: Cache chain (usually from ``open_cache``).

    Returns:
        A configured AddressResolver.
    """
    primary, secondary = get_configured_providers(settings)

    gates = {primary.provider_name: RateGate(settings.geocoder_request_interval)}
    timeout = settings.geocoder_timeout
    if secondary is not None:
        gates[secondary.provider_name] = RateGate(max(secondary.rate_limit_delay, settings.geocoder_request_interval))
        timeout = max(timeout, settings.geocoder_nominatim_timeout)

    policy = ResolutionPolicy(
        fallback_countries=tuple(settings.geocoder_fallback_country_list),
        us_hint_enabled=settings.geocoder_us_hint_enabled,
        use_alternate_provider=secondary is not None,
    )

    if not primary.is_configured:
        logger.warning("OPENCAGE_API_KEY is not set; only cached addresses can be resolved")

    return AddressResolver(
        primary,
        cache,
        secondary,
        policy=policy,
        gates=gates,
        attempt_timeout=timeout + ATTEMPT_TIMEOUT_MARGIN,
    )


@dataclass
class NearbyReseller:
    """A reseller location supplied by the caller for a radius search."""

    name: str
    address: str
    latitude: float | None = None
    longitude: float | None = None


async def find_nearby_resellers(
    resolver: AddressResolver,
    address: str,
    resellers: Sequence[NearbyReseller],
    radius_km: float = DEFAULT_RADIUS_KM,
) -> tuple[GeocodingResult, list[NearbyMatch[NearbyReseller]]] | None:
    """Resolve a candidate address and list resellers within a radius of it.

    Args:
        resolver: Address resolver.
        address: Candidate address text.
        resellers: Resellers with (possibly missing) coordinates.
        radius_km: Search radius in kilometers.

    Returns:
        (center, matches nearest first), or None if the candidate cannot be resolved.
    """
    center = await resolver.resolve(address)
    if center is None:
        return None

    matches = find_nearby(
        (center.latitude, center.longitude),
        ((r, r.latitude, r.longitude) for r in resellers),
        radius_km=radius_km,
    )
    return center, matches
