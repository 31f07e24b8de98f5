"""Attempt strategies for resolving one address, declared as data.

A resolution walks an ordered list of ``Attempt`` values and stops at the
first one that yields coordinates.  ``build_attempt_plan`` derives that
list from the address and a ``ResolutionPolicy``.
"""

from dataclasses import dataclass, field
from enum import StrEnum

from reseller_map.core.config import DEFAULT_FALLBACK_COUNTRIES
from reseller_map.lib.geocoder.address import has_country_word, looks_like_us_address

US_COUNTRY_SUFFIX = "USA"


class AttemptKind(StrEnum):
    """Kind of query sent to a provider."""

    BARE_QUERY = "bare_query"
    COUNTRY_SUFFIX = "country_suffix"
    ALTERNATE_PROVIDER = "alternate_provider"


@dataclass(frozen=True)
class Attempt:
    """One query against one provider."""

    kind: AttemptKind
    country: str | None = None

    def __post_init__(self) -> None:
        if (self.kind == AttemptKind.COUNTRY_SUFFIX) != bool(self.country):
            msg = "country is required for country_suffix attempts and only for them"
            raise ValueError(msg)

    @property
    def uses_alternate_provider(self) -> bool:
        return self.kind == AttemptKind.ALTERNATE_PROVIDER

    def query_for(self, address: str) -> str:
        """Build the provider query text for a normalized address."""
        if self.kind == AttemptKind.COUNTRY_SUFFIX:
            return f"{address}, {self.country}"
        return address

    def describe(self) -> str:
        if self.country:
            return f"{self.kind.value}({self.country})"
        return self.kind.value


def _default_fallback_countries() -> tuple[str, ...]:
    return tuple(c.strip() for c in DEFAULT_FALLBACK_COUNTRIES.split(","))


@dataclass(frozen=True)
class ResolutionPolicy:
    """Deployment-specific knobs for the attempt sequence."""

    fallback_countries: tuple[str, ...] = field(default_factory=_default_fallback_countries)
    us_hint_enabled: bool = True
    use_alternate_provider: bool = True


def build_attempt_plan(
    address: str,
    policy: ResolutionPolicy,
    *,
    has_alternate: bool,
) -> list[Attempt]:
    """Build the ordered attempt list for a normalized address.

    Order: bare query; ``", USA"`` when no country is named and the address
    has a US shape; each fallback country when no country is named; the
    alternate provider with the bare query.

    Args:
        address: Normalized, non-empty address.
        policy: Resolution policy.
        has_alternate: Whether a secondary provider is available.

    Returns:
        Attempts in execution order.
    """
    plan = [Attempt(AttemptKind.BARE_QUERY)]

    if not has_country_word(address):
        if policy.us_hint_enabled and looks_like_us_address(address):
            plan.append(Attempt(AttemptKind.COUNTRY_SUFFIX, US_COUNTRY_SUFFIX))
        plan.extend(Attempt(AttemptKind.COUNTRY_SUFFIX, country) for country in policy.fallback_countries)

    if has_alternate and policy.use_alternate_provider:
        plan.append(Attempt(AttemptKind.ALTERNATE_PROVIDER))

    return plan
