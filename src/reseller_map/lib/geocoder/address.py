"""Freeform address normalization and country-context heuristics.

Normalization produces the canonical single-line form used both as the
cache key and as the provider query.  The two predicates decide whether a
missing country is worth guessing before querying the provider again.
"""

import re

# Country names and aliases that show up in reseller addresses.  Matched as
# case-insensitive substrings, so "UK" also hits words containing "uk".
COUNTRY_HINTS: tuple[str, ...] = (
    "France",
    "USA",
    "United States",
    "United Kingdom",
    "UK",
    "China",
    "Taiwan",
    "Korea",
    "Republic of Korea",
    "Japan",
    "Singapore",
    "Lebanon",
    "Australia",
    "Netherlands",
    "Holland",
    "Belgium",
    "Canada",
    "Italia",
    "Italy",
)

_COUNTRY_HINTS_LOWER = tuple(h.lower() for h in COUNTRY_HINTS)

# 50 states, DC, and the inhabited territories / freely associated states
# with USPS codes
US_STATE_CODES: frozenset[str] = frozenset(
    {
        "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
        "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
        "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
        "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
        "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
        "DC", "PR", "GU", "VI", "AS", "MP", "FM", "MH", "PW",
    }
)  # fmt: skip

_LINE_BREAKS = re.compile(r"[\r\n]+")
_WHITESPACE_RUN = re.compile(r"\s{2,}")
# Trailing ", XX" with an optional 5-digit or ZIP+4 postal code
_US_TAIL = re.compile(r",\s*([A-Z]{2})(?:\s+\d{5}(?:-\d{4})?)?$")

# Quotes, commas, and any Unicode whitespace at either end, stripped together
# so a quoted, padded address settles in one pass
_EDGE_RUN = re.compile(r"^[\s\"',]+|[\s\"',]+$")


def normalize_address(raw: str | None) -> str:
    """Normalize a raw address into its canonical query / cache-key form.

    Line breaks become ", ", whitespace runs collapse to one space, and
    surrounding quotes, separators, and whitespace are removed.  The
    function is pure and idempotent.

    Args:
        raw: Raw address text, possibly multi-line or quoted.

    Returns:
        Normalized address, or an empty string if nothing remains.
    """
    if not raw:
        return ""

    result = _LINE_BREAKS.sub(", ", raw)
    result = _WHITESPACE_RUN.sub(" ", result)
    return _EDGE_RUN.sub("", result)


def has_country_word(address: str) -> bool:
    """Check whether the address already names a known country or alias.

    Args:
        address: Normalized address.

    Returns:
        True if any country hint occurs in the address (case-insensitive).
    """
    lowered = address.lower()
    return any(hint in lowered for hint in _COUNTRY_HINTS_LOWER)


def looks_like_us_address(address: str) -> bool:
    """Check whether the address ends like a US mailing address.

    Matches a trailing ``", ST"`` or ``", ST 12345"`` / ``", ST 12345-6789"``
    where ``ST`` is a recognized state or territory code.

    Args:
        address: Normalized address.

    Returns:
        True if the address ends with a US state code (and optional ZIP).
    """
    match = _US_TAIL.search(address)
    return bool(match and match.group(1) in US_STATE_CODES)
