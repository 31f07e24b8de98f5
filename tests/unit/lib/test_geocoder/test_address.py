"""Unit tests for address normalization and country-context heuristics."""

import pytest

from reseller_map.lib.geocoder.address import (
    US_STATE_CODES,
    has_country_word,
    looks_like_us_address,
    normalize_address,
)


class TestNormalizeAddress:
    """Tests for normalize_address()."""

    def test_newlines_become_comma_separators(self) -> None:
        """Blank-line separated parts join with a single ', '."""
        assert normalize_address("123 Main St\n\nSuite 4") == "123 Main St, Suite 4"

    def test_crlf_becomes_comma_separator(self) -> None:
        assert normalize_address("1 Rue de Rivoli\r\n75001 Paris") == "1 Rue de Rivoli, 75001 Paris"

    def test_whitespace_runs_collapse(self) -> None:
        assert normalize_address("123 Main St   Suite 4") == "123 Main St Suite 4"

    def test_tabs_collapse(self) -> None:
        assert normalize_address("123\t\tMain St") == "123 Main St"

    def test_surrounding_quotes_stripped(self) -> None:
        assert normalize_address('"10 Downing Street, London"') == "10 Downing Street, London"
        assert normalize_address("'10 Downing Street'") == "10 Downing Street"
        assert normalize_address("\"'10 Downing Street'\"") == "10 Downing Street"

    def test_quotes_inside_padding_stripped(self) -> None:
        """Quotes behind whitespace are stripped in the same pass."""
        assert normalize_address('  "10 Downing Street"  ') == "10 Downing Street"

    def test_inner_quotes_kept(self) -> None:
        assert normalize_address("Shop 'Le Petit', 3 Rue Cler") == "Shop 'Le Petit', 3 Rue Cler"

    def test_trailing_newline_leaves_no_separator(self) -> None:
        assert normalize_address("123 Main St\n") == "123 Main St"

    def test_outer_whitespace_trimmed(self) -> None:
        assert normalize_address("   123 Main St   ") == "123 Main St"

    def test_unicode_outer_whitespace_trimmed(self) -> None:
        assert normalize_address("\u3000123 Main St\xa0") == "123 Main St"

    @pytest.mark.parametrize("raw", ["", "   ", "\n\n", '""', "' '", "\xa0", "\u3000", " \u2003\xa0 ", None])
    def test_empty_inputs_normalize_to_empty(self, raw: str | None) -> None:
        assert normalize_address(raw) == ""

    @pytest.mark.parametrize(
        "raw",
        [
            "123 Main St\n\nSuite 4",
            '  "10 Downing Street"  ',
            "a \n b",
            "\n, 'x' ,\n",
            "1600 Pennsylvania Ave,   Washington,\tDC 20500",
            "'\"\r\n  Shop\t\t3  \r\n'",
            "\xa0",
            "\u3000'10 Downing Street'\u2003",
            "",
        ],
    )
    def test_idempotent(self, raw: str) -> None:
        """Applying normalization twice equals applying it once."""
        once = normalize_address(raw)
        assert normalize_address(once) == once


class TestHasCountryWord:
    """Tests for has_country_word()."""

    def test_named_country(self) -> None:
        assert has_country_word("10 Downing Street, London, United Kingdom") is True

    def test_case_insensitive(self) -> None:
        assert has_country_word("5 avenue anatole, paris, FRANCE") is True
        assert has_country_word("1 Infinite Loop, Cupertino, usa") is True

    def test_no_country(self) -> None:
        assert has_country_word("221B Baker St, London, GB") is False
        assert has_country_word("1600 Pennsylvania Ave, Washington, DC 20500") is False

    def test_substring_match(self) -> None:
        """Matching is by substring, not whole word."""
        assert has_country_word("12 Duke Street, Edinburgh") is True


class TestLooksLikeUsAddress:
    """Tests for looks_like_us_address()."""

    def test_state_and_zip(self) -> None:
        assert looks_like_us_address("1600 Pennsylvania Ave, Washington, DC 20500") is True

    def test_state_and_zip_plus_four(self) -> None:
        assert looks_like_us_address("350 Fifth Ave, New York, NY 10118-0110") is True

    def test_state_only(self) -> None:
        assert looks_like_us_address("1 Infinite Loop, Cupertino, CA") is True

    def test_territory(self) -> None:
        assert looks_like_us_address("100 Calle Fortaleza, San Juan, PR 00901") is True

    def test_non_us_code(self) -> None:
        """GB has the right shape but is not a US state."""
        assert looks_like_us_address("221B Baker St, London, GB") is False

    def test_lowercase_code_rejected(self) -> None:
        assert looks_like_us_address("1 Infinite Loop, Cupertino, ca") is False

    def test_code_not_at_end(self) -> None:
        assert looks_like_us_address("Cupertino, CA, United States") is False

    def test_malformed_zip(self) -> None:
        assert looks_like_us_address("1 Infinite Loop, Cupertino, CA 9501") is False

    def test_state_set_covers_states_dc_and_territories(self) -> None:
        assert {"AL", "WY", "DC", "PR", "GU", "VI", "AS", "MP"} <= US_STATE_CODES
        assert len({c for c in US_STATE_CODES if c not in {"DC", "PR", "GU", "VI", "AS", "MP", "FM", "MH", "PW"}}) == 50
