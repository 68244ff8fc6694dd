"""Tests for free-text date parsing."""

import pytest

from kingraph.models.record import DateFragment
from kingraph.utils.dates import (
    month_from_name,
    normalize_year,
    parse_approx,
    parse_date_fragment,
    parse_range,
    search_date,
)


class TestParseDateFragment:
    """Tests for parse_date_fragment."""

    def test_day_month_year(self):
        """Test a register-style date."""
        fragment = parse_date_fragment("17 Mar 1901")
        assert (fragment.year, fragment.month, fragment.day) == (1901, 3, 17)
        assert fragment.approx is False
        assert fragment.raw == "17 Mar 1901"
        assert fragment.precision == "exact"

    def test_month_day_year(self):
        """Test the US written order."""
        fragment = parse_date_fragment("July 24, 1813")
        assert (fragment.year, fragment.month, fragment.day) == (1813, 7, 24)

    def test_french_month(self):
        """Test French month names with ordinal day."""
        fragment = parse_date_fragment("1er février 1820")
        assert (fragment.year, fragment.month, fragment.day) == (1820, 2, 1)

    def test_iso(self):
        """Test ISO dates."""
        fragment = parse_date_fragment("1901-03-17")
        assert (fragment.year, fragment.month, fragment.day) == (1901, 3, 17)

    @pytest.mark.parametrize(
        ("text", "month", "day"),
        [
            ("03/04/1901", 3, 4),
            ("25/04/1901", 4, 25),
            ("17.03.1901", 3, 17),
        ],
    )
    def test_numeric(self, text, month, day):
        """Test slashed dates are month-first unless impossible, dotted dates day-first."""
        fragment = parse_date_fragment(text)
        assert (fragment.year, fragment.month, fragment.day) == (1901, month, day)

    def test_month_year(self):
        """Test month precision."""
        fragment = parse_date_fragment("March 1850")
        assert (fragment.year, fragment.month, fragment.day) == (1850, 3, None)
        assert fragment.precision == "month"

    def test_approx_forms_agree(self):
        """Test "abt 1902" and "~1902" parse to the same value."""
        abt = parse_date_fragment("abt 1902")
        tilde = parse_date_fragment("~1902")
        assert (abt.year, abt.month, abt.day, abt.approx) == (1902, None, None, True)
        assert (tilde.year, tilde.month, tilde.day, tilde.approx) == (abt.year, abt.month, abt.day, abt.approx)

    @pytest.mark.parametrize("text", ["c. 1850", "circa 1850", "about 1850", "vers 1850", "ca 1850"])
    def test_approx_markers(self, text):
        """Test the uncertainty markers."""
        fragment = parse_date_fragment(text)
        assert fragment.year == 1850
        assert fragment.approx is True

    def test_span(self):
        """Test a year span sets start and end."""
        fragment = parse_date_fragment("1880-1885")
        assert fragment.start == 1880
        assert fragment.end == 1885
        assert fragment.year == 1880
        assert fragment.approx is False

    def test_open_bounds(self):
        """Test before/after bounds are approximate."""
        before = parse_date_fragment("before 1899")
        assert before.end == 1899
        assert before.approx is True
        after = parse_date_fragment("after 1900")
        assert after.start == 1900
        assert after.approx is True

    def test_quarter(self):
        """Test civil registration quarters."""
        fragment = parse_date_fragment("Q2 1901")
        assert (fragment.year, fragment.month) == (1901, 4)
        assert fragment.approx is True

    def test_blank_is_empty(self):
        """Test blank input yields an empty fragment."""
        assert parse_date_fragment("") == DateFragment()
        assert parse_date_fragment(None) == DateFragment()
        assert parse_date_fragment("   ").is_empty

    def test_unparsable_keeps_raw(self):
        """Test text without a date keeps only the raw text."""
        fragment = parse_date_fragment("unknown")
        assert fragment.raw == "unknown"
        assert not fragment.has_date


class TestDateHelpers:
    """Tests for the smaller date helpers."""

    def test_normalize_year(self):
        """Test the first 3-4 digit run is the year."""
        assert normalize_year("born 1850 in Lyon") == 1850
        assert normalize_year("-500") is None
        assert normalize_year("no year") is None
        assert normalize_year(None) is None

    def test_parse_approx(self):
        """Test marker detection."""
        assert parse_approx("abt. 1900")
        assert parse_approx("bef 1900")
        assert not parse_approx("1900")
        assert not parse_approx("")

    def test_parse_range(self):
        """Test span priority over bounds."""
        assert parse_range("1880–1885") == {"start": 1880, "end": 1885}
        assert parse_range("avant 1799") == {"end": 1799}
        assert parse_range("après 1801") == {"start": 1801}
        assert parse_range("1850") is None

    @pytest.mark.parametrize(
        ("name", "month"),
        [("Février", 2), ("Sept.", 9), ("juillet", 7), ("DEC", 12), ("Nonsense", None)],
    )
    def test_month_from_name(self, name, month):
        """Test multilingual month names."""
        assert month_from_name(name) == month


class TestSearchDate:
    """Tests for locating dates in running text."""

    def test_most_precise_first(self):
        """Test a full date wins over a bare year earlier in the text."""
        text = "In 1849 the family moved; he was born on 3 March 1850."
        start, end = search_date(text)
        assert text[start:end] == "3 March 1850"

    def test_qualifier_included(self):
        """Test the approximation marker is part of the match."""
        text = "He was born about 1850 in Paris"
        start, end = search_date(text)
        assert text[start:end] == "about 1850"

    def test_month_word_must_be_a_month(self):
        """Test capitalized words before a year are not taken as months."""
        text = "Lyon 1850"
        start, end = search_date(text)
        assert text[start:end] == "1850"

    def test_no_date(self):
        """Test text without a date."""
        assert search_date("no date here") is None
        assert search_date(None) is None
