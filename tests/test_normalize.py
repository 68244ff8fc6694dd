"""Tests for lexical normalization helpers."""

import pytest

from kingraph.utils.normalize import (
    collapse_spaces,
    collapse_whitespace,
    normalize_for_comparison,
    normalize_token,
    strip_diacritics,
)


class TestNormalizeToken:
    """Tests for dictionary token normalization."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Île-de-France", "ile de france"),
            ("St. Mary's", "st marys"),
            ("  Saône   et Loire ", "saone et loire"),
            ("Maître d'école", "maitre decole"),
            ("Seine/Marne", "seine marne"),
        ],
    )
    def test_normalizes(self, value, expected):
        """Test lowercasing, diacritics, punctuation and separators."""
        assert normalize_token(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "...", "'"])
    def test_total_on_blank_input(self, value):
        """Test blank or punctuation-only input yields an empty key."""
        assert normalize_token(value) == ""

    def test_idempotent(self):
        """Test normalizing twice changes nothing."""
        once = normalize_token("Côte-d'Or")
        assert normalize_token(once) == once


class TestCollapseSpaces:
    """Tests for the space-free secondary key."""

    def test_removes_whitespace(self):
        """Test every whitespace run is removed."""
        assert collapse_spaces("new york") == "newyork"
        assert collapse_spaces(" a \t b\nc ") == "abc"

    def test_empty(self):
        """Test None and empty input."""
        assert collapse_spaces(None) == ""
        assert collapse_spaces("") == ""


class TestComparisonHelpers:
    """Tests for the comparison and whitespace helpers."""

    def test_normalize_for_comparison(self):
        """Test labels reduce to lowercase ASCII words."""
        assert normalize_for_comparison("Date of Birth:") == "date of birth"
        assert normalize_for_comparison("Lieu de décès") == "lieu de deces"
        assert normalize_for_comparison(None) == ""

    def test_strip_diacritics(self):
        """Test combining marks are removed."""
        assert strip_diacritics("Île") == "Ile"
        assert strip_diacritics("Hélène Müller") == "Helene Muller"

    def test_collapse_whitespace(self):
        """Test whitespace runs collapse and ends are trimmed."""
        assert collapse_whitespace("  Jean \n  Dupont\t") == "Jean Dupont"
        assert collapse_whitespace(None) == ""
