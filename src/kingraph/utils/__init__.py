"""Text-level parsers: normalization, dates and names."""

from .dates import normalize_year, parse_approx, parse_date_fragment, parse_range, search_date
from .names import NameParts, parse_name
from .normalize import collapse_spaces, normalize_for_comparison, normalize_token, strip_diacritics

__all__ = [
    "NameParts",
    "collapse_spaces",
    "normalize_for_comparison",
    "normalize_token",
    "normalize_year",
    "parse_approx",
    "parse_date_fragment",
    "parse_name",
    "parse_range",
    "search_date",
    "strip_diacritics",
]
