"""Lexical normalization shared by the canonicalizers and label matching.

Every function here is pure and total: any string (including the empty
string) yields a string.
"""

from __future__ import annotations

import re
import unicodedata

_DROPPED = re.compile(r"[.'’]")
_SEPARATORS = re.compile(r"[-/‐‑–]")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def strip_diacritics(value: str) -> str:
    """Remove combining marks after NFD decomposition (``Île`` -> ``Ile``)."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def collapse_whitespace(value: str | None) -> str:
    """Collapse runs of whitespace to one space and trim."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value).strip()


def normalize_token(value: str | None) -> str:
    """Normalize a dictionary token for alias lookup.

    - Lowercases
    - Strips diacritics
    - Drops periods and apostrophes
    - Turns hyphens and slashes into spaces
    - Collapses whitespace

    Args:
        value: Place, profession or label text

    Returns:
        Normalized lookup key (possibly empty)
    """
    if not value:
        return ""

    result = strip_diacritics(value.lower())
    result = _DROPPED.sub("", result)
    result = _SEPARATORS.sub(" ", result)
    return collapse_whitespace(result)


def collapse_spaces(value: str | None) -> str:
    """Secondary lookup key: the token with all whitespace removed.

    ``New York`` and ``NewYork`` resolve to the same key.
    """
    if not value:
        return ""
    return _WHITESPACE.sub("", value)


def normalize_for_comparison(value: str | None) -> str:
    """Reduce text to lowercase ASCII words separated by single spaces."""
    if not value:
        return ""
    result = strip_diacritics(value).lower()
    return _NON_ALNUM.sub(" ", result).strip()
