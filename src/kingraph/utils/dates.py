"""Free-text date parsing for genealogical sources.

Turns expressions such as ``17 Mar 1901``, ``abt 1902``, ``Q1 1887``,
``le 3 août 1850`` or ``1880–1885`` into a :class:`DateFragment`. The parser
never raises: anything it cannot read is simply absent from the result.
Month and day values are not range-checked here; the GEDCOM renderer clamps
months when it formats them.
"""

from __future__ import annotations

import re

from ..models.record import DateFragment
from .normalize import normalize_token

# Uncertainty markers; ``c.``/``c`` only count when followed by a year
APPROX_PATTERN = re.compile(
    r"\b(?:abt|about|approx(?:imately)?|around|circa|ca|env(?:iron)?|vers)\b\.?"
    r"|\bc\.|\bc\s*(?=\d)"
    r"|~",
    re.IGNORECASE,
)
BOUND_PATTERN = re.compile(r"\b(?:before|after|bef|aft|avant|apr[eè]s)\b\.?", re.IGNORECASE)

_YEAR = re.compile(r"(?:(?<![\w-])(-))?\b(\d{3,4})\b")
_SPAN = re.compile(r"\b(\d{3,4})\s*[-–—]\s*(\d{3,4})\b")
_BEFORE = re.compile(r"\b(?:before|bef|avant)\b\.?\s+(\d{3,4})\b", re.IGNORECASE)
_AFTER = re.compile(r"\b(?:after|aft|apr[eè]s)\b\.?\s+(\d{3,4})\b", re.IGNORECASE)
_QUARTER = re.compile(r"\bQ([1-4])\s*(\d{4})\b", re.IGNORECASE)

_ISO = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
_DAY_MONTH_YEAR = re.compile(
    r"\b(\d{1,2})(?:er|st|nd|rd|th)?\s+(?:of\s+)?([^\W\d_]+)\.?,?\s+(\d{3,4})\b",
    re.IGNORECASE,
)
_MONTH_DAY_YEAR = re.compile(
    r"\b([^\W\d_]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{3,4})\b",
    re.IGNORECASE,
)
_NUMERIC = re.compile(r"\b(\d{1,2})([/.])(\d{1,2})[/.](\d{4})\b")
_MONTH_YEAR = re.compile(r"\b([^\W\d_]+)\.?,?\s+(\d{3,4})\b", re.IGNORECASE)

# Month names keyed by normalize_token() output (English, French, German, GEDCOM)
MONTH_NAMES = {
    "january": 1, "jan": 1, "janvier": 1, "janv": 1, "januar": 1,
    "february": 2, "feb": 2, "fevrier": 2, "fevr": 2, "fev": 2, "februar": 2,
    "march": 3, "mar": 3, "mars": 3, "marz": 3,
    "april": 4, "apr": 4, "avril": 4, "avr": 4,
    "may": 5, "mai": 5,
    "june": 6, "jun": 6, "juin": 6, "juni": 6,
    "july": 7, "jul": 7, "juillet": 7, "juil": 7, "juli": 7,
    "august": 8, "aug": 8, "aout": 8,
    "september": 9, "sep": 9, "sept": 9, "septembre": 9,
    "october": 10, "oct": 10, "octobre": 10, "oktober": 10,
    "november": 11, "nov": 11, "novembre": 11,
    "december": 12, "dec": 12, "decembre": 12, "dezember": 12,
}


def month_from_name(name: str) -> int | None:
    return MONTH_NAMES.get(normalize_token(name))


def normalize_year(text: str | None) -> int | None:
    """Return the first run of 3-4 digits as a year.

    A run written with a leading minus sign is rejected.
    """
    if not text:
        return None
    match = _YEAR.search(text)
    if not match or match.group(1):
        return None
    return int(match.group(2))


def parse_approx(text: str | None) -> bool:
    """True when the text carries an uncertainty marker or a before/after bound."""
    if not text or not text.strip():
        return False
    return bool(APPROX_PATTERN.search(text) or BOUND_PATTERN.search(text))


def parse_range(text: str | None) -> dict[str, int] | None:
    """Recognize a year span or an open bound.

    Priority: ``YYYY-YYYY`` / ``YYYY–YYYY`` span, then ``before YYYY``
    (``{"end": YYYY}``), then ``after YYYY`` (``{"start": YYYY}``).
    """
    if not text or not text.strip():
        return None

    span = _SPAN.search(text)
    if span:
        result: dict[str, int] = {}
        start = normalize_year(span.group(1))
        end = normalize_year(span.group(2))
        if start is not None:
            result["start"] = start
        if end is not None:
            result["end"] = end
        if result:
            return result

    before = _BEFORE.search(text)
    if before:
        return {"end": int(before.group(1))}

    after = _AFTER.search(text)
    if after:
        return {"start": int(after.group(1))}

    return None


def _strip_qualifiers(text: str) -> str:
    cleaned = APPROX_PATTERN.sub(" ", text)
    cleaned = BOUND_PATTERN.sub(" ", cleaned)
    return " ".join(cleaned.split())


def _structured_components(text: str) -> tuple[int | None, int | None, int | None]:
    """Find (year, month, day) in qualifier-free text, most precise pattern first."""
    iso = _ISO.search(text)
    if iso:
        return int(iso.group(1)), int(iso.group(2)), int(iso.group(3))

    for match in _DAY_MONTH_YEAR.finditer(text):
        month = month_from_name(match.group(2))
        if month:
            return int(match.group(3)), month, int(match.group(1))

    for match in _MONTH_DAY_YEAR.finditer(text):
        month = month_from_name(match.group(1))
        if month:
            return int(match.group(3)), month, int(match.group(2))

    numeric = _NUMERIC.search(text)
    if numeric:
        a, sep, b, year = int(numeric.group(1)), numeric.group(2), int(numeric.group(3)), int(numeric.group(4))
        # Dotted dates are day-first; slashed dates follow the US order unless a part exceeds 12
        if sep == "." or a > 12:
            return year, b, a
        return year, a, b

    for match in _MONTH_YEAR.finditer(text):
        month = month_from_name(match.group(1))
        if month:
            return int(match.group(2)), month, None

    return normalize_year(text), None, None


def parse_date_fragment(text: str | None) -> DateFragment:
    """Parse a free-text date expression.

    Args:
        text: Date text as it appears in the source

    Returns:
        DateFragment with ``raw`` set verbatim (trimmed) and whichever of
        year/month/day/range could be read; an empty fragment for blank input.
    """
    raw = text.strip() if text else ""
    if not raw:
        return DateFragment()

    approx = parse_approx(raw)
    bounds = parse_range(raw) or {}

    quarter = _QUARTER.search(raw)
    if quarter:
        return DateFragment(
            raw=raw,
            year=int(quarter.group(2)),
            month=(int(quarter.group(1)) - 1) * 3 + 1,
            approx=True,
            **bounds,
        )

    year, month, day = _structured_components(_strip_qualifiers(raw))
    return DateFragment(raw=raw, year=year, month=month, day=day, approx=approx, **bounds)


_QUALIFIER = (
    r"(?:\b(?:abt|about|approx(?:imately)?|around|circa|ca|c|env(?:iron)?|vers"
    r"|before|after|bef|aft|avant|apr[eè]s)\.?\s+|~\s*)?"
)
_PROSE_PATTERNS = tuple(
    re.compile(_QUALIFIER + body, re.IGNORECASE)
    for body in (
        r"\b\d{4}-\d{1,2}-\d{1,2}\b",
        r"\b\d{1,2}(?:er|st|nd|rd|th)?\s+(?:of\s+)?(?P<month>[^\W\d_]+)\.?,?\s+\d{3,4}\b",
        r"\b(?P<month>[^\W\d_]+)\.?\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{3,4}\b",
        r"\b\d{1,2}[/.]\d{1,2}[/.]\d{4}\b",
        r"\bQ[1-4]\s*\d{4}\b",
        r"\b(?P<month>[^\W\d_]+)\.?\s+\d{3,4}\b",
        r"\b\d{3,4}(?:\s*[-–—]\s*\d{3,4})?\b",
    )
)


def search_date(text: str | None) -> tuple[int, int] | None:
    """Locate the most precise date expression in running text.

    Returns ``(start, end)`` offsets into ``text``, qualifier included
    (``"about 1850"``), or ``None``. Candidate month words must be month names.
    """
    if not text:
        return None
    for pattern in _PROSE_PATTERNS:
        for match in pattern.finditer(text):
            month = match.groupdict().get("month")
            if month is not None and month_from_name(month) is None:
                continue
            return match.start(), match.end()
    return None
