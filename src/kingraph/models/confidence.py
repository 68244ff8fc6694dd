"""Per-field confidence scoring.

Scores come from the signal class of each field's provenance spans, with a
few field-specific rules:

- ``birth.date`` / ``death.date`` are scored by precision and certainty of
  the parsed value rather than by where it was found
- ``maidenName`` is gated on an explicit "née" marker in the source
- ``parents.*`` rate labelled (table or heading) evidence higher than prose

A field without any provenance span gets no key: unknown is not the same as
low confidence.
"""
from __future__ import annotations

import re
from statistics import mean

from .provenance import ProvenanceLog, ProvenanceSpan, SignalClass, field_key
from .record import DateFragment, IndividualRecord

ConfidenceScores = dict[str, float]

SIGNAL_TIERS: dict[SignalClass, float] = {
    SignalClass.HEADING: 0.9,
    SignalClass.TABLE_LABEL: 0.8,
    SignalClass.NARRATIVE: 0.6,
}

PARENT_TIERS: dict[SignalClass, float] = {
    SignalClass.HEADING: 0.9,
    SignalClass.TABLE_LABEL: 0.9,
    SignalClass.NARRATIVE: 0.6,
}

DATE_TIERS: dict[str, float] = {"exact": 0.95, "month": 0.85, "year": 0.7}

MAIDEN_MARKED = 0.95
MAIDEN_BRACKETED = 0.5
MAIDEN_UNMARKED = 0.7

NAME_FIELDS = ("givenNames", "surname")
PARENT_FIELDS = ("parents.father", "parents.mother")
EVENT_FIELDS = ("birth", "death")

_BRACKETED = re.compile(r"^\[[^\]]+\]$")
_NEE = r"n(?:e|é|&eacute;|&#233;|&#xe9;)e"


def _clamp(value: float) -> float:
    return round(min(1.0, max(0.0, value)), 4)


def _signal_of(span: ProvenanceSpan, log: ProvenanceLog) -> SignalClass:
    if span.signal is not None:
        return span.signal
    # Hand-built spans carry no signal: a heading span marks the whole name as heading-sourced
    if span.field == "name.heading" or (span.field in NAME_FIELDS and log.has("name.heading")):
        return SignalClass.HEADING
    return SignalClass.TABLE_LABEL


def _best_tier(spans: list[ProvenanceSpan], log: ProvenanceLog, tiers: dict[SignalClass, float]) -> float:
    return max(tiers[_signal_of(span, log)] for span in spans)


def date_confidence(fragment: DateFragment) -> float:
    """Score a date by precision, lowered when approximate.

    Full date 0.95, month and year 0.85, year alone 0.7, minus 0.1 when
    ``approx``. A fragment without a year scores 0.
    """
    base = DATE_TIERS.get(fragment.precision)
    if base is None:
        return 0.0
    if fragment.approx:
        base -= 0.1
    return _clamp(base)


def maiden_name_confidence(maiden_name: str, source_html: str) -> float:
    trimmed = maiden_name.strip()
    if _BRACKETED.match(trimmed):
        return MAIDEN_BRACKETED
    marker = re.compile(rf"\b{_NEE}\.?\s+{re.escape(trimmed)}", re.IGNORECASE)
    if marker.search(source_html):
        return MAIDEN_MARKED
    return MAIDEN_UNMARKED


def score_confidence(record: IndividualRecord) -> ConfidenceScores:
    """Map each evidenced field of ``record`` to a score in [0, 1].

    Pure function of the record; an empty provenance list yields ``{}``.
    """
    log = record.provenance_log()
    if not len(log):
        return {}

    grouped: dict[str, list[ProvenanceSpan]] = {}
    for span in log:
        grouped.setdefault(field_key(span.field), []).append(span)

    scores: ConfidenceScores = {}

    for key, spans in grouped.items():
        if key == "name.heading":
            continue
        if key in ("birth.date", "death.date"):
            fragment = record.birth if key == "birth.date" else record.death
            value = date_confidence(fragment)
            if value > 0:
                scores[key] = value
        elif key == "maidenName":
            if record.maiden_name:
                scores[key] = maiden_name_confidence(record.maiden_name, record.source_html)
        elif key in PARENT_FIELDS:
            scores[key] = _clamp(_best_tier(spans, log, PARENT_TIERS))
        elif key in NAME_FIELDS:
            candidates = spans + list(log.for_field("name.heading"))
            scores[key] = _clamp(_best_tier(candidates, log, SIGNAL_TIERS))
        else:
            scores[key] = _clamp(_best_tier(spans, log, SIGNAL_TIERS))

    for event in EVENT_FIELDS:
        parts = [scores[part] for part in (f"{event}.date", f"{event}.place") if part in scores]
        if parts:
            scores[event] = _clamp(mean(parts))

    return scores
