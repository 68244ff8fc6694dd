"""Provenance tracking models.

A provenance span ties one extracted field to the exact substring of the
source HTML it came from. Spans are correlated to record fields by their
dotted ``field`` path (``"parents.father"``, ``"birth.date"``,
``"residences[0]"``) and by character offsets, never by object identity.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from enum import Enum

from pydantic import Field, model_validator

from .base import CamelModel


class SignalClass(str, Enum):
    """Structural category of the evidence a span was found in."""

    HEADING = "heading"
    TABLE_LABEL = "table-label"
    NARRATIVE = "narrative"


class ProvenanceSpan(CamelModel):
    """Maps an extracted field to ``source_html[start:end]``."""

    field: str = Field(description="Dotted path of the record attribute")
    text: str = Field(description="Exact substring of the source HTML")
    start: int = Field(ge=0, description="Inclusive start offset")
    end: int = Field(ge=0, description="Exclusive end offset")
    signal: SignalClass | None = Field(
        default=None, description="Signal class of the strategy that emitted the span"
    )

    @model_validator(mode="after")
    def _check_offsets(self) -> "ProvenanceSpan":
        if self.end < self.start:
            raise ValueError("span end precedes start")
        return self


_INDEX_SUFFIX = re.compile(r"\[\d+\]")


def field_key(path: str) -> str:
    """Collapse a span path to its scoring key (``residences[2].place`` -> ``residences.place``)."""
    return _INDEX_SUFFIX.sub("", path)


class ProvenanceLog:
    """Append-only arena of spans, indexed by field path.

    Spans keep their insertion order; ``for_field`` is a dict lookup.
    """

    def __init__(self) -> None:
        self._spans: list[ProvenanceSpan] = []
        self._by_field: dict[str, list[int]] = {}

    @classmethod
    def from_spans(cls, spans: Iterable[ProvenanceSpan]) -> "ProvenanceLog":
        log = cls()
        for span in spans:
            log.append(span)
        return log

    def append(self, span: ProvenanceSpan) -> ProvenanceSpan:
        self._by_field.setdefault(span.field, []).append(len(self._spans))
        self._spans.append(span)
        return span

    def for_field(self, field: str) -> tuple[ProvenanceSpan, ...]:
        return tuple(self._spans[i] for i in self._by_field.get(field, ()))

    def has(self, field: str) -> bool:
        return field in self._by_field

    def freeze(self) -> list[ProvenanceSpan]:
        return list(self._spans)

    def __iter__(self) -> Iterator[ProvenanceSpan]:
        return iter(self._spans)

    def __len__(self) -> int:
        return len(self._spans)
