"""Individual record models produced by extraction.

All models are frozen once built. Absent values are ``None`` (or empty
lists) and are omitted from the wire format.
"""
from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import Field, computed_field, field_validator

from .base import CamelModel
from .provenance import ProvenanceLog, ProvenanceSpan


class Sex(str, Enum):
    MALE = "M"
    FEMALE = "F"
    UNKNOWN = "U"


class RelativeRole(str, Enum):
    """Relationship of a linked person to the record's individual."""

    FATHER = "father"
    MOTHER = "mother"
    PARENT = "parent"
    SPOUSE = "spouse"
    CHILD = "child"
    SIBLING = "sibling"


class DateFragment(CamelModel):
    """A partial calendar value with the text it was read from.

    ``raw`` is always the verbatim source text. ``start``/``end`` hold the
    years of a span expression (``1880-1885``, ``before 1899``). ``place`` is
    the raw place text of the event when the source gives one.
    """

    raw: str | None = None
    year: int | None = None
    month: int | None = None
    day: int | None = None
    approx: bool | None = None
    start: int | None = None
    end: int | None = None
    place: str | None = None

    @property
    def has_date(self) -> bool:
        return self.year is not None or self.month is not None or self.day is not None

    @property
    def precision(self) -> str:
        """Return date precision level."""
        if self.day is not None and self.month is not None and self.year is not None:
            return "exact"
        if self.month is not None and self.year is not None:
            return "month"
        if self.year is not None:
            return "year"
        return "unknown"

    @property
    def is_empty(self) -> bool:
        return not (self.raw or self.has_date or self.place)


class Residence(CamelModel):
    raw: str | None = None
    year: int | None = None
    place: str | None = None

    @property
    def is_empty(self) -> bool:
        return not ((self.raw or "").strip() or self.year is not None or (self.place or "").strip())


class Parents(CamelModel):
    father: str | None = None
    mother: str | None = None


class Relative(CamelModel):
    """A person linked from a family-tree page, parsed into its own parts."""

    role: RelativeRole
    name: str
    given_names: list[str] = Field(default_factory=list)
    surname: str | None = None
    birth: DateFragment = Field(default_factory=DateFragment)
    death: DateFragment = Field(default_factory=DateFragment)
    href: str | None = None


class IndividualRecord(CamelModel):
    """Structured extraction result for one genealogical individual."""

    source_html: str = Field(description="Exact input, retained for re-rendering")
    source_url: str | None = None
    extracted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    given_names: list[str] = Field(default_factory=list)
    surname: str | None = None
    maiden_name: str | None = None
    aliases: list[str] = Field(default_factory=list)
    sex: Sex | None = None

    birth: DateFragment = Field(default_factory=DateFragment)
    death: DateFragment = Field(default_factory=DateFragment)
    residences: list[Residence] = Field(default_factory=list)

    parents: Parents = Field(default_factory=Parents)
    spouses: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)
    siblings: list[str] = Field(default_factory=list)
    relatives: list[Relative] = Field(default_factory=list)

    occupation: str | None = None
    religion: str | None = None
    notes: str | None = None

    places: list[str] = Field(default_factory=list, description="Canonical place labels")
    professions: list[str] = Field(default_factory=list, description="Canonical profession labels")

    provenance: list[ProvenanceSpan] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    strategy: str | None = Field(default=None, description="Strategy that owned the extraction")

    @field_validator("residences")
    @classmethod
    def _drop_empty_residences(cls, value: list[Residence]) -> list[Residence]:
        return [residence for residence in value if not residence.is_empty]

    @field_validator("aliases", "spouses", "children", "siblings", "sources", "places", "professions")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for item in value:
            item = item.strip()
            if item and item not in seen:
                seen.append(item)
        return seen

    @computed_field
    @property
    def display_name(self) -> str:
        """Given names and surname joined, or an empty string."""
        parts = [*self.given_names]
        if self.surname:
            parts.append(self.surname)
        return " ".join(parts)

    def provenance_log(self) -> ProvenanceLog:
        """Index the provenance list by field path."""
        return ProvenanceLog.from_spans(self.provenance)

    def spans_for(self, field: str) -> list[ProvenanceSpan]:
        return [span for span in self.provenance if span.field == field]
