"""Shared machinery for the extraction strategies.

A strategy reads a :class:`ParsedDocument`, writes fields into a
:class:`RecordDraft` through an :class:`ExtractionContext`, and every write
goes together with a provenance span located in the raw HTML. Offsets
always index the original string: element positions come from the
``html.parser`` tree builder and text is searched from there.
"""
from __future__ import annotations

import html as html_lib
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property

import structlog
from bs4 import BeautifulSoup, Tag

from ..canon.places import PlaceDefinition, parse_place
from ..canon.professions import ProfessionDefinition, parse_profession
from ..models.provenance import ProvenanceLog, ProvenanceSpan, SignalClass
from ..models.record import (
    DateFragment,
    IndividualRecord,
    Parents,
    Relative,
    Residence,
    Sex,
)
from ..utils.dates import parse_date_fragment
from ..utils.names import NameParts, parse_name
from ..utils.normalize import collapse_whitespace, normalize_for_comparison

logger = structlog.get_logger(__name__)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

_FLEX_GAP = r"(?:\s|&nbsp;|&#160;|&#xa0;|<[^>]*>)*"
_ENTITY = r"&#?\w+;"
_TOKEN = re.compile(r"\w+|[^\w\s]")


class SourceLocator:
    """Finds extracted text back in the raw HTML.

    Text pulled out of the parse tree has entities decoded and markup
    removed, so a plain ``find`` is tried first, then the HTML-escaped form,
    then a pattern that tolerates entities, whitespace runs and inline tags
    between tokens.
    """

    def __init__(self, html: str) -> None:
        self.html = html
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(html) if ch == "\n"]

    def offset_of(self, element: Tag | None) -> int:
        """Character offset of an element's opening tag (0 when unknown)."""
        if element is None or getattr(element, "sourceline", None) is None:
            return 0
        line = element.sourceline - 1
        if line >= len(self._line_starts):
            return 0
        return self._line_starts[line] + (element.sourcepos or 0)

    def _find_literal(self, needle: str, hint: int) -> int:
        index = self.html.find(needle, hint)
        if index == -1 and hint:
            index = self.html.find(needle)
        return index

    def _flex_pattern(self, text: str) -> re.Pattern[str] | None:
        parts: list[str] = []
        for token in _TOKEN.findall(text):
            chars = []
            for ch in token:
                if ch.isascii() and (ch.isalnum() or ch == "_"):
                    chars.append(re.escape(ch))
                else:
                    chars.append(f"(?:{re.escape(ch)}|{_ENTITY})")
            parts.append("".join(chars))
        if not parts:
            return None
        return re.compile(_FLEX_GAP.join(parts))

    def find(self, text: str, hint: int = 0) -> tuple[int, int] | None:
        needle = text.strip()
        if not needle:
            return None

        for candidate in dict.fromkeys((needle, html_lib.escape(needle, quote=False), html_lib.escape(needle))):
            index = self._find_literal(candidate, hint)
            if index != -1:
                return index, index + len(candidate)

        pattern = self._flex_pattern(needle)
        if pattern is None:
            return None
        match = pattern.search(self.html, hint) or (pattern.search(self.html) if hint else None)
        if match is None:
            return None
        return match.start(), match.end()


@dataclass
class ParsedDocument:
    """The input HTML with its parse tree, shared by every strategy's precondition."""

    html: str
    soup: BeautifulSoup
    locator: SourceLocator

    @classmethod
    def parse(cls, html: str) -> "ParsedDocument":
        return cls(html=html, soup=BeautifulSoup(html, "html.parser"), locator=SourceLocator(html))

    @cached_property
    def headings(self) -> list[Tag]:
        return list(self.soup.find_all(HEADING_TAGS))

    @cached_property
    def text(self) -> str:
        return collapse_whitespace(self.soup.get_text(" "))


@dataclass
class RecordDraft:
    """Mutable working copy of a record while a strategy fills it in."""

    given_names: list[str] = field(default_factory=list)
    surname: str | None = None
    maiden_name: str | None = None
    aliases: list[str] = field(default_factory=list)
    sex: Sex | None = None
    birth: DateFragment = field(default_factory=DateFragment)
    death: DateFragment = field(default_factory=DateFragment)
    residences: list[Residence] = field(default_factory=list)
    father: str | None = None
    mother: str | None = None
    spouses: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)
    siblings: list[str] = field(default_factory=list)
    relatives: list[Relative] = field(default_factory=list)
    occupation: str | None = None
    religion: str | None = None
    notes: str | None = None
    places: list[str] = field(default_factory=list)
    professions: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    source_url: str | None = None

    @property
    def has_name(self) -> bool:
        return bool(self.given_names or self.surname)


class ExtractionContext:
    """One strategy run: the document, the dictionaries, the draft and its provenance."""

    def __init__(
        self,
        document: ParsedDocument,
        signal: SignalClass,
        places: list[PlaceDefinition] | None = None,
        professions: list[ProfessionDefinition] | None = None,
    ) -> None:
        self.document = document
        self.signal = signal
        self.place_definitions = places
        self.profession_definitions = professions
        self.draft = RecordDraft()
        self.log = ProvenanceLog()

    @property
    def html(self) -> str:
        return self.document.html

    @property
    def soup(self) -> BeautifulSoup:
        return self.document.soup

    def offset_of(self, element: Tag | None) -> int:
        return self.document.locator.offset_of(element)

    def emit(
        self,
        field_path: str,
        text: str | None,
        hint: int = 0,
        signal: SignalClass | None = None,
    ) -> ProvenanceSpan | None:
        """Append a span for ``text`` found at or after ``hint``.

        Text that cannot be found in the source leaves the field written but
        adds no span.
        """
        if not text or not text.strip():
            return None
        located = self.document.locator.find(text, hint)
        if located is None:
            logger.debug("extraction.span_unlocated", field=field_path, text=text[:80])
            return None
        start, end = located
        span = ProvenanceSpan(
            field=field_path,
            text=self.html[start:end],
            start=start,
            end=end,
            signal=signal or self.signal,
        )
        return self.log.append(span)

    def push(self, target: list[str], field_path: str, value: str | None, hint: int = 0, signal: SignalClass | None = None) -> bool:
        """Append ``value`` to a list field once, with one span per element."""
        value = collapse_whitespace(value)
        if not value or value in target:
            return False
        target.append(value)
        self.emit(field_path, value, hint, signal)
        return True

    def add_places(self, text: str | None, hint: int = 0, signal: SignalClass | None = None) -> None:
        if not text:
            return
        parsed = parse_place(text, self.place_definitions)
        for match in parsed.matches:
            if match.canonical not in self.draft.places:
                self.draft.places.append(match.canonical)
                self.emit("places", match.fragment, hint, signal)

    def add_professions(self, text: str | None, hint: int = 0, signal: SignalClass | None = None) -> None:
        if not text:
            return
        parsed = parse_profession(text, self.profession_definitions)
        for match in parsed.matches:
            if match.canonical not in self.draft.professions:
                self.draft.professions.append(match.canonical)
                self.emit("professions", match.fragment, hint, signal)

    def build(
        self,
        strategy: str | None,
        source_url: str | None = None,
        extracted_at: datetime | None = None,
    ) -> IndividualRecord:
        d = self.draft
        values = dict(
            source_html=self.html,
            source_url=d.source_url or source_url,
            given_names=d.given_names,
            surname=d.surname,
            maiden_name=d.maiden_name,
            aliases=d.aliases,
            sex=d.sex,
            birth=d.birth,
            death=d.death,
            residences=d.residences,
            parents=Parents(father=d.father, mother=d.mother),
            spouses=d.spouses,
            children=d.children,
            siblings=d.siblings,
            relatives=d.relatives,
            occupation=d.occupation,
            religion=d.religion,
            notes=d.notes,
            places=d.places,
            professions=d.professions,
            provenance=self.log.freeze(),
            sources=d.sources,
            strategy=strategy,
        )
        if extracted_at is not None:
            values["extracted_at"] = extracted_at
        return IndividualRecord(**values)


class ExtractionStrategy(ABC):
    """One way of reading an individual out of a page layout."""

    name: str = "base"
    signal: SignalClass = SignalClass.TABLE_LABEL

    @abstractmethod
    def applies(self, document: ParsedDocument) -> bool:
        """Check whether the page has the structure this strategy reads."""

    @abstractmethod
    def extract(self, ctx: ExtractionContext) -> None:
        """Fill ``ctx.draft``; every written field emits its span."""


# ---------------------------------------------------------------------------
# Helpers shared by several strategies
# ---------------------------------------------------------------------------

_SEX_FEMALE = re.compile(r"^(?:female|f|woman|femme|feminin|weiblich|w)$")
_SEX_MALE = re.compile(r"^(?:male|m|man|homme|h|masculin|mannlich)$")
_SEX_UNKNOWN = re.compile(r"^(?:unknown|undetermined|not stated|inconnu|u)$")


def normalize_sex(value: str | None) -> Sex | None:
    """Map a sex/gender caption to M/F/U; anything else is ``None``."""
    normalized = normalize_for_comparison(value)
    if not normalized:
        return None
    if _SEX_FEMALE.match(normalized):
        return Sex.FEMALE
    if _SEX_MALE.match(normalized):
        return Sex.MALE
    if _SEX_UNKNOWN.match(normalized):
        return Sex.UNKNOWN
    return None


_EVENT_DASH = re.compile(r"\s+[-–—]\s+")
_LAST_YEAR = re.compile(r"\b\d{3,4}\b")
_PLACE_LEAD = re.compile(r"^\s*(?:,\s*|(?:in|at|à|a|en)\s+)", re.IGNORECASE)
_HAS_LETTER = re.compile(r"[^\W\d_]")


def split_event(value: str) -> tuple[str, str | None]:
    """Split an event value into its date text and its place text.

    ``"July 24, 1813 - Saint-Longis, Sarthe"`` and
    ``"17 Mar 1901, Lyon"`` / ``"1901 in Lyon"`` all separate; a value with
    no place returns ``(value, None)``.
    """
    value = collapse_whitespace(value)
    dash = _EVENT_DASH.search(value)
    if dash and _LAST_YEAR.search(value[: dash.start()]):
        place = value[dash.end() :].strip(" ,;")
        if _HAS_LETTER.search(place):
            return value[: dash.start()].strip(), place

    years = list(_LAST_YEAR.finditer(value))
    if years:
        tail = value[years[-1].end() :]
        lead = _PLACE_LEAD.match(tail)
        if lead:
            place = tail[lead.end() :].strip(" ,;.")
            if place:
                return value[: years[-1].end()].strip(), place
    return value, None


def event_fragment(value: str) -> tuple[DateFragment, str, str | None]:
    """Parse an event value; returns the fragment, its date text and its place text.

    The fragment's ``raw`` is the whole value.
    """
    date_text, place = split_event(value)
    parsed = parse_date_fragment(date_text)
    fragment = parsed.model_copy(update={"raw": collapse_whitespace(value) or None, "place": place})
    return fragment, date_text, place


_SOURCES_HEADING = re.compile(r"^(?:sources?|references?|bibliograph\w*|citations?|notes? et sources)$")


def following_section(heading: Tag) -> list[Tag]:
    """Sibling elements after ``heading`` up to the next heading of the same or higher rank."""
    level = int(heading.name[1]) if heading.name in HEADING_TAGS else 6
    section: list[Tag] = []
    for sibling in heading.find_next_siblings():
        if sibling.name in HEADING_TAGS and int(sibling.name[1]) <= level:
            break
        section.append(sibling)
    return section


def collect_sources(ctx: ExtractionContext) -> None:
    """List items under a Sources/References heading, then ``<cite>`` elements."""
    for heading in ctx.document.headings:
        if not _SOURCES_HEADING.match(normalize_for_comparison(heading.get_text(" "))):
            continue
        for block in following_section(heading):
            items = block.find_all("li") if block.name != "li" else [block]
            if not items and block.name == "p":
                items = [block]
            for item in items:
                ctx.push(ctx.draft.sources, "sources", item.get_text(" ", strip=True), ctx.offset_of(item))
    for cite in ctx.soup.find_all("cite"):
        ctx.push(ctx.draft.sources, "sources", cite.get_text(" ", strip=True), ctx.offset_of(cite))


def detect_source_url(ctx: ExtractionContext) -> None:
    """Canonical link, ``og:url`` meta or ``<base href>``, first found wins."""
    candidates = (
        (ctx.soup.find("link", rel="canonical"), "href"),
        (ctx.soup.find("meta", attrs={"property": "og:url"}), "content"),
        (ctx.soup.find("base", href=True), "href"),
    )
    for element, attr in candidates:
        if element is None:
            continue
        url = (element.get(attr) or "").strip()
        if url:
            ctx.draft.source_url = url
            ctx.emit("sourceUrl", url, ctx.offset_of(element))
            return


_LIFESPAN = re.compile(
    r"\(\s*(?:"
    r"(?P<born>\d{3,4})?\s*[-–—]\s*(?P<died>\d{3,4})?"
    r"|(?:b\.|born|n[ée]e?|°)\s*(?:en\s+|in\s+)?(?P<born_only>\d{3,4})"
    r"|(?:d\.|died|d[ée]c[ée]d[ée]e?|†)\s*(?:en\s+|in\s+)?(?P<died_only>\d{3,4})"
    r")\s*\)\s*$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class HeadingName:
    """A heading split into the name and its optional lifespan."""

    text: str
    name: str
    birth_year: str | None = None
    death_year: str | None = None

    @property
    def has_lifespan(self) -> bool:
        return self.birth_year is not None or self.death_year is not None


def parse_heading(text: str) -> HeadingName:
    """Split ``"Jean Dupont (1850–1910)"``, ``"Ann Lee (b. 1901)"`` and the like."""
    text = collapse_whitespace(text)
    match = _LIFESPAN.search(text)
    if match:
        born = match.group("born") or match.group("born_only")
        died = match.group("died") or match.group("died_only")
        if born or died:
            return HeadingName(text=text, name=text[: match.start()].strip(" ,"), birth_year=born, death_year=died)
    return HeadingName(text=text, name=text)


def write_name(ctx: ExtractionContext, parts: NameParts, hint: int = 0, signal: SignalClass | None = None) -> None:
    """Write the parsed name parts that are still empty on the draft.

    Given names get one span each, searched left to right from ``hint``.
    """
    d = ctx.draft
    cursor = hint
    if parts.given_names and not d.given_names:
        d.given_names = list(parts.given_names)
        for given in parts.given_names:
            span = ctx.emit("givenNames", given, cursor, signal)
            if span is not None:
                cursor = span.end
    if parts.surname and not d.surname:
        d.surname = parts.surname
        ctx.emit("surname", parts.surname, cursor, signal)
    if parts.maiden_name and not d.maiden_name:
        d.maiden_name = parts.maiden_name
        ctx.emit("maidenName", parts.maiden_name, hint, signal)
    for alias in parts.aliases:
        ctx.push(d.aliases, "aliases", alias, hint, signal)


def write_lifespan(
    ctx: ExtractionContext, heading: HeadingName, hint: int = 0, signal: SignalClass | None = None
) -> None:
    d = ctx.draft
    if heading.birth_year and not d.birth.has_date:
        d.birth = parse_date_fragment(heading.birth_year)
        ctx.emit("birth.date", heading.birth_year, hint, signal)
    if heading.death_year and not d.death.has_date:
        d.death = parse_date_fragment(heading.death_year)
        ctx.emit("death.date", heading.death_year, hint, signal)


def heading_name(
    ctx: ExtractionContext,
    element: Tag,
    signal: SignalClass = SignalClass.HEADING,
    text: str | None = None,
) -> HeadingName | None:
    """Read an individual's name (and lifespan) from a heading-like element.

    ``text`` overrides the element text (a lead paragraph's opening words).
    Emits the ``name.heading`` span covering the whole caption.
    """
    heading = parse_heading(text if text is not None else element.get_text(" ", strip=True))
    parts = parse_name(heading.name)
    if not parts.given_names:
        return None
    hint = ctx.offset_of(element)
    ctx.emit("name.heading", heading.text, hint, signal)
    write_name(ctx, parts, hint, signal)
    write_lifespan(ctx, heading, hint, signal)
    return heading
