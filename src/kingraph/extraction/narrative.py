"""Heading + narrative layouts: biographies and obituaries written as prose.

The name comes from a heading (``Jean Dupont (1850–1910)``) or, failing
that, from a lead paragraph opening with a name and lifespan. The prose
is then scanned sentence by sentence with keyword-anchored patterns in
English and French.
"""
from __future__ import annotations

import re

from bs4 import Tag

from ..models.provenance import SignalClass
from ..models.record import Residence, Sex
from ..utils.dates import month_from_name, parse_date_fragment, search_date
from ..utils.names import parse_name
from ..utils.normalize import collapse_whitespace
from .base import (
    ExtractionContext,
    ExtractionStrategy,
    ParsedDocument,
    RecordDraft,
    collect_sources,
    detect_source_url,
    heading_name,
    parse_heading,
)

_WORD = r"[A-ZÀ-ÖØ-Þ][\w'’\-]*"
_PARTICLE = r"(?:de|du|des|la|le|van|von|der|den|di|da|dit)"
NAME = rf"{_WORD}(?:\s+(?:{_PARTICLE}\s+)?{_WORD})*"
PLACE = rf"{_WORD}(?:(?:,\s*|\s+(?:{_PARTICLE}\s+)?){_WORD})*"

_BORN = re.compile(r"(?i:\bborn\b|\bn[ée]e?\s+(?=(?:le|en|vers|à|au)\b))")
_DIED = re.compile(r"(?i:\bdied\b|\bd[ée]c[ée]d[ée]e?\b|\bpassed away\b|\bmorte?\s+(?=(?:le|en|à)\b))")
_PLACE_AFTER = re.compile(rf"(?i:\b(?:in|at|à|au))\s+(?P<place>{PLACE})")
# Only date words or an "in/at PLACE" segment may separate "born" from "to X and Y"
_BORN_LEAD = rf"(?:\d{{1,4}}(?:st|nd|rd|th|er)?|(?i:in|at|on|about|circa|around|à|au|le|en|vers)|{_WORD})"
_BORN_TO = re.compile(
    rf"[\s,]*(?:{_BORN_LEAD}[\s,]+)*(?i:to)\s+(?P<father>{NAME})\s+(?i:and|et|&)\s+(?P<mother>{NAME})"
)
_CHILD_OF = re.compile(
    rf"(?i:\b(?P<rel>son|daughter|fils|fille)\s+(?:of|de|du))\s+(?P<father>{NAME})"
    rf"(?:\s+(?i:and|et|&)\s+(?i:(?:of|de)\s+)?(?P<mother>{NAME}))?"
)
_FATHER_WAS = re.compile(rf"(?i:\bfather\s+(?:was|is)|\bp[èe]re\s+(?:était|etait|est))\s+(?P<name>{NAME})")
_MOTHER_WAS = re.compile(rf"(?i:\bmother\s+(?:was|is)|\bm[èe]re\s+(?:était|etait|est))\s+(?P<name>{NAME})")
_SPOUSE = re.compile(
    r"(?i:\bmarried|\bwed|\bépousa|\bepousa|\ba épousé|\bwife of|\bhusband of|\bwidow of|\bwidower of"
    r"|\bépouse de|\bveuve de|\bveuf de|\bhis wife|\bher husband|\bsa femme|\bson mari|\bson épou(?:se|x))"
    rf",?\s+(?:to\s+)?(?P<name>{NAME})"
)
_CHILDREN = re.compile(r"(?i:\b(?:children|enfants))\b(?P<rest>[^.]*)")
_SIBLINGS = re.compile(
    r"(?i:\b(?:siblings|brothers and sisters|frères et sœurs|freres et soeurs|brothers|sisters|frères|sœurs))\b"
    r"(?P<rest>[^.]*)"
)
_SIBLING = re.compile(rf"(?i:\b(?:his|her|sa|son)\s+(?:brother|sister|frère|sœur))\s*,?\s+(?P<name>{NAME})")
_LIST_LEAD = re.compile(r"(?i:\b(?:were|included|named|are|sont|étaient|etaient))\s*:?\s*|:\s*")
_LIST_SPLIT = re.compile(r"\s*(?:,|;|&|\band\b|\bet\b)\s*")
_OCCUPATION = re.compile(
    r"(?i:\bworked as|\bemployed as|\boccupation was|\bprofession was|\btravaillait comme"
    r"|\bexerçait la profession de|\bexerçait le métier de)\s+(?i:an?\s+|une?\s+)?"
    r"(?P<occ>[^\W\d_][\w'’\- ]*?)(?=\s*(?:[,.;]|$)|\s+(?i:in|at|for|à|au|until|from|de)\b)"
)
_RESIDENCE = re.compile(
    rf"(?i:\blived|\bresided|\bsettled|\bhabitait|\bdemeurait|\bs'installa)\s+(?i:in|at|à|au)\s+(?P<place>{PLACE})"
    r"(?:\s+(?i:in|en|from|dès)\s+(?P<year>\d{3,4}))?"
)
_MAIDEN = re.compile(rf"(?i:\bn[ée]e)\s+(?P<name>{NAME})")
_ANCHOR = re.compile(
    r"(?i:\bborn\b|\bdied\b|\bn[ée]e?\s+(?:le|en|à)\b|\bd[ée]c[ée]d[ée]|\bmarried\b|\bépous"
    r"|\b(?:son|daughter|fils|fille)\s+(?:of|de|du)\b)"
)
_SENTENCES = re.compile(r"(?<=[.!?])\s+(?=[A-ZÀ-ÖØ-Þ])")
_LEAD = re.compile(rf"^(?P<caption>(?P<name>{NAME})\s*\([^()]*\d{{3,4}}[^()]*\))")


def _name_heading(document: ParsedDocument) -> tuple[Tag, str | None, SignalClass] | None:
    """The element carrying the individual's name, the caption text to read, and its signal."""
    headings = [h for h in document.headings if h.name in ("h1", "h2", "h3")]
    for heading in headings:
        parsed = parse_heading(heading.get_text(" ", strip=True))
        if parsed.has_lifespan and parse_name(parsed.name).given_names:
            return heading, None, SignalClass.HEADING
    for heading in headings:
        if heading.name != "h1":
            continue
        parts = parse_name(parse_heading(heading.get_text(" ", strip=True)).name)
        if parts.given_names and parts.surname:
            return heading, None, SignalClass.HEADING
    lead = document.soup.find("p")
    if lead is not None:
        match = _LEAD.match(collapse_whitespace(lead.get_text(" ")))
        if match:
            return lead, match.group("caption"), SignalClass.NARRATIVE
    return None


def _names_subject(draft: RecordDraft, before: str) -> bool:
    """Whether the text ahead of a née marker ends with the individual's own name."""
    before = before.rstrip(" ,(")
    names = [" ".join(draft.given_names), draft.surname]
    return any(name and before.endswith(name) for name in names)


def _list_items(rest: str) -> list[str]:
    lead = _LIST_LEAD.search(rest)
    if lead is None:
        return []
    items = []
    for item in _LIST_SPLIT.split(rest[lead.end() :]):
        item = item.strip(" .")
        if item and re.fullmatch(NAME, item):
            items.append(item)
    return items


class NarrativeStrategy(ExtractionStrategy):
    """Name from a heading, everything else from keyword-anchored prose."""

    name = "narrative"
    signal = SignalClass.NARRATIVE

    def applies(self, document: ParsedDocument) -> bool:
        found = _name_heading(document)
        if found is None:
            return False
        element, caption, _ = found
        if caption is not None or parse_heading(element.get_text(" ", strip=True)).has_lifespan:
            return True
        return any(_ANCHOR.search(p.get_text(" ")) for p in document.soup.find_all("p"))

    def extract(self, ctx: ExtractionContext) -> None:
        found = _name_heading(ctx.document)
        if found is not None:
            element, caption, signal = found
            heading_name(ctx, element, signal, text=caption)

        for paragraph in ctx.soup.find_all("p"):
            text = collapse_whitespace(paragraph.get_text(" "))
            hint = ctx.offset_of(paragraph)
            for sentence in _SENTENCES.split(text):
                self._scan(ctx, sentence, hint)

        collect_sources(ctx)
        detect_source_url(ctx)

    def _scan(self, ctx: ExtractionContext, sentence: str, hint: int) -> None:
        d = ctx.draft

        born = _BORN.search(sentence)
        if born:
            clause = sentence[born.end() :]
            died_inside = _DIED.search(clause)
            if died_inside:
                clause = clause[: died_inside.start()]
            self._event(ctx, "birth", clause, hint)
            parents = _BORN_TO.match(clause)
            if parents:
                self._parent(ctx, "father", parents.group("father"), hint)
                self._parent(ctx, "mother", parents.group("mother"), hint)

        died = _DIED.search(sentence)
        if died:
            clause = sentence[died.end() :]
            born_inside = _BORN.search(clause)
            if born_inside:
                clause = clause[: born_inside.start()]
            self._event(ctx, "death", clause, hint)

        child_of = _CHILD_OF.search(sentence)
        if child_of:
            if d.sex is None:
                relation = child_of.group("rel").lower()
                d.sex = Sex.MALE if relation in ("son", "fils") else Sex.FEMALE
                ctx.emit("sex", child_of.group("rel"), hint)
            self._parent(ctx, "father", child_of.group("father"), hint)
            if child_of.group("mother"):
                self._parent(ctx, "mother", child_of.group("mother"), hint)

        for pattern, role in ((_FATHER_WAS, "father"), (_MOTHER_WAS, "mother")):
            match = pattern.search(sentence)
            if match:
                self._parent(ctx, role, match.group("name"), hint)

        for match in _SPOUSE.finditer(sentence):
            ctx.push(d.spouses, "spouses", match.group("name"), hint)

        children = _CHILDREN.search(sentence)
        if children:
            for name in _list_items(children.group("rest")):
                ctx.push(d.children, "children", name, hint)

        siblings = _SIBLINGS.search(sentence)
        if siblings:
            for name in _list_items(siblings.group("rest")):
                ctx.push(d.siblings, "siblings", name, hint)
        for match in _SIBLING.finditer(sentence):
            ctx.push(d.siblings, "siblings", match.group("name"), hint)

        occupation = _OCCUPATION.search(sentence)
        if occupation and not d.occupation:
            d.occupation = occupation.group("occ").strip()
            ctx.emit("occupation", d.occupation, hint)
            ctx.add_professions(d.occupation, hint)

        for match in _RESIDENCE.finditer(sentence):
            place = match.group("place")
            year = int(match.group("year")) if match.group("year") else None
            raw = collapse_whitespace(match.group(0))
            d.residences.append(Residence(raw=raw, year=year, place=place))
            ctx.emit(f"residences[{len(d.residences) - 1}]", raw, hint)
            ctx.add_places(place, hint)

        if not d.maiden_name:
            for maiden in _MAIDEN.finditer(sentence):
                if _names_subject(d, sentence[: maiden.start()]):
                    d.maiden_name = maiden.group("name")
                    ctx.emit("maidenName", d.maiden_name, hint)
                    break

    def _parent(self, ctx: ExtractionContext, role: str, name: str, hint: int) -> None:
        if getattr(ctx.draft, role):
            return
        setattr(ctx.draft, role, name)
        ctx.emit(f"parents.{role}", name, hint)

    def _event(self, ctx: ExtractionContext, event: str, clause: str, hint: int) -> None:
        current = getattr(ctx.draft, event)
        located = search_date(clause)
        if located is not None:
            date_text = clause[located[0] : located[1]]
            fragment = parse_date_fragment(date_text)
            # A prose date only replaces a heading year when it is more precise
            if not current.has_date or (current.month is None and fragment.month is not None):
                setattr(ctx.draft, event, fragment.model_copy(update={"place": current.place}))
                ctx.emit(f"{event}.date", date_text, hint)

        current = getattr(ctx.draft, event)
        if current.place:
            return
        for match in _PLACE_AFTER.finditer(clause):
            place = match.group("place")
            if month_from_name(place.split()[0].strip(",")):
                continue
            setattr(ctx.draft, event, current.model_copy(update={"place": place}))
            ctx.emit(f"{event}.place", place, hint)
            ctx.add_places(place, hint)
            break
