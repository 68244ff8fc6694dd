"""Tabular / labelled layouts: register transcriptions, info boxes, fact sheets."""
from __future__ import annotations

import re
from dataclasses import dataclass

from bs4 import Comment, NavigableString

from ..models.provenance import SignalClass
from ..models.record import Residence
from ..utils.dates import normalize_year
from ..utils.names import parse_name
from ..utils.normalize import collapse_whitespace, normalize_for_comparison
from .base import (
    ExtractionContext,
    ExtractionStrategy,
    ParsedDocument,
    detect_source_url,
    event_fragment,
    heading_name,
    normalize_sex,
    write_name,
)
from .labels import ANNOTATION_KEYS, LabelKey, match_label

_SKIPPED_PARENTS = frozenset({"script", "style", "title", "head"})
_LIST_SPLIT = re.compile(r"[,;\n]+")
_LINE_SPLIT = re.compile(r"[;\n]+")
_GIVEN_SPLIT = re.compile(r"[,;\s]+")
_RESIDENCE_YEAR = re.compile(r"^\s*(?:\(?\d{3,4}\)?)\s*[:,\-–]?\s*|\s*[,(]?\s*\d{3,4}\s*\)?\s*$")


@dataclass(frozen=True)
class LabelPair:
    key: LabelKey
    label: str
    value: str
    hint: int


def collect_label_pairs(document: ParsedDocument) -> list[LabelPair]:
    """Every (label, value) pair whose label is in the dictionary, in document order.

    Sources: ``<tr>`` rows with two or more cells, ``<dt>``/``<dd>`` pairs,
    ``<b>``/``<strong>``/``<label>`` captions followed by text, and
    ``Label: value`` lines in text nodes. Pairs are de-duplicated on
    (label, value).
    """
    soup = document.soup
    locator = document.locator
    pairs: list[LabelPair] = []
    seen: set[tuple[str, str]] = set()

    def add(label: str, value: str, element) -> None:
        key = match_label(label)
        value = value.strip().lstrip(":").strip()
        if key is None or not value:
            return
        dedupe = (normalize_for_comparison(label), collapse_whitespace(value))
        if dedupe in seen:
            return
        seen.add(dedupe)
        pairs.append(LabelPair(key=key, label=collapse_whitespace(label), value=value, hint=locator.offset_of(element)))

    for row in soup.find_all("tr"):
        cells = row.find_all(["th", "td"], recursive=False)
        if len(cells) < 2:
            continue
        values = [cell.get_text("\n", strip=True) for cell in cells[1:]]
        add(cells[0].get_text(" ", strip=True), "\n".join(v for v in values if v), cells[1])

    for term in soup.find_all("dt"):
        definition = term.find_next_sibling("dd")
        if definition is not None:
            add(term.get_text(" ", strip=True), definition.get_text("\n", strip=True), definition)

    for caption in soup.find_all(["b", "strong", "label"]):
        text = caption.get_text(" ", strip=True)
        following = caption.next_sibling
        value = str(following) if isinstance(following, NavigableString) else ""
        if text.endswith(":") or value.lstrip().startswith(":"):
            add(text, value, caption)

    for node in soup.find_all(string=True):
        if isinstance(node, Comment) or node.parent is None or node.parent.name in _SKIPPED_PARENTS:
            continue
        for line in str(node).splitlines():
            label, colon, value = line.partition(":")
            if colon:
                add(label, value, node.parent)

    return sorted(pairs, key=lambda pair: pair.hint)


def _split_residence(entry: str) -> Residence:
    year = normalize_year(entry)
    place = collapse_whitespace(_RESIDENCE_YEAR.sub(" ", entry)).strip(" ,;") if year is not None else entry
    return Residence(raw=entry, year=year, place=place or None)


class TabularStrategy(ExtractionStrategy):
    """Reads values from cells or captions next to dictionary labels."""

    name = "tabular"
    signal = SignalClass.TABLE_LABEL

    def applies(self, document: ParsedDocument) -> bool:
        return any(pair.key not in ANNOTATION_KEYS for pair in collect_label_pairs(document))

    def extract(self, ctx: ExtractionContext) -> None:
        for pair in collect_label_pairs(ctx.document):
            self._apply(ctx, pair)

        if not ctx.draft.has_name:
            for heading in ctx.soup.find_all(["h1", "h2", "h3"]):
                if heading_name(ctx, heading) is not None:
                    break

        detect_source_url(ctx)

    def _apply(self, ctx: ExtractionContext, pair: LabelPair) -> None:
        d = ctx.draft
        key, hint = pair.key, pair.hint
        value = collapse_whitespace(pair.value)

        if key is LabelKey.NAME:
            write_name(ctx, parse_name(value), hint)
        elif key is LabelKey.GIVEN:
            if not d.given_names:
                d.given_names = [part for part in _GIVEN_SPLIT.split(value) if part]
                ctx.emit("givenNames", value, hint)
        elif key is LabelKey.SURNAME:
            if not d.surname:
                d.surname = value
                ctx.emit("surname", value, hint)
        elif key is LabelKey.MAIDEN:
            if not d.maiden_name:
                d.maiden_name = value
                ctx.emit("maidenName", value, hint)
        elif key is LabelKey.ALIAS:
            for entry in _LIST_SPLIT.split(pair.value):
                ctx.push(d.aliases, "aliases", entry, hint)
        elif key is LabelKey.SEX:
            sex = normalize_sex(value)
            if sex is not None and d.sex is None:
                d.sex = sex
                ctx.emit("sex", value, hint)
        elif key in (LabelKey.BIRTH, LabelKey.DEATH):
            self._event(ctx, "birth" if key is LabelKey.BIRTH else "death", value, hint)
        elif key in (LabelKey.BIRTH_PLACE, LabelKey.DEATH_PLACE):
            event = "birth" if key is LabelKey.BIRTH_PLACE else "death"
            fragment = getattr(d, event)
            if not fragment.place:
                setattr(d, event, fragment.model_copy(update={"place": value}))
                ctx.emit(f"{event}.place", value, hint)
                ctx.add_places(value, hint)
        elif key is LabelKey.RESIDENCE:
            for entry in _LINE_SPLIT.split(pair.value):
                entry = collapse_whitespace(entry)
                if not entry:
                    continue
                residence = _split_residence(entry)
                d.residences.append(residence)
                ctx.emit(f"residences[{len(d.residences) - 1}]", entry, hint)
                ctx.add_places(residence.place, hint)
        elif key is LabelKey.FATHER:
            if not d.father:
                d.father = value
                ctx.emit("parents.father", value, hint)
        elif key is LabelKey.MOTHER:
            if not d.mother:
                d.mother = value
                ctx.emit("parents.mother", value, hint)
        elif key in (LabelKey.SPOUSE, LabelKey.CHILD, LabelKey.SIBLING):
            target, path = {
                LabelKey.SPOUSE: (d.spouses, "spouses"),
                LabelKey.CHILD: (d.children, "children"),
                LabelKey.SIBLING: (d.siblings, "siblings"),
            }[key]
            for entry in _LIST_SPLIT.split(pair.value):
                ctx.push(target, path, entry, hint)
        elif key is LabelKey.OCCUPATION:
            if not d.occupation:
                d.occupation = value
                ctx.emit("occupation", value, hint)
                ctx.add_professions(value, hint)
        elif key is LabelKey.RELIGION:
            if not d.religion:
                d.religion = value
                ctx.emit("religion", value, hint)
        elif key is LabelKey.NOTES:
            if not d.notes:
                d.notes = value
                ctx.emit("notes", value, hint)
        elif key is LabelKey.SOURCES:
            for entry in _LINE_SPLIT.split(pair.value):
                ctx.push(d.sources, "sources", entry, hint)

    def _event(self, ctx: ExtractionContext, event: str, value: str, hint: int) -> None:
        current = getattr(ctx.draft, event)
        if current.raw or current.has_date:
            return
        fragment, date_text, place = event_fragment(value)
        if current.place and not place:
            fragment = fragment.model_copy(update={"place": current.place})
        setattr(ctx.draft, event, fragment)
        ctx.emit(f"{event}.date", date_text, hint)
        if place:
            ctx.emit(f"{event}.place", place, hint)
            ctx.add_places(place, hint)
