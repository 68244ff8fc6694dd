"""Linked-tree layouts: genealogy-site person pages with relationship sections.

These pages list parents, unions, children and siblings under their own
headings, each person a link followed by a short birth/death caption::

    <h2>Parents</h2>
    <ul><li><a href="/p/jean">Jean DUPONT</a> (1790-1850)</li> ...</ul>
"""
from __future__ import annotations

import re

from bs4 import Tag

from ..models.provenance import SignalClass
from ..models.record import DateFragment, Relative, RelativeRole, Sex
from ..utils.dates import parse_date_fragment, search_date
from ..utils.names import parse_name
from ..utils.normalize import collapse_whitespace, normalize_for_comparison
from .base import (
    ExtractionContext,
    ExtractionStrategy,
    ParsedDocument,
    collect_sources,
    detect_source_url,
    event_fragment,
    following_section,
    heading_name,
    normalize_sex,
    parse_heading,
)

_SECTION_TAGS = ("h2", "h3", "h4")

# Checked in order; "spouses and children" is a spouse section whose nested items are children
_SECTION_ROLES: tuple[tuple[re.Pattern[str], RelativeRole], ...] = (
    (re.compile(r"\b(?:half )?siblings\b|\bbrothers and sisters\b|\bfreres et soeurs\b|\bfratrie\b"), RelativeRole.SIBLING),
    (
        re.compile(r"\bspouses?\b|\bunions?\b|\bmarriages?\b|\bmariages?\b|\bconjoints?\b|\bepoux\b"),
        RelativeRole.SPOUSE,
    ),
    (re.compile(r"\bchild(?:ren)?\b|\benfants?\b"), RelativeRole.CHILD),
    (re.compile(r"\bparents\b"), RelativeRole.PARENT),
)

_FIELD_FOR_ROLE = {
    RelativeRole.SPOUSE: "spouses",
    RelativeRole.CHILD: "children",
    RelativeRole.SIBLING: "siblings",
}

_FATHER_MARKER = re.compile(r"\b(?:father|pere|dad|vater)\b")
_MOTHER_MARKER = re.compile(r"\b(?:mother|mere|mom|mutter)\b")
_BORN_MARKER = re.compile(r"(?i:\bborn\b|\bb\.|\bn[ée]e?\b|°)")
_DIED_MARKER = re.compile(r"(?i:\bdied\b|\bd\.|\bd[ée]c[ée]d[ée]e?\b|†)")
_EVENT_LINE = re.compile(r"^(?P<keyword>born|birth|n[ée]e?|died|death|deceased|d[ée]c[ée]d[ée]e?)\b[\s:,]*", re.IGNORECASE)
_DEATH_WORDS = re.compile(r"^(?:died|death|deceased|d[ée]c[ée]d[ée]e?)$", re.IGNORECASE)


def _section_role(heading: Tag) -> RelativeRole | None:
    text = normalize_for_comparison(heading.get_text(" "))
    for pattern, role in _SECTION_ROLES:
        if pattern.search(text):
            return role
    return None


def relationship_sections(document: ParsedDocument) -> list[tuple[RelativeRole, Tag, list[Tag]]]:
    """Headings naming a relationship, with the blocks that follow them, when those contain links."""
    sections = []
    for heading in document.headings:
        if heading.name not in _SECTION_TAGS:
            continue
        role = _section_role(heading)
        if role is None:
            continue
        blocks = following_section(heading)
        if any(block.name == "a" or block.find("a", href=True) is not None for block in blocks):
            sections.append((role, heading, blocks))
    return sections


def _own_text(item: Tag) -> str:
    """Text of a list item without its nested lists."""
    parts = []
    for node in item.find_all(string=True):
        parent = node.parent
        while parent is not None and parent is not item and parent.name not in ("ul", "ol"):
            parent = parent.parent
        if parent is item:
            parts.append(str(node))
    return collapse_whitespace(" ".join(parts))


def _caption_event(caption: str, marker: re.Pattern[str], stop: re.Pattern[str]) -> tuple[DateFragment, str | None]:
    found = marker.search(caption)
    if found is None:
        return DateFragment(), None
    clause = caption[found.end() :]
    cut = stop.search(clause)
    if cut:
        clause = clause[: cut.start()]
    located = search_date(clause)
    if located is None:
        return DateFragment(), None
    date_text = clause[located[0] : located[1]]
    return parse_date_fragment(date_text), date_text


def parse_relative(item: Tag, role: RelativeRole) -> tuple[Relative, str | None] | None:
    """One linked person from a list item; returns it with its birth date text."""
    link = item.find("a")
    caption = _own_text(item)
    name = collapse_whitespace(link.get_text(" ")) if link is not None else parse_heading(caption).name
    if not name:
        return None
    parts = parse_name(name)

    birth, birth_text = _caption_event(caption, _BORN_MARKER, _DIED_MARKER)
    death, _ = _caption_event(caption, _DIED_MARKER, _BORN_MARKER)
    lifespan = parse_heading(caption)
    if lifespan.birth_year and not birth.has_date:
        birth = parse_date_fragment(lifespan.birth_year)
        birth_text = lifespan.birth_year
    if lifespan.death_year and not death.has_date:
        death = parse_date_fragment(lifespan.death_year)

    relative = Relative(
        role=role,
        name=name,
        given_names=parts.given_names,
        surname=parts.surname,
        birth=birth,
        death=death,
        href=link.get("href") if link is not None else None,
    )
    return relative, birth_text


def _parent_role(item: Tag, index: int) -> RelativeRole:
    text = normalize_for_comparison(item.get_text(" "))
    if _FATHER_MARKER.search(text):
        return RelativeRole.FATHER
    if _MOTHER_MARKER.search(text):
        return RelativeRole.MOTHER
    for marker in item.find_all(attrs={"alt": True}) + item.find_all(attrs={"title": True}):
        sex = normalize_sex(marker.get("alt") or marker.get("title"))
        if sex in (Sex.MALE, Sex.FEMALE):
            return RelativeRole.FATHER if sex is Sex.MALE else RelativeRole.MOTHER
    return RelativeRole.FATHER if index == 0 else RelativeRole.MOTHER


class LinkedTreeStrategy(ExtractionStrategy):
    """Reads the individual from the page header and relatives from relationship sections."""

    name = "linked-tree"
    signal = SignalClass.TABLE_LABEL

    def applies(self, document: ParsedDocument) -> bool:
        return len(relationship_sections(document)) >= 2

    def extract(self, ctx: ExtractionContext) -> None:
        sections = relationship_sections(ctx.document)
        in_sections = {id(block) for _, heading, blocks in sections for block in (heading, *blocks)}

        def outside(element: Tag) -> bool:
            return id(element) not in in_sections and not any(id(parent) in in_sections for parent in element.parents)

        title = ctx.soup.find("h1")
        if title is not None:
            heading_name(ctx, title)
        if not ctx.draft.has_name:
            for heading in ctx.document.headings:
                if outside(heading) and heading_name(ctx, heading) is not None:
                    break

        self._sex(ctx, outside)
        self._events(ctx, outside)

        for role, _, blocks in sections:
            self._section(ctx, role, blocks)

        collect_sources(ctx)
        detect_source_url(ctx)

    def _sex(self, ctx: ExtractionContext, outside) -> None:
        for attr in ("alt", "title"):
            for element in ctx.soup.find_all(attrs={attr: True}):
                if not outside(element):
                    continue
                value = element.get(attr)
                sex = normalize_sex(value)
                if sex is not None:
                    ctx.draft.sex = sex
                    ctx.emit("sex", value, ctx.offset_of(element))
                    return

    def _events(self, ctx: ExtractionContext, outside) -> None:
        best: dict[str, tuple[str, Tag]] = {}
        for element in ctx.soup.find_all(True):
            if element.name in ("html", "body", "head") or not outside(element):
                continue
            text = collapse_whitespace(element.get_text(" "))
            match = _EVENT_LINE.match(text)
            if match is None:
                continue
            event = "death" if _DEATH_WORDS.match(match.group("keyword")) else "birth"
            value = text[match.end() :]
            if value and (event not in best or len(value) < len(best[event][0])):
                best[event] = (value, element)

        for event, (value, element) in best.items():
            current = getattr(ctx.draft, event)
            fragment, date_text, place = event_fragment(value)
            if current.has_date and not fragment.has_date:
                continue
            setattr(ctx.draft, event, fragment)
            hint = ctx.offset_of(element)
            ctx.emit(f"{event}.date", date_text, hint)
            if place:
                ctx.emit(f"{event}.place", place, hint)
                ctx.add_places(place, hint)

    def _section(self, ctx: ExtractionContext, role: RelativeRole, blocks: list[Tag]) -> None:
        d = ctx.draft
        items: list[Tag] = []
        for block in blocks:
            items.extend([block] if block.name == "li" else block.find_all("li"))

        parent_index = 0
        for item in items:
            nested = item.find_parent("li") is not None
            if nested and role is not RelativeRole.SPOUSE:
                continue
            item_role = RelativeRole.CHILD if nested else role
            if item_role is RelativeRole.PARENT:
                item_role = _parent_role(item, parent_index)
                parent_index += 1

            parsed = parse_relative(item, item_role)
            if parsed is None:
                continue
            relative, birth_text = parsed
            hint = ctx.offset_of(item)
            index = len(d.relatives)
            d.relatives.append(relative)
            ctx.emit(f"relatives[{index}]", relative.name, hint)
            if birth_text:
                ctx.emit(f"relatives[{index}].birth", birth_text, hint)

            if item_role in (RelativeRole.FATHER, RelativeRole.MOTHER):
                attr = item_role.value
                if not getattr(d, attr):
                    setattr(d, attr, relative.name)
                    ctx.emit(f"parents.{attr}", relative.name, hint)
            else:
                target = getattr(d, _FIELD_FOR_ROLE[item_role])
                ctx.push(target, _FIELD_FOR_ROLE[item_role], relative.name, hint)
