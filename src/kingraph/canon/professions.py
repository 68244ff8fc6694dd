"""Profession canonicalization.

Fragments are split on ``;``, ``,`` and ``/``. A fragment that does not
resolve as a whole is retried word by word, so ``"Maître boulanger"``
still yields ``Boulanger``.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field

from .aliases import AliasDefinition, AliasEntry, build_alias_map, coerce_definitions, lookup, split_fragments


class ProfessionDefinition(AliasDefinition):
    pass


class ProfessionMatch(BaseModel):
    fragment: str
    canonical: str


class ParsedProfession(BaseModel):
    profession: str
    tokens: list[str] = Field(default_factory=list)
    matches: list[ProfessionMatch] = Field(default_factory=list)


def _profession(label: str, *aliases: str) -> ProfessionDefinition:
    return ProfessionDefinition(label=label, aliases=list(aliases))


TEMPLATE_PROFESSIONS: tuple[ProfessionDefinition, ...] = (
    _profession("Agriculteur", "Agricultrice", "Fermier", "Fermière", "Cultivateur", "Cultivatrice"),
    _profession("Artisan", "Artisane", "Maître artisan", "Maîtresse artisane"),
    _profession("Boulanger", "Boulangère", "Pâtissier", "Pâtissière"),
    _profession("Charpentier", "Charpentière", "Menuisier", "Menuisière"),
    _profession(
        "Instituteur",
        "Institutrice",
        "Enseignant",
        "Enseignante",
        "Maître d'école",
        "Maîtresse d'école",
    ),
    _profession("Marchand", "Marchande", "Commerçant", "Commerçante"),
    _profession("Médecin", "Docteur", "Docteure", "Médecin de campagne", "Chirurgien", "Chirurgienne"),
    _profession("Notaire", "Clerc de notaire", "Officier public"),
    _profession("Ouvrier", "Ouvrière", "Manœuvre", "Travailleur", "Travailleuse"),
    _profession("Tailleur", "Tailleur d'habits", "Tailleur de pierre", "Couturier", "Couturière"),
)


def parse_profession(
    text: str | None,
    definitions: Iterable[ProfessionDefinition | dict[str, Any]] | None = None,
) -> ParsedProfession:
    """Resolve the professions named in ``text``.

    Args:
        text: Free-text occupation, e.g. ``"Cultivateur; Marchand"``
        definitions: Dictionary to resolve against; the built-in template
            when omitted. Non-conforming entries are ignored.

    Returns:
        ParsedProfession with the trimmed input, canonical labels in
        first-seen order, and the fragment each label came from.
    """
    profession = (text or "").strip()
    if not profession:
        return ParsedProfession(profession="")

    resolved = (
        TEMPLATE_PROFESSIONS if definitions is None else coerce_definitions(definitions, ProfessionDefinition)
    )
    alias_map = build_alias_map(resolved)

    tokens: list[str] = []
    matches: list[ProfessionMatch] = []

    def _record(fragment: str, entry: AliasEntry) -> None:
        if entry.label not in tokens:
            tokens.append(entry.label)
            matches.append(ProfessionMatch(fragment=fragment, canonical=entry.label))

    for fragment in split_fragments(profession, ";,/"):
        entry = lookup(fragment, alias_map)
        if entry is not None:
            _record(fragment, entry)
            continue
        for part in fragment.split():
            entry = lookup(part, alias_map)
            if entry is not None:
                _record(part, entry)
                break

    return ParsedProfession(profession=profession, tokens=tokens, matches=matches)
