"""Multilingual label dictionary for labelled layouts.

The most specific synonym wins, so "maiden name", "father's name" and
"place of birth" resolve before the generic "name" and "birth".
"""
from __future__ import annotations

import re
from enum import Enum

from ..utils.normalize import normalize_for_comparison


class LabelKey(str, Enum):
    MAIDEN = "maiden"
    FATHER = "father"
    MOTHER = "mother"
    SPOUSE = "spouse"
    CHILD = "child"
    SIBLING = "sibling"
    BIRTH_PLACE = "birth_place"
    DEATH_PLACE = "death_place"
    BIRTH = "birth"
    DEATH = "death"
    GIVEN = "given"
    SURNAME = "surname"
    ALIAS = "alias"
    SEX = "sex"
    RESIDENCE = "residence"
    OCCUPATION = "occupation"
    RELIGION = "religion"
    NOTES = "notes"
    SOURCES = "sources"
    NAME = "name"


LABELS: dict[LabelKey, tuple[str, ...]] = {
    LabelKey.MAIDEN: ("maiden", "maiden name", "née", "nee", "birth name", "nom de jeune fille", "geburtsname"),
    LabelKey.FATHER: ("father", "dad", "père", "vater"),
    LabelKey.MOTHER: ("mother", "mom", "mère", "mutter"),
    LabelKey.SPOUSE: ("spouse", "spouses", "husband", "wife", "époux", "épouse", "conjoint", "ehepartner"),
    LabelKey.CHILD: ("child", "children", "son", "daughter", "enfant", "enfants", "kind", "kinder"),
    LabelKey.SIBLING: (
        "sibling",
        "siblings",
        "brother",
        "brothers",
        "sister",
        "sisters",
        "frère",
        "frères",
        "sœur",
        "sœurs",
        "geschwister",
    ),
    LabelKey.BIRTH_PLACE: (
        "birth place",
        "birthplace",
        "place of birth",
        "lieu de naissance",
        "geburtsort",
    ),
    LabelKey.DEATH_PLACE: (
        "death place",
        "place of death",
        "lieu de décès",
        "sterbeort",
    ),
    LabelKey.BIRTH: ("birth", "born", "date of birth", "geburt", "geboren", "naissance"),
    LabelKey.DEATH: ("death", "died", "date of death", "décès", "tod", "gestorben"),
    LabelKey.GIVEN: ("given", "given name", "given names", "forename", "first name", "prénom", "prénoms", "vorname"),
    LabelKey.SURNAME: ("surname", "last name", "family name", "nom", "nom de famille", "nachname"),
    LabelKey.ALIAS: ("alias", "aliases", "aka", "also known as", "nickname", "surnom"),
    LabelKey.SEX: ("sex", "gender", "sexe", "geschlecht"),
    LabelKey.RESIDENCE: ("residence", "residences", "address", "domicile", "wohnort"),
    LabelKey.OCCUPATION: ("occupation", "profession", "job", "emploi", "métier", "beruf"),
    LabelKey.RELIGION: ("religion", "confession", "denomination"),
    LabelKey.NOTES: ("notes", "note", "remarks", "remarques", "bemerkungen"),
    LabelKey.SOURCES: ("sources", "source", "references", "citations"),
    LabelKey.NAME: ("name", "full name", "person", "individual", "nom complet"),
}

# Labels that only annotate a record and are not enough to claim a page as labelled
ANNOTATION_KEYS = frozenset({LabelKey.NOTES, LabelKey.SOURCES, LabelKey.ALIAS})

# Longer captions are prose, not labels
MAX_LABEL_WORDS = 5

_SYNONYMS: tuple[tuple[LabelKey, tuple[str, ...]], ...] = tuple(
    (key, tuple(normalize_for_comparison(s) for s in synonyms)) for key, synonyms in LABELS.items()
)
_TRAILING = re.compile(r"[\s:：]+$")


def match_label(label: str | None) -> LabelKey | None:
    """Resolve a caption to its label key by whole-word match, or ``None``.

    The longest matching synonym wins (``nom de jeune fille`` over ``nom``);
    ties go to the key declared first.
    """
    if not label:
        return None
    normalized = normalize_for_comparison(_TRAILING.sub("", label))
    if not normalized or len(normalized.split()) > MAX_LABEL_WORDS:
        return None
    padded = f" {normalized} "
    best: LabelKey | None = None
    best_length = 0
    for key, synonyms in _SYNONYMS:
        for synonym in synonyms:
            if len(synonym) > best_length and f" {synonym} " in padded:
                best, best_length = key, len(synonym)
    return best
