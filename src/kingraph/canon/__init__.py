"""Place and profession dictionaries."""

from .places import (
    TEMPLATE_PLACES,
    ParsedPlace,
    PlaceCategory,
    PlaceDefinition,
    PlaceMatch,
    parse_place,
)
from .professions import (
    TEMPLATE_PROFESSIONS,
    ParsedProfession,
    ProfessionDefinition,
    ProfessionMatch,
    parse_profession,
)

__all__ = [
    "TEMPLATE_PLACES",
    "TEMPLATE_PROFESSIONS",
    "ParsedPlace",
    "ParsedProfession",
    "PlaceCategory",
    "PlaceDefinition",
    "PlaceMatch",
    "ProfessionDefinition",
    "ProfessionMatch",
    "parse_place",
    "parse_profession",
]
