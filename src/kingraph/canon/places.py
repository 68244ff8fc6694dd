"""Place canonicalization.

``parse_place`` splits free text on ``;``/``,`` and resolves each fragment
against a place dictionary. The built-in template covers the countries most
often met in French civil registers, the French regions, departments
(with their INSEE codes as aliases), overseas territories and large cities.
Callers pass their own definitions to replace it.
"""
from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .aliases import AliasDefinition, build_alias_map, coerce_definitions, lookup, split_fragments


class PlaceCategory(str, Enum):
    COUNTRY = "country"
    STATE = "state"
    REGION = "region"
    DEPARTMENT = "department"
    CITY = "city"
    TERRITORY = "territory"


class PlaceDefinition(AliasDefinition):
    category: PlaceCategory | None = None


class PlaceMatch(BaseModel):
    fragment: str
    canonical: str
    category: PlaceCategory | None = None


class ParsedPlace(BaseModel):
    place: str
    tokens: list[str] = Field(default_factory=list)
    matches: list[PlaceMatch] = Field(default_factory=list)


def _place(label: str, category: PlaceCategory, *aliases: str) -> PlaceDefinition:
    return PlaceDefinition(label=label, aliases=list(aliases), category=category)


def _department(
    code: str,
    label: str,
    *extra: str,
    category: PlaceCategory = PlaceCategory.DEPARTMENT,
) -> PlaceDefinition:
    aliases = [code]
    if code.isdigit() and code.startswith("0"):
        aliases.append(code.lstrip("0"))
    aliases += [f"{label} ({code})", f"{code} {label}", *extra]
    return PlaceDefinition(label=label, aliases=aliases, category=category)


def _overseas(code: str, label: str, article: str) -> PlaceDefinition:
    return _department(code, label, f"{code}e", f"Departement {article}{label}")


C = PlaceCategory

FRENCH_COUNTRIES: tuple[PlaceDefinition, ...] = (
    _place("France", C.COUNTRY, "République française", "Republique francaise", "French Republic", "FR", "FRA"),
    _place("Belgique", C.COUNTRY, "Belgium", "Royaume de Belgique", "BE"),
    _place("Suisse", C.COUNTRY, "Switzerland", "Confédération suisse", "CH"),
    _place("Allemagne", C.COUNTRY, "Germany", "DE", "Bundesrepublik Deutschland", "Deutschland"),
    _place("Italie", C.COUNTRY, "Italy", "IT", "Repubblica Italiana", "Italia"),
    _place("Espagne", C.COUNTRY, "Spain", "ES", "Reino de España", "España"),
    _place("Luxembourg", C.COUNTRY, "Grand-Duché de Luxembourg", "LU"),
    _place(
        "Royaume-Uni",
        C.COUNTRY,
        "United Kingdom",
        "UK",
        "Grande-Bretagne",
        "Great Britain",
        "Angleterre",
        "England",
    ),
    _place("Irlande", C.COUNTRY, "Ireland", "Éire", "IE"),
    _place("Pays-Bas", C.COUNTRY, "Netherlands", "Hollande", "NL"),
    _place("Portugal", C.COUNTRY, "PT", "República Portuguesa"),
    _place(
        "États-Unis",
        C.COUNTRY,
        "United States",
        "USA",
        "US",
        "America",
        "États-Unis d'Amérique",
        "Etats Unis d Amerique",
    ),
    _place("Canada", C.COUNTRY, "CA", "Dominion of Canada"),
    _place("Algérie", C.COUNTRY, "Algeria", "DZ", "Algérie française"),
    _place("Maroc", C.COUNTRY, "Morocco", "MA", "Royaume du Maroc"),
    _place("Tunisie", C.COUNTRY, "Tunisia", "TN", "République tunisienne"),
)

FRENCH_REGIONS: tuple[PlaceDefinition, ...] = (
    _place("Auvergne-Rhône-Alpes", C.REGION, "Auvergne", "Rhône-Alpes"),
    _place("Bourgogne-Franche-Comté", C.REGION, "Bourgogne", "Franche-Comté", "Burgundy"),
    _place("Bretagne", C.REGION, "Brittany", "Breizh"),
    _place("Centre-Val de Loire", C.REGION, "Centre", "Région Centre"),
    _place("Corse", C.REGION, "Corsica", "Île de Beauté"),
    _place("Grand Est", C.REGION, "Alsace", "Lorraine", "Champagne-Ardenne"),
    _place("Hauts-de-France", C.REGION, "Nord-Pas-de-Calais", "Picardie"),
    _place("Île-de-France", C.REGION, "Région parisienne", "IDF"),
    _place("Normandie", C.REGION, "Normandy", "Haute-Normandie", "Basse-Normandie"),
    _place("Nouvelle-Aquitaine", C.REGION, "Aquitaine", "Limousin", "Poitou-Charentes"),
    _place("Occitanie", C.REGION, "Midi-Pyrénées", "Languedoc-Roussillon", "Occitania"),
    _place("Pays de la Loire", C.REGION, "Pays de Loire", "Pays Loire"),
    _place("Provence-Alpes-Côte d'Azur", C.REGION, "Provence", "PACA"),
)

FRENCH_DEPARTMENTS: tuple[PlaceDefinition, ...] = (
    _department("01", "Ain"),
    _department("02", "Aisne"),
    _department("03", "Allier"),
    _department("04", "Alpes-de-Haute-Provence"),
    _department("05", "Hautes-Alpes"),
    _department("06", "Alpes-Maritimes"),
    _department("07", "Ardèche"),
    _department("08", "Ardennes"),
    _department("09", "Ariège"),
    _department("10", "Aube"),
    _department("11", "Aude"),
    _department("12", "Aveyron"),
    _department("13", "Bouches-du-Rhône"),
    _department("14", "Calvados"),
    _department("15", "Cantal"),
    _department("16", "Charente"),
    _department("17", "Charente-Maritime"),
    _department("18", "Cher"),
    _department("19", "Corrèze"),
    _department("2A", "Corse-du-Sud", "20A"),
    _department("2B", "Haute-Corse", "20B"),
    _department("21", "Côte-d'Or"),
    _department("22", "Côtes-d'Armor"),
    _department("23", "Creuse"),
    _department("24", "Dordogne"),
    _department("25", "Doubs"),
    _department("26", "Drôme"),
    _department("27", "Eure"),
    _department("28", "Eure-et-Loir"),
    _department("29", "Finistère"),
    _department("30", "Gard"),
    _department("31", "Haute-Garonne"),
    _department("32", "Gers"),
    _department("33", "Gironde"),
    _department("34", "Hérault"),
    _department("35", "Ille-et-Vilaine"),
    _department("36", "Indre"),
    _department("37", "Indre-et-Loire"),
    _department("38", "Isère"),
    _department("39", "Jura"),
    _department("40", "Landes"),
    _department("41", "Loir-et-Cher"),
    _department("42", "Loire"),
    _department("43", "Haute-Loire"),
    _department("44", "Loire-Atlantique"),
    _department("45", "Loiret"),
    _department("46", "Lot"),
    _department("47", "Lot-et-Garonne"),
    _department("48", "Lozère"),
    _department("49", "Maine-et-Loire"),
    _department("50", "Manche"),
    _department("51", "Marne"),
    _department("52", "Haute-Marne"),
    _department("53", "Mayenne"),
    _department("54", "Meurthe-et-Moselle"),
    _department("55", "Meuse"),
    _department("56", "Morbihan"),
    _department("57", "Moselle"),
    _department("58", "Nièvre"),
    _department("59", "Nord"),
    _department("60", "Oise"),
    _department("61", "Orne"),
    _department("62", "Pas-de-Calais"),
    _department("63", "Puy-de-Dôme"),
    _department("64", "Pyrénées-Atlantiques"),
    _department("65", "Hautes-Pyrénées"),
    _department("66", "Pyrénées-Orientales"),
    _department("67", "Bas-Rhin"),
    _department("68", "Haut-Rhin"),
    # Also claims the former region name, so "Rhône-Alpes" resolves to the department
    _department("69", "Rhône", "Rhône-Alpes", "Departement du Rhone"),
    _department("70", "Haute-Saône"),
    _department("71", "Saône-et-Loire"),
    _department("72", "Sarthe"),
    _department("73", "Savoie"),
    _department("74", "Haute-Savoie"),
    _department("76", "Seine-Maritime"),
    _department("77", "Seine-et-Marne"),
    _department("78", "Yvelines"),
    _department("79", "Deux-Sèvres"),
    _department("80", "Somme"),
    _department("81", "Tarn"),
    _department("82", "Tarn-et-Garonne"),
    _department("83", "Var"),
    _department("84", "Vaucluse"),
    _department("85", "Vendée"),
    _department("86", "Vienne"),
    _department("87", "Haute-Vienne"),
    _department("88", "Vosges"),
    _department("89", "Yonne"),
    _department("90", "Territoire de Belfort"),
    _department("91", "Essonne"),
    _department("92", "Hauts-de-Seine", "Departement des Hauts de Seine"),
    _department("93", "Seine-Saint-Denis", "Departement de la Seine Saint Denis"),
    _department("94", "Val-de-Marne", "Departement du Val de Marne"),
    _department("95", "Val-d'Oise", "Departement du Val d Oise"),
    _overseas("971", "Guadeloupe", "de la "),
    _overseas("972", "Martinique", "de la "),
    _overseas("973", "Guyane", "de la "),
    _overseas("974", "La Réunion", "de "),
    _department("975", "Saint-Pierre-et-Miquelon", category=C.TERRITORY),
    _overseas("976", "Mayotte", "de "),
    _department("977", "Saint-Barthélemy", category=C.TERRITORY),
    _department("978", "Saint-Martin", category=C.TERRITORY),
    _department("984", "Terres australes et antarctiques françaises", "TAAF", category=C.TERRITORY),
    _department("986", "Wallis-et-Futuna", category=C.TERRITORY),
    _department("987", "Polynésie française", category=C.TERRITORY),
    _department("988", "Nouvelle-Calédonie", category=C.TERRITORY),
    _department("989", "Île de Clipperton", category=C.TERRITORY),
)

_LARGE_CITIES = (
    "Marseille",
    "Lyon",
    "Toulouse",
    "Nice",
    "Nantes",
    "Strasbourg",
    "Montpellier",
    "Bordeaux",
    "Lille",
    "Rennes",
    "Grenoble",
)

# Paris is both a commune and a department (75); it is listed once, as a city
FRENCH_CITIES: tuple[PlaceDefinition, ...] = (
    _place(
        "Paris",
        C.CITY,
        "75",
        "Paris (75)",
        "75 Paris",
        "Ville de Paris",
        "Paris, France",
        "Departement de Paris",
        "75e",
    ),
    *(_place(city, C.CITY, f"{city}, France", f"Ville de {city}") for city in _LARGE_CITIES),
)

TEMPLATE_PLACES: tuple[PlaceDefinition, ...] = (
    *FRENCH_COUNTRIES,
    *FRENCH_REGIONS,
    *FRENCH_DEPARTMENTS,
    *FRENCH_CITIES,
)


def parse_place(text: str | None, definitions: Iterable[PlaceDefinition | dict[str, Any]] | None = None) -> ParsedPlace:
    """Resolve the place fragments of ``text``.

    Args:
        text: Free-text place, e.g. ``"Le Mans, Sarthe, France"``
        definitions: Dictionary to resolve against; the built-in template
            when omitted. Non-conforming entries are ignored.

    Returns:
        ParsedPlace with the trimmed input, the de-duplicated canonical
        labels in first-seen order, and one match per recognized fragment.
        Unrecognized fragments are dropped.
    """
    place = (text or "").strip()
    if not place:
        return ParsedPlace(place="")

    resolved = TEMPLATE_PLACES if definitions is None else coerce_definitions(definitions, PlaceDefinition)
    alias_map = build_alias_map(resolved)

    tokens: list[str] = []
    matches: list[PlaceMatch] = []
    for fragment in split_fragments(place, ";,"):
        entry = lookup(fragment, alias_map)
        if entry is None:
            continue
        if entry.label not in tokens:
            tokens.append(entry.label)
        matches.append(PlaceMatch(fragment=fragment, canonical=entry.label, category=entry.category))

    return ParsedPlace(place=place, tokens=tokens, matches=matches)
