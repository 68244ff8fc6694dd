"""GEDCOM 5.5.1 export of stored individuals.

One INDI per individual with its profile facts; FAM records come from the
links between stored individuals. Relatives known only by name are kept as
NOTE lines.
"""
from __future__ import annotations

import re
import textwrap
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from ..fs import atomic_write
from ..models.record import DateFragment, IndividualRecord, Residence, Sex
from ..store import IndividualProfile, StoredIndividual, StoreState

GEDCOM_MONTHS = ("", "JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")
NOTE_WIDTH = 80

_WHITESPACE = re.compile(r"\s+")


@dataclass
class GedcomFamily:
    key: tuple[str | None, str | None]
    husband_id: str | None = None
    wife_id: str | None = None
    spouse_ids: list[str] = field(default_factory=list)
    child_ids: list[str] = field(default_factory=list)

    def add_spouse(self, individual_id: str) -> None:
        if individual_id not in self.spouse_ids:
            self.spouse_ids.append(individual_id)

    def add_child(self, individual_id: str) -> None:
        if individual_id not in self.child_ids:
            self.child_ids.append(individual_id)


def _text(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = _WHITESPACE.sub(" ", value).strip()
    return normalized or None


def clamp_month(month: int) -> int:
    return min(12, max(1, month))


def format_gedcom_date(fragment: DateFragment) -> str | None:
    """``[ABT ]D MON YYYY``, ``[ABT ]MON YYYY`` or ``[ABT ]YYYY``; ``None`` without a year."""
    if fragment.year is None:
        return None
    prefix = "ABT " if fragment.approx else ""
    if fragment.month is not None:
        month = GEDCOM_MONTHS[clamp_month(fragment.month)]
        if fragment.day is not None:
            return f"{prefix}{fragment.day} {month} {fragment.year}"
        return f"{prefix}{month} {fragment.year}"
    return f"{prefix}{fragment.year}"


def _note(lines: list[str], text: str | None, level: int = 1) -> None:
    normalized = _text(text)
    if not normalized:
        return
    chunks = textwrap.wrap(normalized, NOTE_WIDTH) or [normalized]
    lines.append(f"{level} NOTE {chunks[0]}")
    lines.extend(f"{level + 1} CONT {chunk}" for chunk in chunks[1:])


def _event(lines: list[str], tag: str, fragment: DateFragment) -> None:
    if fragment.is_empty:
        return
    lines.append(f"1 {tag}")
    date = format_gedcom_date(fragment)
    if date:
        lines.append(f"2 DATE {date}")
    place = _text(fragment.place)
    if place:
        lines.append(f"2 PLAC {place}")
    raw = _text(fragment.raw)
    if raw and raw != place:
        _note(lines, raw, level=2)


def _residence(lines: list[str], residence: Residence) -> None:
    if residence.is_empty:
        return
    lines.append("1 RESI")
    if residence.year is not None:
        lines.append(f"2 DATE {residence.year}")
    place = _text(residence.place)
    if place:
        lines.append(f"2 PLAC {place}")
    raw = _text(residence.raw)
    if raw and raw != place:
        _note(lines, raw, level=2)


def _name_value(individual: StoredIndividual) -> str | None:
    profile = individual.profile
    given = _text(" ".join(profile.given_names)) or _text(individual.name)
    surname = _text(profile.surname)
    if not given and not surname:
        return None
    return f"{given or ''} /{surname or ''}/".strip()


def _spouse_roles(
    first: StoredIndividual, second: StoredIndividual | None, second_id: str
) -> tuple[str | None, str | None]:
    """(husband, wife) for a couple, decided by sex, then by id order."""
    first_sex = first.profile.sex
    second_sex = second.profile.sex if second is not None else None
    if first_sex is Sex.MALE and second_sex is not Sex.MALE:
        return first.id, second_id
    if second_sex is Sex.MALE and first_sex is not Sex.MALE:
        return second_id, first.id
    if first_sex is Sex.FEMALE and second_sex is not Sex.FEMALE:
        return second_id, first.id
    if second_sex is Sex.FEMALE and first_sex is not Sex.FEMALE:
        return first.id, second_id
    husband, wife = sorted((first.id, second_id))
    return husband, wife


def build_families(individuals: list[StoredIndividual]) -> list[GedcomFamily]:
    by_id = {individual.id: individual for individual in individuals}
    families: dict[tuple[str | None, str | None], GedcomFamily] = {}

    def ensure(husband_id: str | None, wife_id: str | None) -> GedcomFamily:
        husband_id = husband_id if husband_id in by_id else None
        wife_id = wife_id if wife_id in by_id else None
        key = (husband_id, wife_id)
        if key not in families:
            family = GedcomFamily(key=key, husband_id=husband_id, wife_id=wife_id)
            for spouse_id in (husband_id, wife_id):
                if spouse_id:
                    family.add_spouse(spouse_id)
            families[key] = family
        return families[key]

    for individual in individuals:
        parents = individual.profile.linked_parents
        if parents.father in by_id or parents.mother in by_id:
            ensure(parents.father, parents.mother).add_child(individual.id)

    for individual in individuals:
        for spouse_id in individual.profile.linked_spouses:
            husband_id, wife_id = _spouse_roles(individual, by_id.get(spouse_id), spouse_id)
            family = ensure(husband_id, wife_id)
            for child_id in individual.profile.linked_children:
                if child_id in by_id:
                    family.add_child(child_id)

    return list(families.values())


def _relationship_notes(
    individual: StoredIndividual, by_id: dict[str, StoredIndividual], pointers: dict[str, str]
) -> list[str]:
    profile = individual.profile
    notes: list[str] = []

    def compose(label: str, name: str | None, linked_id: str | None) -> str | None:
        pointer = pointers.get(linked_id) if linked_id else None
        name = _text(name)
        if pointer and name:
            return f"{label}: {name} (see @{pointer}@)"
        if pointer:
            return f"{label}: Linked individual @{pointer}@"
        if name:
            return f"{label}: {name}"
        return None

    for role in ("father", "mother"):
        note = compose(f"Parent ({role})", getattr(profile.parents, role), getattr(profile.linked_parents, role))
        if note:
            notes.append(note)

    for label, names, links in (
        ("Spouse", profile.spouses, profile.linked_spouses),
        ("Child", profile.children, profile.linked_children),
    ):
        linked_notes = []
        for linked_id in links:
            if linked_id in pointers:
                linked = by_id.get(linked_id)
                linked_notes.append(compose(label, linked.name if linked else None, linked_id))
        for name in names:
            name = _text(name)
            if name and not any(name in note for note in linked_notes if note):
                linked_notes.append(f"{label}: {name}")
        notes.extend(note for note in linked_notes if note)

    notes.extend(f"Sibling: {name}" for name in (_text(n) for n in profile.siblings) if name)
    return notes


def build_gedcom(
    state: StoreState | Iterable[StoredIndividual],
    individual_ids: Iterable[str] | None = None,
    now: datetime | None = None,
) -> str:
    """Render stored individuals as a GEDCOM 5.5.1 document.

    Args:
        state: A store snapshot or the individuals to export
        individual_ids: Restrict the export to these individuals
        now: Timestamp written in the header (current UTC time by default)

    Returns:
        The document text, newline separated, ending with ``0 TRLR``.
    """
    individuals = list(state.individuals if isinstance(state, StoreState) else state)
    if individual_ids is not None:
        selected = set(individual_ids)
        individuals = [individual for individual in individuals if individual.id in selected]
    now = now or datetime.now(UTC)

    lines = [
        "0 HEAD",
        "1 SOUR KinGraph",
        "2 NAME KinGraph",
        "1 GEDC",
        "2 VERS 5.5.1",
        "2 FORM LINEAGE-LINKED",
        "1 CHAR UTF-8",
        f"1 DATE {now.day} {GEDCOM_MONTHS[now.month]} {now.year}",
        f"2 TIME {now:%H:%M:%S}",
    ]

    by_id = {individual.id: individual for individual in individuals}
    pointers = {individual.id: f"I{index}" for index, individual in enumerate(individuals, start=1)}
    families = build_families(individuals)
    family_pointers = {family.key: f"F{index}" for index, family in enumerate(families, start=1)}

    for individual in individuals:
        profile = individual.profile
        lines.append(f"0 @{pointers[individual.id]}@ INDI")

        name = _name_value(individual)
        if name:
            lines.append(f"1 NAME {name}")
        given = _text(" ".join(profile.given_names))
        if given:
            lines.append(f"2 GIVN {given}")
        surname = _text(profile.surname)
        if surname:
            lines.append(f"2 SURN {surname}")
        maiden = _text(profile.maiden_name)
        if maiden:
            lines.append(f"1 NAME {given} /{maiden.strip('[]')}/" if given else f"1 NAME /{maiden.strip('[]')}/")
            lines.append("2 TYPE birth")
        if profile.sex is not None:
            lines.append(f"1 SEX {profile.sex.value}")

        _event(lines, "BIRT", profile.birth)
        _event(lines, "DEAT", profile.death)
        for residence in profile.residences:
            _residence(lines, residence)
        for alias in profile.aliases:
            alias = _text(alias)
            if alias:
                lines.append(f"1 ALIA {alias}")
        occupation = _text(profile.occupation)
        if occupation:
            lines.append(f"1 OCCU {occupation}")
        religion = _text(profile.religion)
        if religion:
            lines.append(f"1 RELI {religion}")
        _note(lines, profile.notes)
        for note in _relationship_notes(individual, by_id, pointers):
            _note(lines, note)

        for family in families:
            if individual.id in family.spouse_ids:
                lines.append(f"1 FAMS @{family_pointers[family.key]}@")
        for family in families:
            if individual.id in family.child_ids:
                lines.append(f"1 FAMC @{family_pointers[family.key]}@")

    for family in families:
        lines.append(f"0 @{family_pointers[family.key]}@ FAM")
        if family.husband_id:
            lines.append(f"1 HUSB @{pointers[family.husband_id]}@")
        if family.wife_id:
            lines.append(f"1 WIFE @{pointers[family.wife_id]}@")
        for child_id in family.child_ids:
            lines.append(f"1 CHIL @{pointers[child_id]}@")

    lines.append("0 TRLR")
    return "\n".join(lines)


def record_to_gedcom(record: IndividualRecord, now: datetime | None = None) -> str:
    """Export a single extracted record as a one-individual document."""
    stamp = record.extracted_at
    individual = StoredIndividual(
        id="record",
        name=record.display_name or "Unknown",
        created_at=stamp,
        updated_at=stamp,
        profile=IndividualProfile.from_record(record),
    )
    return build_gedcom([individual], now=now)


def export_gedcom(state: StoreState | Iterable[StoredIndividual], out_file: Path | str, **kwargs) -> Path:
    """Write :func:`build_gedcom` output to ``out_file``."""
    return atomic_write(out_file, build_gedcom(state, **kwargs) + "\n")
