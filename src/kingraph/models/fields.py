"""Field descriptor table for the editable individual fields.

Each descriptor pairs an enumerated field id with a typed getter and a
setter that returns an updated copy, so callers (CLI tables, profile
editing in the store) can walk every field generically without reflection.
Descriptors work on any model exposing the individual attributes:
``IndividualRecord`` and the store's ``IndividualProfile``.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel

from .record import DateFragment, Residence

M = TypeVar("M", bound=BaseModel)


class FieldId(str, Enum):
    GIVEN_NAMES = "givenNames"
    SURNAME = "surname"
    MAIDEN_NAME = "maidenName"
    ALIASES = "aliases"
    SEX = "sex"
    BIRTH = "birth"
    DEATH = "death"
    RESIDENCES = "residences"
    FATHER = "parents.father"
    MOTHER = "parents.mother"
    SPOUSES = "spouses"
    CHILDREN = "children"
    SIBLINGS = "siblings"
    OCCUPATION = "occupation"
    RELIGION = "religion"
    NOTES = "notes"


def replace_fields(model: M, **changes: Any) -> M:
    """Return a re-validated copy of ``model`` with ``changes`` applied."""
    data = {name: getattr(model, name) for name in type(model).model_fields}
    data.update(changes)
    return type(model).model_validate(data)


@dataclass(frozen=True)
class FieldDescriptor:
    id: FieldId
    label: str
    get: Callable[[Any], Any]
    set: Callable[[Any, Any], Any]

    def display(self, target: Any) -> str:
        return format_value(self.get(target))


def _attribute(field_id: FieldId, label: str, attr: str) -> FieldDescriptor:
    return FieldDescriptor(
        id=field_id,
        label=label,
        get=lambda m: getattr(m, attr),
        set=lambda m, v: replace_fields(m, **{attr: v}),
    )


def _parent(field_id: FieldId, label: str, role: str) -> FieldDescriptor:
    return FieldDescriptor(
        id=field_id,
        label=label,
        get=lambda m: getattr(m.parents, role),
        set=lambda m, v: replace_fields(m, parents=replace_fields(m.parents, **{role: v})),
    )


FIELD_DESCRIPTORS: dict[FieldId, FieldDescriptor] = {
    d.id: d
    for d in (
        _attribute(FieldId.GIVEN_NAMES, "Given names", "given_names"),
        _attribute(FieldId.SURNAME, "Surname", "surname"),
        _attribute(FieldId.MAIDEN_NAME, "Maiden name", "maiden_name"),
        _attribute(FieldId.ALIASES, "Aliases", "aliases"),
        _attribute(FieldId.SEX, "Sex", "sex"),
        _attribute(FieldId.BIRTH, "Birth", "birth"),
        _attribute(FieldId.DEATH, "Death", "death"),
        _attribute(FieldId.RESIDENCES, "Residences", "residences"),
        _parent(FieldId.FATHER, "Father", "father"),
        _parent(FieldId.MOTHER, "Mother", "mother"),
        _attribute(FieldId.SPOUSES, "Spouses", "spouses"),
        _attribute(FieldId.CHILDREN, "Children", "children"),
        _attribute(FieldId.SIBLINGS, "Siblings", "siblings"),
        _attribute(FieldId.OCCUPATION, "Occupation", "occupation"),
        _attribute(FieldId.RELIGION, "Religion", "religion"),
        _attribute(FieldId.NOTES, "Notes", "notes"),
    )
}


def get_descriptor(field: FieldId | str) -> FieldDescriptor:
    """Look up a descriptor by id or wire name; raises ``KeyError`` when unknown."""
    try:
        return FIELD_DESCRIPTORS[FieldId(field)]
    except ValueError:
        raise KeyError(field) from None


def format_date(fragment: DateFragment) -> str:
    if fragment.year is not None:
        text = str(fragment.year)
        if fragment.month is not None:
            text += f"-{fragment.month:02d}"
            if fragment.day is not None:
                text += f"-{fragment.day:02d}"
        if fragment.approx:
            text = "~" + text
    else:
        text = fragment.raw or ""
    if fragment.place:
        text = f"{text}, {fragment.place}" if text else fragment.place
    return text


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, DateFragment):
        return format_date(value)
    if isinstance(value, Residence):
        parts = [str(value.year) if value.year is not None else "", value.place or value.raw or ""]
        return " ".join(p for p in parts if p)
    if isinstance(value, list):
        return "; ".join(s for s in (format_value(item) for item in value) if s)
    return str(value)
