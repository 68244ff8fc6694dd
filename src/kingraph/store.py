"""Persistent workbench state: individuals, their saved records, and dictionaries.

A :class:`RecordStore` is an explicit handle; nothing here is a module
global. State is an immutable :class:`StoreState` snapshot replaced on every
change, after which subscribers are notified and, when the store has a
path, the snapshot is written to disk as JSON.
"""
from __future__ import annotations

import json
import uuid
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
from pydantic import Field, ValidationError, field_validator

from .canon.places import TEMPLATE_PLACES, PlaceCategory, PlaceDefinition
from .canon.professions import TEMPLATE_PROFESSIONS, ProfessionDefinition
from .fs import atomic_write
from .models.base import CamelModel
from .models.fields import FIELD_DESCRIPTORS, FieldId, get_descriptor
from .models.record import DateFragment, IndividualRecord, Parents, Residence, Sex

logger = structlog.get_logger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


def _unique(values: Iterable[str] | None) -> list[str]:
    seen: list[str] = []
    for value in values or ():
        value = value.strip() if isinstance(value, str) else ""
        if value and value not in seen:
            seen.append(value)
    return seen


class LinkedParents(CamelModel):
    father: str | None = None
    mother: str | None = None


class IndividualProfile(CamelModel):
    """The curated view of an individual, edited field by field."""

    given_names: list[str] = Field(default_factory=list)
    surname: str | None = None
    maiden_name: str | None = None
    aliases: list[str] = Field(default_factory=list)
    sex: Sex | None = None
    birth: DateFragment = Field(default_factory=DateFragment)
    death: DateFragment = Field(default_factory=DateFragment)
    residences: list[Residence] = Field(default_factory=list)
    parents: Parents = Field(default_factory=Parents)
    spouses: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)
    siblings: list[str] = Field(default_factory=list)
    occupation: str | None = None
    religion: str | None = None
    notes: str | None = None

    # Ids of other stored individuals
    linked_parents: LinkedParents = Field(default_factory=LinkedParents)
    linked_spouses: list[str] = Field(default_factory=list)
    linked_children: list[str] = Field(default_factory=list)

    @field_validator("given_names", "aliases", "spouses", "children", "siblings", "linked_spouses", "linked_children", mode="before")
    @classmethod
    def _clean_lists(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return _unique(value)

    @classmethod
    def from_record(cls, record: IndividualRecord) -> "IndividualProfile":
        return cls(**{attr: getattr(record, attr) for attr in _PROFILE_ATTRS})


_PROFILE_ATTRS = (
    "given_names",
    "surname",
    "maiden_name",
    "aliases",
    "sex",
    "birth",
    "death",
    "residences",
    "parents",
    "spouses",
    "children",
    "siblings",
    "occupation",
    "religion",
    "notes",
)


class StoredIndividual(CamelModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    profile: IndividualProfile = Field(default_factory=IndividualProfile)


class StoredRecord(CamelModel):
    id: str
    individual_id: str
    created_at: datetime
    summary: str = ""
    record: IndividualRecord


class StoredPlaceDefinition(CamelModel):
    id: str
    label: str
    aliases: list[str] = Field(default_factory=list)
    category: PlaceCategory | None = None
    created_at: datetime
    updated_at: datetime

    def to_definition(self) -> PlaceDefinition:
        return PlaceDefinition(label=self.label, aliases=self.aliases, category=self.category)


class StoredProfessionDefinition(CamelModel):
    id: str
    label: str
    aliases: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def to_definition(self) -> ProfessionDefinition:
        return ProfessionDefinition(label=self.label, aliases=self.aliases)


class StoreState(CamelModel):
    individuals: list[StoredIndividual] = Field(default_factory=list)
    records: list[StoredRecord] = Field(default_factory=list)
    professions: list[StoredProfessionDefinition] = Field(default_factory=list)
    places: list[StoredPlaceDefinition] = Field(default_factory=list)


class LinkRole(str, Enum):
    FATHER = "father"
    MOTHER = "mother"
    SPOUSE = "spouse"
    CHILD = "child"


StateListener = Callable[[StoreState], None]


def seed_places() -> list[StoredPlaceDefinition]:
    now = _now()
    return [
        StoredPlaceDefinition(
            id=_new_id(),
            label=definition.label,
            aliases=_unique(definition.aliases),
            category=definition.category,
            created_at=now,
            updated_at=now,
        )
        for definition in TEMPLATE_PLACES
    ]


def seed_professions() -> list[StoredProfessionDefinition]:
    now = _now()
    return [
        StoredProfessionDefinition(
            id=_new_id(), label=definition.label, aliases=_unique(definition.aliases), created_at=now, updated_at=now
        )
        for definition in TEMPLATE_PROFESSIONS
    ]


def default_state() -> StoreState:
    return StoreState(professions=seed_professions(), places=seed_places())


def _valid_entries(raw: Any, model: type[CamelModel], section: str) -> list[Any]:
    entries = []
    if not isinstance(raw, list):
        return entries
    for index, item in enumerate(raw):
        if isinstance(item, dict):
            now = _now().isoformat()
            item = {"createdAt": now, **item}
            item.setdefault("updatedAt", item["createdAt"])
        try:
            entries.append(model.model_validate(item))
        except ValidationError as e:
            logger.debug("store.entry_skipped", section=section, index=index, error=str(e))
    return entries


def normalize_state(raw: Any) -> StoreState:
    """Build a state from loosely shaped data, dropping malformed entries.

    Dictionaries absent from ``raw`` are seeded from the templates; an
    explicitly empty list stays empty.
    """
    if not isinstance(raw, dict):
        raise ValueError("store data must be a JSON object")

    individuals = _valid_entries(raw.get("individuals"), StoredIndividual, "individuals")
    records = _valid_entries(raw.get("records"), StoredRecord, "records")
    professions = (
        _valid_entries(raw["professions"], StoredProfessionDefinition, "professions")
        if isinstance(raw.get("professions"), list)
        else seed_professions()
    )
    places = (
        _valid_entries(raw["places"], StoredPlaceDefinition, "places")
        if isinstance(raw.get("places"), list)
        else seed_places()
    )
    return StoreState(individuals=individuals, records=records, professions=professions, places=places)


class RecordStore:
    """Explicit handle on the workbench state.

    Args:
        path: JSON file backing the store. Loaded when it exists and
            rewritten after every change. ``None`` keeps the store in memory.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._listeners: list[StateListener] = []
        if self.path is not None and self.path.exists():
            self._state = self._read(self.path)
        else:
            self._state = default_state()

    @property
    def state(self) -> StoreState:
        return self._state

    # -- subscription -------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with the new state after every change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: StoreState) -> None:
        if self.path is not None:
            self._write(state, self.path)
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error("store.listener_failed", error=str(e), exc_info=True)

    # -- persistence --------------------------------------------------------

    @staticmethod
    def _read(path: Path) -> StoreState:
        return normalize_state(json.loads(path.read_text(encoding="utf-8")))

    @staticmethod
    def _write(state: StoreState, target: Path) -> Path:
        payload = json.dumps(state.to_wire(), ensure_ascii=False, indent=2)
        atomic_write(target, payload)
        logger.debug("store.saved", path=str(target), individuals=len(state.individuals))
        return target

    def save(self, path: Path | str | None = None) -> Path:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("no path to save the store to")
        return self._write(self._state, target)

    def load(self, path: Path | str) -> StoreState:
        """Replace the current state with the contents of ``path``."""
        self._commit(self._read(Path(path)))
        return self._state

    def import_data(self, raw: Any) -> StoreState:
        self._commit(normalize_state(raw))
        return self._state

    def clear_all(self) -> None:
        """Drop everything and reseed the template dictionaries."""
        self._commit(default_state())

    # -- individuals --------------------------------------------------------

    def get_individual(self, individual_id: str) -> StoredIndividual:
        for individual in self._state.individuals:
            if individual.id == individual_id:
                return individual
        raise KeyError(individual_id)

    def _replace_individual(self, updated: StoredIndividual, state: StoreState | None = None) -> StoreState:
        state = state if state is not None else self._state
        individuals = [updated if item.id == updated.id else item for item in state.individuals]
        return state.model_copy(update={"individuals": individuals})

    def create_individual(self, name: str, profile: IndividualProfile | None = None) -> StoredIndividual:
        name = name.strip()
        if not name:
            raise ValueError("individual name cannot be empty")
        now = _now()
        individual = StoredIndividual(
            id=_new_id(), name=name, created_at=now, updated_at=now, profile=profile or IndividualProfile()
        )
        self._commit(self._state.model_copy(update={"individuals": [*self._state.individuals, individual]}))
        logger.info("store.individual_created", individual_id=individual.id)
        return individual

    def rename_individual(self, individual_id: str, name: str) -> StoredIndividual:
        updated = self.get_individual(individual_id).model_copy(update={"name": name.strip(), "updated_at": _now()})
        self._commit(self._replace_individual(updated))
        return updated

    def delete_individual(self, individual_id: str) -> None:
        """Remove an individual, its records, and every link pointing at it."""
        self.get_individual(individual_id)
        individuals = []
        for item in self._state.individuals:
            if item.id == individual_id:
                continue
            profile = item.profile
            parents = profile.linked_parents
            unlinked = profile.model_copy(
                update={
                    "linked_parents": LinkedParents(
                        father=None if parents.father == individual_id else parents.father,
                        mother=None if parents.mother == individual_id else parents.mother,
                    ),
                    "linked_spouses": [i for i in profile.linked_spouses if i != individual_id],
                    "linked_children": [i for i in profile.linked_children if i != individual_id],
                }
            )
            individuals.append(item if unlinked == profile else item.model_copy(update={"profile": unlinked}))
        records = [record for record in self._state.records if record.individual_id != individual_id]
        self._commit(self._state.model_copy(update={"individuals": individuals, "records": records}))

    def update_profile_field(self, individual_id: str, field: FieldId | str, value: Any) -> StoredIndividual:
        """Set one profile field through its descriptor; the value is re-validated."""
        individual = self.get_individual(individual_id)
        profile = get_descriptor(field).set(individual.profile, value)
        updated = individual.model_copy(update={"profile": profile, "updated_at": _now()})
        self._commit(self._replace_individual(updated))
        return updated

    def apply_record(self, individual_id: str, record: IndividualRecord) -> StoredIndividual:
        """Fill the profile's empty fields from an extracted record."""
        individual = self.get_individual(individual_id)
        profile = individual.profile
        for descriptor in FIELD_DESCRIPTORS.values():
            current = descriptor.get(profile)
            incoming = descriptor.get(record)
            if _is_blank(current) and not _is_blank(incoming):
                profile = descriptor.set(profile, incoming)
        updated = individual.model_copy(update={"profile": profile, "updated_at": _now()})
        self._commit(self._replace_individual(updated))
        return updated

    def link_individuals(self, individual_id: str, other_id: str, role: LinkRole | str) -> StoredIndividual:
        """Record that ``other_id`` is the father/mother/spouse/child of ``individual_id``.

        Spouse links are written on both individuals.
        """
        role = LinkRole(role)
        individual = self.get_individual(individual_id)
        other = self.get_individual(other_id)
        if individual_id == other_id:
            raise ValueError("an individual cannot be linked to itself")

        profile = individual.profile
        if role in (LinkRole.FATHER, LinkRole.MOTHER):
            parents = profile.linked_parents.model_copy(update={role.value: other_id})
            profile = profile.model_copy(update={"linked_parents": parents})
        elif role is LinkRole.SPOUSE:
            profile = profile.model_copy(update={"linked_spouses": _unique([*profile.linked_spouses, other_id])})
        else:
            profile = profile.model_copy(update={"linked_children": _unique([*profile.linked_children, other_id])})

        now = _now()
        updated = individual.model_copy(update={"profile": profile, "updated_at": now})
        state = self._replace_individual(updated)
        if role is LinkRole.SPOUSE:
            back = other.profile.model_copy(
                update={"linked_spouses": _unique([*other.profile.linked_spouses, individual_id])}
            )
            state = self._replace_individual(other.model_copy(update={"profile": back, "updated_at": now}), state)
        self._commit(state)
        return updated

    # -- records ------------------------------------------------------------

    def records_for(self, individual_id: str) -> list[StoredRecord]:
        return [record for record in self._state.records if record.individual_id == individual_id]

    def create_record(self, individual_id: str, record: IndividualRecord, summary: str = "") -> StoredRecord:
        individual = self.get_individual(individual_id)
        now = _now()
        stored = StoredRecord(
            id=_new_id(),
            individual_id=individual_id,
            created_at=now,
            summary=summary or record.display_name,
            record=record,
        )
        state = self._state.model_copy(update={"records": [*self._state.records, stored]})
        state = self._replace_individual(individual.model_copy(update={"updated_at": now}), state)
        self._commit(state)
        logger.info("store.record_created", record_id=stored.id, individual_id=individual_id)
        return stored

    def delete_record(self, record_id: str) -> None:
        removed = next((record for record in self._state.records if record.id == record_id), None)
        if removed is None:
            raise KeyError(record_id)
        state = self._state.model_copy(update={"records": [r for r in self._state.records if r.id != record_id]})
        try:
            owner = self.get_individual(removed.individual_id)
        except KeyError:
            owner = None
        if owner is not None:
            state = self._replace_individual(owner.model_copy(update={"updated_at": _now()}), state)
        self._commit(state)

    def clear_records(self) -> None:
        if self._state.records:
            self._commit(self._state.model_copy(update={"records": []}))

    # -- dictionaries -------------------------------------------------------

    def place_definitions(self) -> list[PlaceDefinition]:
        return [stored.to_definition() for stored in self._state.places]

    def profession_definitions(self) -> list[ProfessionDefinition]:
        return [stored.to_definition() for stored in self._state.professions]

    def save_place_definition(
        self,
        label: str,
        aliases: Iterable[str] | None = None,
        category: PlaceCategory | str | None = None,
        definition_id: str | None = None,
    ) -> StoredPlaceDefinition:
        """Create a place definition, or update the one with ``definition_id``."""
        label = label.strip()
        if not label:
            raise ValueError("place label cannot be empty")
        now = _now()
        changes = {
            "label": label,
            "aliases": _unique(aliases),
            "category": PlaceCategory(category) if category else None,
            "updated_at": now,
        }
        existing = next((p for p in self._state.places if definition_id and p.id == definition_id), None)
        if existing is not None:
            stored = existing.model_copy(update=changes)
            places = [stored if p.id == existing.id else p for p in self._state.places]
        else:
            stored = StoredPlaceDefinition(id=definition_id or _new_id(), created_at=now, **changes)
            places = [*self._state.places, stored]
        self._commit(self._state.model_copy(update={"places": places}))
        return stored

    def delete_place_definition(self, definition_id: str) -> None:
        places = [p for p in self._state.places if p.id != definition_id]
        if len(places) != len(self._state.places):
            self._commit(self._state.model_copy(update={"places": places}))

    def save_profession_definition(
        self,
        label: str,
        aliases: Iterable[str] | None = None,
        definition_id: str | None = None,
    ) -> StoredProfessionDefinition:
        """Create a profession definition, or update the one with ``definition_id``."""
        label = label.strip()
        if not label:
            raise ValueError("profession label cannot be empty")
        now = _now()
        changes = {"label": label, "aliases": _unique(aliases), "updated_at": now}
        existing = next((p for p in self._state.professions if definition_id and p.id == definition_id), None)
        if existing is not None:
            stored = existing.model_copy(update=changes)
            professions = [stored if p.id == existing.id else p for p in self._state.professions]
        else:
            stored = StoredProfessionDefinition(id=definition_id or _new_id(), created_at=now, **changes)
            professions = [*self._state.professions, stored]
        self._commit(self._state.model_copy(update={"professions": professions}))
        return stored

    def delete_profession_definition(self, definition_id: str) -> None:
        professions = [p for p in self._state.professions if p.id != definition_id]
        if len(professions) != len(self._state.professions):
            self._commit(self._state.model_copy(update={"professions": professions}))


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str | list):
        return not value
    if isinstance(value, DateFragment):
        return value.is_empty
    return False
