"""Alias-to-canonical lookup shared by the place and profession parsers."""
from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any, NamedTuple, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..utils.normalize import collapse_spaces, normalize_token

logger = structlog.get_logger(__name__)


class AliasDefinition(BaseModel):
    """A canonical label and the spellings that resolve to it."""

    model_config = ConfigDict(frozen=True)

    label: str
    aliases: list[str] = Field(default_factory=list)

    @field_validator("label")
    @classmethod
    def _label_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("label must not be blank")
        return value

    @field_validator("aliases", mode="before")
    @classmethod
    def _none_aliases(cls, value: Any) -> Any:
        return [] if value is None else value


class AliasEntry(NamedTuple):
    label: str
    category: str | None = None


D = TypeVar("D", bound=AliasDefinition)


def coerce_definitions(definitions: Iterable[Any] | None, model: type[D]) -> list[D]:
    """Validate caller-supplied dictionary entries, dropping the ones that don't conform.

    Custom dictionaries are user-editable data, so a bad entry is logged and
    skipped instead of failing the whole call.
    """
    if not definitions:
        return []

    valid: list[D] = []
    for index, entry in enumerate(definitions):
        if isinstance(entry, model):
            valid.append(entry)
            continue
        try:
            valid.append(model.model_validate(entry))
        except (ValidationError, TypeError) as e:
            logger.debug("canon.definition_skipped", index=index, model=model.__name__, error=str(e))
    return valid


def build_alias_map(definitions: Iterable[AliasDefinition]) -> dict[str, AliasEntry]:
    """Map normalized and space-collapsed keys to their canonical entry.

    Later definitions win when two of them claim the same key.
    """
    alias_map: dict[str, AliasEntry] = {}
    for definition in definitions:
        category = getattr(definition, "category", None)
        entry = AliasEntry(
            label=definition.label,
            category=category.value if category is not None else None,
        )
        for text in (definition.label, *definition.aliases):
            key = normalize_token(text)
            if not key:
                continue
            alias_map[key] = entry
            alias_map[collapse_spaces(key)] = entry
    return alias_map


def lookup(value: str, alias_map: dict[str, AliasEntry]) -> AliasEntry | None:
    key = normalize_token(value)
    if not key:
        return None
    return alias_map.get(key) or alias_map.get(collapse_spaces(key))


def split_fragments(text: str, separators: str) -> list[str]:
    """Split on any of ``separators`` and drop blank fragments."""
    pattern = "[" + re.escape(separators) + "]"
    return [fragment.strip() for fragment in re.split(pattern, text) if fragment.strip()]
