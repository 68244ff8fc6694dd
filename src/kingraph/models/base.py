"""Shared pydantic configuration for the record models."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Frozen model with snake_case attributes and camelCase wire names."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using wire names; absent values are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
