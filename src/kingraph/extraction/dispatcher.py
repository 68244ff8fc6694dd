"""Strategy dispatch: the first strategy whose precondition holds owns the page."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

import structlog

from ..canon.aliases import coerce_definitions
from ..canon.places import PlaceDefinition
from ..canon.professions import ProfessionDefinition
from ..models.record import IndividualRecord
from .base import ExtractionContext, ExtractionStrategy, ParsedDocument
from .linked_tree import LinkedTreeStrategy
from .narrative import NarrativeStrategy
from .tabular import TabularStrategy

logger = structlog.get_logger(__name__)

# Priority order; there is no merging between strategies
STRATEGIES: tuple[ExtractionStrategy, ...] = (
    TabularStrategy(),
    NarrativeStrategy(),
    LinkedTreeStrategy(),
)


def select_strategy(document: ParsedDocument) -> ExtractionStrategy | None:
    for strategy in STRATEGIES:
        if strategy.applies(document):
            return strategy
    return None


def extract_individual(
    html: str,
    *,
    professions: Iterable[ProfessionDefinition | dict[str, Any]] | None = None,
    places: Iterable[PlaceDefinition | dict[str, Any]] | None = None,
    source_url: str | None = None,
    extracted_at: datetime | None = None,
) -> IndividualRecord:
    """Extract one individual from a page of genealogical HTML.

    Args:
        html: The page as pasted or fetched; kept verbatim as ``source_html``
        professions: Custom profession dictionary (template when omitted)
        places: Custom place dictionary (template when omitted)
        source_url: Fallback source URL when the page declares none
        extracted_at: Pin the extraction timestamp

    Returns:
        The record built by the first applicable strategy, or an empty
        record with no provenance when no strategy recognizes the page.
    """
    document = ParsedDocument.parse(html)
    place_definitions = None if places is None else coerce_definitions(places, PlaceDefinition)
    profession_definitions = (
        None if professions is None else coerce_definitions(professions, ProfessionDefinition)
    )

    strategy = select_strategy(document)
    if strategy is None:
        logger.info("extraction.no_strategy", html_length=len(html))
        empty = {"source_html": html, "source_url": source_url}
        if extracted_at is not None:
            empty["extracted_at"] = extracted_at
        return IndividualRecord(**empty)

    ctx = ExtractionContext(document, strategy.signal, places=place_definitions, professions=profession_definitions)
    strategy.extract(ctx)
    record = ctx.build(strategy.name, source_url=source_url, extracted_at=extracted_at)
    logger.info(
        "extraction.strategy_selected",
        strategy=strategy.name,
        spans=len(record.provenance),
        name=record.display_name or None,
    )
    return record
