"""Structural extraction: strategies and the dispatcher choosing between them."""

from .base import ExtractionContext, ExtractionStrategy, ParsedDocument, SourceLocator
from .dispatcher import STRATEGIES, extract_individual, select_strategy
from .labels import LabelKey, match_label
from .linked_tree import LinkedTreeStrategy
from .narrative import NarrativeStrategy
from .tabular import TabularStrategy

__all__ = [
    "STRATEGIES",
    "ExtractionContext",
    "ExtractionStrategy",
    "LabelKey",
    "LinkedTreeStrategy",
    "NarrativeStrategy",
    "ParsedDocument",
    "SourceLocator",
    "TabularStrategy",
    "extract_individual",
    "match_label",
    "select_strategy",
]
