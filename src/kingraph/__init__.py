"""KinGraph - structured individuals from genealogical HTML.

Extraction picks a layout strategy (labelled tables, heading and prose
narratives, linked family-tree pages), records where every value came from,
and scores each field's confidence from that provenance.
"""

__version__ = "0.1.0"

_EXPORTS = {
    "extract_individual": "kingraph.extraction",
    "score_confidence": "kingraph.models.confidence",
    "IndividualRecord": "kingraph.models.record",
    "ProvenanceSpan": "kingraph.models.provenance",
    "parse_date_fragment": "kingraph.utils.dates",
    "parse_name": "kingraph.utils.names",
    "parse_place": "kingraph.canon.places",
    "parse_profession": "kingraph.canon.professions",
    "build_gedcom": "kingraph.export.gedcom",
    "RecordStore": "kingraph.store",
    "handle_extract": "kingraph.service",
}


# Lazy imports keep ``import kingraph`` cheap for the CLI
def __getattr__(name: str):
    if name in _EXPORTS:
        import importlib

        return getattr(importlib.import_module(_EXPORTS[name]), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["__version__", *_EXPORTS]
