"""Render provenance back onto the source HTML as ``<mark>`` elements."""
from __future__ import annotations

from collections.abc import Iterable

from .models.provenance import ProvenanceSpan

_ATTRIBUTE_ESCAPES = str.maketrans({"&": "&amp;", '"': "&quot;", "<": "&lt;", ">": "&gt;", "'": "&#39;"})


def escape_attribute(value: str) -> str:
    return value.translate(_ATTRIBUTE_ESCAPES)


def highlight(html: str, provenance: Iterable[ProvenanceSpan]) -> str:
    """Wrap every span of ``html`` in ``<mark data-field="...">``.

    Spans are applied in (start, end) order and clamped to the document.
    Empty spans and spans overlapping one already applied are skipped, so
    the output always nests correctly around the original markup slices.
    """
    spans = sorted(provenance, key=lambda span: (span.start, span.end))
    if not spans:
        return html

    length = len(html)
    cursor = 0
    parts: list[str] = []
    for span in spans:
        start = max(0, min(span.start, length))
        end = max(start, min(span.end, length))
        if end <= start or start < cursor:
            continue
        parts.append(html[cursor:start])
        parts.append(f'<mark data-field="{escape_attribute(span.field)}">{html[start:end]}</mark>')
        cursor = end
    parts.append(html[cursor:])
    return "".join(parts)
