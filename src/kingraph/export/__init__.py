"""Export formats for stored individuals.

- GEDCOM 5.5.1: standard genealogy interchange format
"""
from __future__ import annotations

from .gedcom import GedcomFamily, build_gedcom, export_gedcom, format_gedcom_date, record_to_gedcom

__all__ = [
    "GedcomFamily",
    "build_gedcom",
    "export_gedcom",
    "format_gedcom_date",
    "record_to_gedcom",
]
