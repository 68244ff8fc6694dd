"""Record, provenance and confidence models."""

from .confidence import ConfidenceScores, date_confidence, score_confidence
from .fields import FIELD_DESCRIPTORS, FieldDescriptor, FieldId, get_descriptor
from .provenance import ProvenanceLog, ProvenanceSpan, SignalClass
from .record import (
    DateFragment,
    IndividualRecord,
    Parents,
    Relative,
    RelativeRole,
    Residence,
    Sex,
)

__all__ = [
    "FIELD_DESCRIPTORS",
    "ConfidenceScores",
    "DateFragment",
    "FieldDescriptor",
    "FieldId",
    "IndividualRecord",
    "Parents",
    "ProvenanceLog",
    "ProvenanceSpan",
    "Relative",
    "RelativeRole",
    "Residence",
    "Sex",
    "SignalClass",
    "date_confidence",
    "get_descriptor",
    "score_confidence",
]
