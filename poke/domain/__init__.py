"""
Domain package for poke.

Exports the record types, enums and exceptions shared by the extraction
engine, the assembler and the finalizer. Keep this package focused on data
definitions.
"""

from poke.domain.errors import (
    FieldConversionError,
    InputReadError,
    PokeError,
    RecordSerializationError,
)
from poke.domain.models import (
    DropReason,
    FieldKind,
    FieldRule,
    FieldValue,
    Record,
    RunSummary,
    StatementKind,
)

__all__ = [
    "DropReason",
    "FieldConversionError",
    "FieldKind",
    "FieldRule",
    "FieldValue",
    "InputReadError",
    "PokeError",
    "Record",
    "RecordSerializationError",
    "RunSummary",
    "StatementKind",
]
