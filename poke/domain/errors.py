"""
Exceptions raised by poke.

Everything deriving from `PokeError` is fatal for the run: the CLI reports the
message and exits non-zero. Per-record problems (missing time fields, parse
failures, unsupported statements) are not exceptions; the finalizer drops the
record and the stream continues.
"""

from __future__ import annotations


class PokeError(Exception):
    """Base class for fatal poke errors."""


class FieldConversionError(PokeError, ValueError):
    """A metadata field matched its rule but the captured token could not be converted."""

    def __init__(self, field: str, raw: str, reason: str) -> None:
        self.field = field
        self.raw = raw
        self.reason = reason
        super().__init__(f"unable to parse {field}: {raw}: {reason}")


class RecordSerializationError(PokeError):
    """A finalized record could not be encoded as JSON."""


class InputReadError(PokeError):
    """The input stream could not be opened, read or decoded."""


__all__ = [
    "FieldConversionError",
    "InputReadError",
    "PokeError",
    "RecordSerializationError",
]
