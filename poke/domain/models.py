"""
Domain models for poke.

A slow-log entry is assembled into a `Record`: a plain dict keyed by lowercase
field name whose values are one of the `FieldValue` types. Metadata fields are
described by `FieldRule`s, and parsed statements are dispatched on
`StatementKind`.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, Field

FieldValue = Union[datetime, timedelta, bool, int, str]
Record = Dict[str, FieldValue]


class FieldKind(str, Enum):
    """Type category of a metadata field; selects capture shape and conversion."""

    DATETIME = "datetime"
    STRING = "string"
    TIME = "time"
    INT = "int"
    BOOL = "bool"


class StatementKind(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    OTHER = "other"


class DropReason(str, Enum):
    """Why a finalized record was not emitted."""

    MISSING_TIME = "missing_time"
    PARSE_ERROR = "parse_error"
    UNSUPPORTED_STATEMENT = "unsupported_statement"


class FieldRule(BaseModel):
    """
    A compiled metadata field rule.

    `name` is the field name as it appears in the log (e.g. ``Query_time``);
    matches are stored under `key`, its lowercase form.
    """

    name: str = Field(..., description="Field name as written in the log.")
    kind: FieldKind = Field(..., description="Type category of the captured value.")
    pattern: re.Pattern = Field(..., description="Line pattern with one capture group.")

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    @property
    def key(self) -> str:
        return self.name.lower()


class RunSummary(BaseModel):
    """
    Counters and profile of a single pipeline run.
    """

    lines_read: int = Field(0, description="Logical input lines consumed.")
    records_finalized: int = Field(0, description="Records handed to the finalizer.")
    records_emitted: int = Field(0, description="Records written to the output.")
    dropped: Dict[str, int] = Field(default_factory=dict, description="Drops per reason.")
    duration_seconds: float = Field(0.0, description="Wall-clock duration of the run.")
    peak_rss_bytes: Optional[int] = Field(None, description="Peak resident memory.")
    cpu_percent: Optional[float] = Field(None, description="CPU usage over the run.")

    model_config = {
        "frozen": True,
    }

    @property
    def records_dropped(self) -> int:
        return sum(self.dropped.values())


__all__ = [
    "DropReason",
    "FieldKind",
    "FieldRule",
    "FieldValue",
    "Record",
    "RunSummary",
    "StatementKind",
]
