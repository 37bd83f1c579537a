"""
poke - MySQL slow query log to JSON records.

This package turns a slow query log stream into one typed record per logged
query, including:

- Metadata fields (Query_time, Lock_time, Rows_sent, QC_Hit...) converted to
  timestamps, durations, integers and booleans
- Derived fields: time_start, query_length, query_type, query_digest,
  fingerprintID and the referenced tables
- Newline-delimited JSON output suitable for log shippers and analytics
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from poke.assembler import RecordAssembler
from poke.config import Settings, get_settings
from poke.domain import (
    FieldConversionError,
    PokeError,
    Record,
    RunSummary,
)
from poke.extraction import classify, compile_rules, fingerprint, fingerprint_id, table_names
from poke.finalizer import RecordFinalizer, canonicalize, write_record
from poke.pipeline import run_pipeline
from poke.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Pipeline
    "RecordAssembler",
    "RecordFinalizer",
    "canonicalize",
    "run_pipeline",
    "write_record",
    # Extraction
    "classify",
    "compile_rules",
    "fingerprint",
    "fingerprint_id",
    "table_names",
    # Domain
    "FieldConversionError",
    "PokeError",
    "Record",
    "RunSummary",
    # Logging
    "configure_logging",
    "get_logger",
]
