"""
Extraction package for poke.

Re-exports the field rule engine, the statement classifier, the fingerprint
helpers and the table-name resolver so callers can import from
`poke.extraction` directly.
"""

from poke.extraction.classifier import OPERATIONS, classify
from poke.extraction.fingerprint import fingerprint, fingerprint_id
from poke.extraction.rules import (
    RULE_CATALOG,
    RuleSet,
    compile_rules,
    convert,
    extract,
    format_timestamp,
    match,
)
from poke.extraction.tables import (
    parse_statement,
    resolve_tables,
    statement_kind,
    table_names,
    table_source,
)

__all__ = [
    # Rules
    "RULE_CATALOG",
    "RuleSet",
    "compile_rules",
    "convert",
    "extract",
    "format_timestamp",
    "match",
    # Classification
    "OPERATIONS",
    "classify",
    # Fingerprints
    "fingerprint",
    "fingerprint_id",
    # Tables
    "parse_statement",
    "resolve_tables",
    "statement_kind",
    "table_names",
    "table_source",
]
