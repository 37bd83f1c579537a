"""
Record finalizer: validation, derived fields and output canonicalization.

A record is emitted only if it carries both a ``time`` timestamp and a
``query_time`` duration. Records with query text additionally get their
length, keyword type, fingerprint and referenced tables; a query that cannot
be parsed, or that is not a SELECT/INSERT/UPDATE/DELETE, drops the record.

Usage:
    finalizer = RecordFinalizer()
    record, emit = finalizer.finalize(record)
    if emit:
        write_record(canonicalize(record), sys.stdout)
"""

from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, TextIO, Tuple

from sqlglot.errors import SqlglotError

from poke.config import Settings, get_settings
from poke.domain.errors import FieldConversionError, RecordSerializationError
from poke.domain.models import DropReason, Record, StatementKind
from poke.extraction.classifier import classify
from poke.extraction.fingerprint import fingerprint, fingerprint_id
from poke.extraction.rules import format_timestamp
from poke.extraction.tables import parse_statement, statement_kind, table_names, table_source
from poke.utils.logging import get_logger

log = get_logger(__name__)


class RecordFinalizer:
    """
    Decide whether an assembled record is emitted and add its derived fields.

    Counts of emitted and dropped records are kept on the instance for the run
    summary.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._dialect = settings.sql_dialect
        self.finalized = 0
        self.emitted = 0
        self.dropped: Counter[DropReason] = Counter()

    def _drop(self, record: Record, reason: DropReason) -> Tuple[Record, bool]:
        self.dropped[reason] += 1
        return record, False

    def finalize(self, record: Record) -> Tuple[Record, bool]:
        """
        Validate `record` and compute its derived fields in place.

        Returns
        -------
        tuple of (Record, bool)
            The record and whether it should be emitted.

        Raises
        ------
        FieldConversionError
            When ``query_time`` reaches back before the earliest datetime.
        """
        self.finalized += 1

        time_end = record.get("time")
        query_time = record.get("query_time")
        if not isinstance(time_end, datetime) or not isinstance(query_time, timedelta):
            log.debug("Record without time/query_time skipped", extra={"keys": sorted(record)})
            return self._drop(record, DropReason.MISSING_TIME)

        try:
            record["time_start"] = time_end - query_time
        except OverflowError as exc:
            raise FieldConversionError(
                "Query_time", str(query_time.total_seconds()), "time_start out of range"
            ) from exc

        raw_query = record.get("query")
        if isinstance(raw_query, str):
            record["query_length"] = len(raw_query)
            record["query_type"] = classify(raw_query) or ""

            digest = fingerprint(raw_query)
            record["query_digest"] = digest
            record["fingerprintID"] = fingerprint_id(digest)

            try:
                statement = parse_statement(raw_query, dialect=self._dialect)
            except SqlglotError as exc:
                log.warning(
                    f"Dropping record, query does not parse: {exc}",
                    extra={"reason": DropReason.PARSE_ERROR.value, "query": raw_query},
                )
                return self._drop(record, DropReason.PARSE_ERROR)

            kind = statement_kind(statement)
            if kind is StatementKind.OTHER:
                log.warning(
                    f'Dropping record, unsupported statement "{raw_query}"',
                    extra={
                        "reason": DropReason.UNSUPPORTED_STATEMENT.value,
                        "statement": type(statement).__name__,
                    },
                )
                return self._drop(record, DropReason.UNSUPPORTED_STATEMENT)

            record["table"] = table_names(table_source(statement, kind))

        self.emitted += 1
        return record, True


def canonicalize(record: Record) -> Dict[str, Any]:
    """
    Convert typed values to their external form.

    Timestamps become ``YYYY-MM-DDTHH:MM:SS.ffffffZ`` strings and durations
    become float seconds; all other values pass through unchanged.
    """
    output: Dict[str, Any] = {}
    for key, value in record.items():
        if isinstance(value, datetime):
            output[key] = format_timestamp(value)
        elif isinstance(value, timedelta):
            output[key] = value.total_seconds()
        else:
            output[key] = value
    return output


def write_record(payload: Dict[str, Any], out: TextIO) -> None:
    """
    Write one canonical record as a JSON line and flush.

    Raises
    ------
    RecordSerializationError
        When the payload cannot be encoded.
    """
    try:
        line = json.dumps(payload, sort_keys=True, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise RecordSerializationError(f"output marshal error {payload!r}: {exc}") from exc
    out.write(line + "\n")
    out.flush()


__all__ = ["RecordFinalizer", "canonicalize", "write_record"]
