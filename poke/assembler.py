"""
Record assembler: segments a slow-log line stream into per-query records.

A ``# Time: `` line opens a new entry. Before it is processed, the record
collected so far (if any) is handed to the finalize callback and replaced by a
fresh one. Non-comment lines are kept only when they look like SQL and are
appended to the record's ``query`` text; every kept line is also run through
the field rules.
"""

from __future__ import annotations

from typing import Callable, Optional

from poke.config import Settings, get_settings
from poke.domain.models import Record
from poke.extraction.classifier import classify
from poke.extraction.rules import RuleSet, extract
from poke.utils.logging import get_logger

log = get_logger(__name__)

BOUNDARY_MARKER = "# Time: "
COMMENT_MARKER = "#"
METADATA_MARKER = "# "

FinalizeCallback = Callable[[Record], None]


class RecordAssembler:
    """
    Line-oriented state machine owning the current record.

    Parameters
    ----------
    rules : RuleSet
        Compiled field rules, applied to every kept line.
    on_record : callable
        Receives each completed record exactly once. Ownership passes to the
        callback; the assembler never touches a record after handing it over.
    settings : Settings, optional
        Supplies the query continuation separator and the field error policy.
    """

    def __init__(
        self,
        rules: RuleSet,
        on_record: FinalizeCallback,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._rules = rules
        self._on_record = on_record
        self._separator = settings.query_separator
        self._strict = settings.on_field_error == "abort"
        self._record: Record = {}
        self._closed = False
        self.lines_read = 0
        self.records_flushed = 0

    @property
    def current(self) -> Record:
        return self._record

    def _flush(self) -> None:
        record, self._record = self._record, {}
        self.records_flushed += 1
        self._on_record(record)

    def feed(self, line: str) -> None:
        """
        Process one logical input line.

        Raises
        ------
        FieldConversionError
            When a metadata field is malformed and the policy is ``abort``.
        """
        if self._closed:
            raise RuntimeError("assembler is closed")

        line = line.rstrip("\r\n")
        self.lines_read += 1

        if line.startswith(BOUNDARY_MARKER) and self._record:
            self._flush()

        if not line.startswith(COMMENT_MARKER) and classify(line) is None:
            return

        self._merge(line)

    def _merge(self, line: str) -> None:
        record = self._record
        if not line.startswith(METADATA_MARKER):
            if "query" in record:
                record["query"] = f"{record['query']}{self._separator}{line}"
            else:
                record["query"] = line

        extract(line, record, self._rules, strict=self._strict)

    def close(self) -> None:
        """Flush the in-progress record at end of input. Idempotent."""
        if self._closed:
            return
        self._closed = True
        log.debug("End of input", extra={"lines": self.lines_read})
        self._flush()


__all__ = ["BOUNDARY_MARKER", "RecordAssembler"]
