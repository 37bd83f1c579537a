"""
Pipeline wiring: input lines -> assembler -> finalizer -> NDJSON output.

Usage (example from CLI):
    from poke.pipeline import run_pipeline

    with open("slow.log", encoding="utf-8") as stream:
        summary = run_pipeline(stream, sys.stdout)
    print(summary.records_emitted)

Each completed record is finalized and written before the next input line is
read; nothing is buffered across records.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, TextIO

from poke.assembler import RecordAssembler
from poke.config import Settings, get_settings
from poke.domain.errors import InputReadError
from poke.domain.models import Record, RunSummary
from poke.extraction.rules import RuleSet, compile_rules
from poke.finalizer import RecordFinalizer, canonicalize, write_record
from poke.utils.logging import get_logger
from poke.utils.profiler import profile_block

log = get_logger(__name__)


def _read_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield input lines, turning read and decode failures into InputReadError."""
    try:
        for line in lines:
            yield line
    except (OSError, UnicodeDecodeError) as exc:
        raise InputReadError(f"can't read input data: {exc}") from exc


def run_pipeline(
    lines: Iterable[str],
    out: TextIO,
    settings: Optional[Settings] = None,
    rules: Optional[RuleSet] = None,
) -> RunSummary:
    """
    Convert slow-log lines to JSON records written to `out`.

    Parameters
    ----------
    lines : iterable[str]
        Logical input lines, with or without trailing newlines.
    out : TextIO
        Destination for one JSON object per emitted record.
    settings : Settings | None
        Effective configuration. Defaults to `get_settings()`.
    rules : RuleSet | None
        Compiled field rules. Defaults to the full slow-log catalog.

    Returns
    -------
    RunSummary
        Line and record counters plus the run's profile.

    Raises
    ------
    PokeError
        On fatal errors: unreadable input, malformed metadata fields (under the
        ``abort`` policy) or unserializable records.
    """
    settings = settings or get_settings()
    if rules is None:
        rules = compile_rules()
    finalizer = RecordFinalizer(settings)

    def _emit(record: Record) -> None:
        record, emit = finalizer.finalize(record)
        if emit:
            write_record(canonicalize(record), out)

    assembler = RecordAssembler(rules, _emit, settings)

    log.info("[PIPELINE START]", extra={"rules": len(rules), "dialect": settings.sql_dialect})
    with profile_block("slowlog") as stats:
        for line in _read_lines(lines):
            assembler.feed(line)
        assembler.close()

    summary = RunSummary(
        lines_read=assembler.lines_read,
        records_finalized=finalizer.finalized,
        records_emitted=finalizer.emitted,
        dropped={reason.value: count for reason, count in finalizer.dropped.items()},
        duration_seconds=stats.duration_seconds,
        peak_rss_bytes=stats.peak_rss_bytes,
        cpu_percent=stats.cpu_percent,
    )
    log.info(
        "[PIPELINE COMPLETE]",
        extra={
            "lines": summary.lines_read,
            "emitted": summary.records_emitted,
            "dropped": summary.records_dropped,
            "duration": round(summary.duration_seconds, 3),
        },
    )
    return summary


__all__ = ["run_pipeline"]
