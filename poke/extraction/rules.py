"""
Field rule engine: pattern matching and type conversion for slow-log metadata.

Each known metadata field (``Query_time``, ``Rows_sent``, ``QC_Hit``...) has a
rule whose pattern matches a ``# ``-prefixed comment line containing
``<Name>: <value>``. The captured token is converted according to the rule's
`FieldKind` and stored in the record under the lowercase field name.

The catalog is fixed; `compile_rules` turns it into an immutable `RuleSet`
once at startup and the set is passed to the assembler.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional, Sequence, Tuple

from poke.domain.errors import FieldConversionError
from poke.domain.models import FieldKind, FieldRule, FieldValue, Record
from poke.utils.logging import get_logger

log = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

RULE_CATALOG: Tuple[Tuple[str, FieldKind], ...] = (
    ("Time", FieldKind.DATETIME),
    ("Schema", FieldKind.STRING),
    ("Query_time", FieldKind.TIME),
    ("Lock_time", FieldKind.TIME),
    ("Rows_sent", FieldKind.INT),
    ("Rows_examined", FieldKind.INT),
    ("Rows_affected", FieldKind.INT),
    ("Rows_read", FieldKind.INT),
    ("Bytes_sent", FieldKind.INT),
    ("Tmp_tables", FieldKind.INT),
    ("Tmp_disk_tables", FieldKind.INT),
    ("Tmp_table_sizes", FieldKind.INT),
    ("QC_Hit", FieldKind.BOOL),
    ("Full_scan", FieldKind.BOOL),
    ("Full_join", FieldKind.BOOL),
    ("Tmp_table", FieldKind.BOOL),
    ("Tmp_table_on_disk", FieldKind.BOOL),
    ("Filesort", FieldKind.BOOL),
    ("Filesort_on_disk", FieldKind.BOOL),
    ("Merge_passes", FieldKind.INT),
    ("InnoDB_IO_r_ops", FieldKind.INT),
    ("InnoDB_IO_r_bytes", FieldKind.INT),
    ("InnoDB_IO_r_wait", FieldKind.TIME),
    ("InnoDB_rec_lock_wait", FieldKind.TIME),
    ("InnoDB_queue_wait", FieldKind.TIME),
    ("InnoDB_pages_distinct", FieldKind.INT),
)

_CAPTURES = {
    FieldKind.DATETIME: r".*",
    FieldKind.STRING: r"\w+",
    FieldKind.TIME: r"[0-9.]+",
    FieldKind.INT: r"\d+",
    FieldKind.BOOL: r"\w+",
}

_BOOLEANS = {"Yes": True, "No": False}


class RuleSet:
    """Immutable, ordered collection of compiled field rules."""

    __slots__ = ("_rules",)

    def __init__(self, rules: Sequence[FieldRule]) -> None:
        self._rules: Tuple[FieldRule, ...] = tuple(rules)

    def __iter__(self) -> Iterator[FieldRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, name: str) -> Optional[FieldRule]:
        for rule in self._rules:
            if rule.name == name:
                return rule
        return None


def compile_rule(name: str, kind: FieldKind) -> FieldRule:
    """Build the anchored comment-line pattern for a single field."""
    try:
        capture = _CAPTURES[FieldKind(kind)]
    except ValueError:
        raise ValueError(f"unknown rule kind for {name}: {kind!r}") from None
    pattern = re.compile(r"^# .*" + re.escape(name) + r": (" + capture + r")", re.ASCII)
    return FieldRule(name=name, kind=kind, pattern=pattern)


def compile_rules(
    catalog: Sequence[Tuple[str, FieldKind]] = RULE_CATALOG,
) -> RuleSet:
    """
    Compile the field catalog into a RuleSet.

    Parameters
    ----------
    catalog : sequence of (name, kind)
        Field names and their type categories. Defaults to the full slow-log catalog.
    """
    return RuleSet(compile_rule(name, kind) for name, kind in catalog)


def match(line: str, rule: FieldRule) -> Optional[str]:
    """Return the raw capture for `rule` on `line`, or None when it does not match."""
    found = rule.pattern.search(line)
    if found is None:
        return None
    return found.group(1)


def parse_timestamp(raw: str) -> datetime:
    return datetime.strptime(raw, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def convert(raw: str, rule: FieldRule) -> FieldValue:
    """
    Convert a raw capture to the typed value for `rule`.

    Raises
    ------
    FieldConversionError
        When the token is malformed for the rule's kind.
    """
    kind = rule.kind
    try:
        if kind is FieldKind.DATETIME:
            return parse_timestamp(raw)
        if kind is FieldKind.TIME:
            return timedelta(seconds=float(raw))
        if kind is FieldKind.INT:
            value = int(raw)
            if not INT64_MIN <= value <= INT64_MAX:
                raise ValueError("value out of range")
            return value
        if kind is FieldKind.BOOL:
            if raw not in _BOOLEANS:
                raise ValueError("invalid syntax: expected Yes or No")
            return _BOOLEANS[raw]
    except (ValueError, OverflowError) as exc:
        raise FieldConversionError(rule.name, raw, str(exc)) from exc
    return raw


def extract(line: str, record: Record, rules: RuleSet, strict: bool = True) -> None:
    """
    Apply every rule to `line`, storing converted matches in `record`.

    Later matches overwrite earlier values for the same key. In strict mode the
    first conversion failure is raised; otherwise the malformed field is logged
    and left unset.
    """
    for rule in rules:
        raw = match(line, rule)
        if raw is None:
            continue
        try:
            value = convert(raw, rule)
        except FieldConversionError as exc:
            if strict:
                raise
            log.warning(f"Skipping malformed field: {exc}", extra={"field": rule.name, "raw": raw})
            continue
        record[rule.key] = value


__all__ = [
    "RULE_CATALOG",
    "RuleSet",
    "TIMESTAMP_FORMAT",
    "compile_rule",
    "compile_rules",
    "convert",
    "extract",
    "format_timestamp",
    "match",
    "parse_timestamp",
]
