"""
Statement dispatch and table-name resolution over sqlglot trees.

`statement_kind` maps a parsed statement to a `StatementKind`, and
`table_source` selects the table-expression subtree that holds its table
references. `resolve_tables` then walks that subtree:

- lists recurse into every element;
- ``exp.Table`` contributes its qualified name and stops (joins attached to
  the table are still walked);
- aliases, comparison predicates, WHERE clauses and SELECT projection lists
  are not entered, so column and alias names never leak in;
- any other node is walked generically through its child expressions.

This is the only module that inspects sqlglot expression classes.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set, Union

import sqlglot
from sqlglot import exp
from sqlglot.errors import ErrorLevel

from poke.domain.models import StatementKind

TableSource = Union[exp.Expression, List[exp.Expression]]

_STOP_NODES = (exp.Alias, exp.TableAlias, exp.Predicate, exp.Where)

# Arguments of a node that hold projections rather than table expressions.
_SKIPPED_ARGS = {
    exp.Select: frozenset({"expressions", "where"}),
}

# Commands sqlglot does not model, mapped to the statement they mirror.
_COMMAND_REWRITES = {"REPLACE": "INSERT"}


def parse_statement(sql: str, dialect: str = "mysql") -> exp.Expression:
    """
    Parse a single statement.

    MySQL's REPLACE, which sqlglot keeps as an opaque `exp.Command`, is
    re-parsed as the INSERT it mirrors so that it resolves its target table.

    Raises
    ------
    sqlglot.errors.SqlglotError
        When the text is not valid SQL for `dialect`.
    """
    statement = sqlglot.parse_one(sql, read=dialect, error_level=ErrorLevel.RAISE)
    if isinstance(statement, exp.Command):
        keyword = str(statement.this or "").upper()
        if keyword in _COMMAND_REWRITES:
            rest = statement.expression
            if isinstance(rest, exp.Expression):
                rest = rest.name
            rewritten = f"{_COMMAND_REWRITES[keyword]} {rest or ''}"
            return sqlglot.parse_one(rewritten, read=dialect, error_level=ErrorLevel.RAISE)
    return statement


def statement_kind(statement: exp.Expression) -> StatementKind:
    if isinstance(statement, exp.Select):
        return StatementKind.SELECT
    if isinstance(statement, exp.Insert):
        return StatementKind.INSERT
    if isinstance(statement, exp.Update):
        return StatementKind.UPDATE
    if isinstance(statement, exp.Delete):
        return StatementKind.DELETE
    return StatementKind.OTHER


def _joins(node: exp.Expression) -> List[exp.Expression]:
    return list(node.args.get("joins") or [])


def _from_clause(node: exp.Expression) -> Optional[exp.From]:
    for value in node.args.values():
        if isinstance(value, exp.From):
            return value
    return None


def table_source(statement: exp.Expression, kind: StatementKind) -> Optional[TableSource]:
    """
    Select the table-expression subtree of `statement`.

    SELECT uses its FROM source and joins, INSERT its target table, UPDATE its
    target plus any FROM and joins, DELETE its target(s) plus USING. Returns
    None for `StatementKind.OTHER`.
    """
    if kind is StatementKind.SELECT:
        sources: List[exp.Expression] = []
        from_ = _from_clause(statement)
        if from_ is not None:
            sources.append(from_)
        return sources + _joins(statement)

    if kind is StatementKind.INSERT:
        target = statement.this
        if isinstance(target, exp.Schema):
            target = target.this
        return target

    if kind is StatementKind.UPDATE:
        sources = [statement.this]
        from_ = _from_clause(statement)
        if from_ is not None:
            sources.append(from_)
        return sources + _joins(statement)

    if kind is StatementKind.DELETE:
        sources = list(statement.args.get("tables") or [])
        if statement.this is not None:
            sources.append(statement.this)
        return sources + list(statement.args.get("using") or [])

    return None


def table_identifier(table: exp.Table) -> str:
    """Canonical ``catalog.db.name`` text of a table reference, empty parts omitted."""
    parts = (table.catalog, table.db, table.name)
    return ".".join(part for part in parts if part)


def _walk(node: Union[exp.Expression, Iterable, None], names: Set[str]) -> None:
    if node is None:
        return

    if isinstance(node, (list, tuple)):
        for item in node:
            _walk(item, names)
        return

    if not isinstance(node, exp.Expression):
        return

    if isinstance(node, _STOP_NODES):
        return

    if isinstance(node, exp.Table):
        name = table_identifier(node)
        if name:
            names.add(name)
        _walk(_joins(node), names)
        return

    skipped = _SKIPPED_ARGS.get(type(node), frozenset())
    for key, value in node.args.items():
        if key in skipped:
            continue
        _walk(value, names)


def resolve_tables(source: Optional[TableSource]) -> List[str]:
    """Return the sorted, deduplicated table names referenced under `source`."""
    names: Set[str] = set()
    _walk(source, names)
    return sorted(names)


def table_names(source: Optional[TableSource]) -> str:
    """Comma-joined form of `resolve_tables`, as stored in a record's `table` field."""
    return ",".join(resolve_tables(source))


__all__ = [
    "TableSource",
    "parse_statement",
    "resolve_tables",
    "statement_kind",
    "table_identifier",
    "table_names",
    "table_source",
]
