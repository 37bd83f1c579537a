"""
Synthetic MySQL slow query log generator for poke.

Implements deterministic pseudo-random entry generation in the MySQL 5.7
slow-log layout, optionally with the Percona Server extended metadata lines
(Schema, Bytes_sent, QC_Hit, InnoDB_* ...). Useful for smoke tests and for
measuring throughput with `poke --stats`.
"""

from __future__ import annotations

import random
import sys
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, List, TextIO

import typer

app = typer.Typer(help="Generate a synthetic MySQL slow query log.")

SERVER_HEADER = [
    "/usr/sbin/mysqld, Version: 5.7.44-log (MySQL Community Server (GPL)). started with:",
    "Tcp port: 3306  Unix socket: /var/run/mysqld/mysqld.sock",
    "Time                 Id Command    Argument",
]

TABLES = ["users", "orders", "order_items", "products", "sessions", "payments"]
SCHEMAS = ["shop", "billing", "analytics"]
START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _yes_no(rng: random.Random) -> str:
    return rng.choice(["Yes", "No"])


def _statement(rng: random.Random) -> str:
    table = rng.choice(TABLES)
    other = rng.choice([t for t in TABLES if t != table])
    key = rng.randint(1, 1_000_000)
    kind = rng.choice(["select", "select", "join", "insert", "update", "delete"])
    if kind == "select":
        return f"SELECT * FROM {table} WHERE id = {key};"
    if kind == "join":
        return (
            f"SELECT a.id, b.id FROM {table} a JOIN {other} b ON a.id = b.{table}_id "
            f"WHERE a.id > {key} LIMIT 10;"
        )
    if kind == "insert":
        return f"INSERT INTO {table} (id, payload) VALUES ({key}, 'p{key}');"
    if kind == "update":
        return f"UPDATE {table} SET updated = NOW() WHERE id = {key};"
    return f"DELETE FROM {table} WHERE id = {key};"


def _entry_lines(rng: random.Random, ts: datetime, extended: bool) -> List[str]:
    query_time = rng.uniform(0.5, 30.0)
    lock_time = rng.uniform(0.0, 0.01)
    rows_sent = rng.randint(0, 500)
    rows_examined = rows_sent + rng.randint(0, 100_000)
    conn_id = rng.randint(1, 5_000)

    lines = [
        f"# Time: {ts.strftime('%Y-%m-%dT%H:%M:%S.%fZ')}",
        f"# User@Host: app[app] @ localhost []  Id: {conn_id:>6}",
    ]
    if extended:
        lines.append(f"# Schema: {rng.choice(SCHEMAS)}  Last_errno: 0  Killed: 0")
    lines.append(
        f"# Query_time: {query_time:.6f}  Lock_time: {lock_time:.6f} "
        f"Rows_sent: {rows_sent}  Rows_examined: {rows_examined}  Rows_affected: 0"
    )
    if extended:
        lines.append(
            f"# Bytes_sent: {rng.randint(50, 100_000)}  Tmp_tables: {rng.randint(0, 2)}  "
            f"Tmp_disk_tables: 0  Tmp_table_sizes: 0"
        )
        lines.append(
            f"# QC_Hit: {_yes_no(rng)}  Full_scan: {_yes_no(rng)}  Full_join: {_yes_no(rng)}  "
            f"Tmp_table: No  Tmp_table_on_disk: No"
        )
        lines.append(f"# Filesort: {_yes_no(rng)}  Filesort_on_disk: No  Merge_passes: 0")
        lines.append(
            f"#   InnoDB_IO_r_ops: {rng.randint(0, 100)}  "
            f"InnoDB_IO_r_bytes: {rng.randint(0, 1_000_000)}  "
            f"InnoDB_IO_r_wait: {rng.uniform(0, 1):.6f}"
        )
        lines.append(
            f"#   InnoDB_rec_lock_wait: 0.000000  InnoDB_queue_wait: 0.000000"
        )
        lines.append(f"#   InnoDB_pages_distinct: {rng.randint(1, 500)}")
    if rng.random() < 0.3:
        lines.append(f"use {rng.choice(SCHEMAS)};")
    lines.append(f"SET timestamp={int(ts.timestamp())};")
    lines.append(_statement(rng))
    return lines


def generate_lines(entries: int, seed: int, extended: bool = False) -> Iterator[str]:
    """Yield the lines of a slow log with `entries` query entries."""
    rng = random.Random(seed)
    yield from SERVER_HEADER
    ts = START
    for _ in range(entries):
        ts += timedelta(seconds=rng.randint(1, 120), microseconds=rng.randint(0, 999_999))
        yield from _entry_lines(rng, ts, extended)


def write_slowlog(out: TextIO, entries: int, seed: int, extended: bool = False) -> int:
    written = 0
    for line in generate_lines(entries, seed, extended):
        out.write(line + "\n")
        written += 1
    return written


@app.command()
def main(
    entries: int = typer.Option(
        1_000,
        "--entries",
        "-n",
        help="Number of query entries to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    extended: bool = typer.Option(
        False,
        "--extended",
        help="Include Percona Server extended metadata lines.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path (if omitted, the log is written to stdout).",
    ),
) -> None:
    """
    Generate a synthetic slow query log.
    """
    start = time.perf_counter()
    if output is None:
        write_slowlog(sys.stdout, entries, seed, extended)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        lines = write_slowlog(f, entries, seed, extended)
    duration = time.perf_counter() - start
    typer.echo(f"Wrote {entries:,} entries ({lines:,} lines) -> {output} in {duration:.2f}s")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
