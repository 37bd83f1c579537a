from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from poke.domain.models import DropReason, RunSummary


def _format_bytes(value: Optional[int]) -> str:
    if not value:
        return "N/A"
    return f"{value / (1024 * 1024):.2f} MB"


def build_summary_table(summary: RunSummary) -> Table:
    """
    Build a rich table describing a pipeline run.

    Drop reasons are always listed, with zero counts included, so runs can be
    compared at a glance.
    """
    table = Table(
        title="poke run summary",
        box=box.ROUNDED,
        show_header=True,
    )
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="magenta")

    table.add_row("Lines read", f"{summary.lines_read:,}")
    table.add_row("Records finalized", f"{summary.records_finalized:,}")
    table.add_row("Records emitted", f"{summary.records_emitted:,}", style="bold green")
    for reason in DropReason:
        count = summary.dropped.get(reason.value, 0)
        table.add_row(f"Dropped ({reason.value})", f"{count:,}", style="yellow" if count else None)

    duration = summary.duration_seconds
    table.add_row("Duration (s)", f"{duration:.3f}")
    rate = summary.lines_read / duration if duration > 0 else 0.0
    table.add_row("Throughput (lines/s)", f"{rate:,.2f}")
    table.add_row("Peak memory", _format_bytes(summary.peak_rss_bytes))
    cpu = summary.cpu_percent
    table.add_row("CPU %", f"{cpu:.1f}" if cpu is not None else "N/A")
    return table


def print_summary(summary: RunSummary, console: Optional[Console] = None) -> None:
    """
    Render the run summary, on stderr unless a console is given.
    """
    console = console or Console(stderr=True)
    console.print(build_summary_table(summary))


__all__ = ["build_summary_table", "print_summary"]
