from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Optional, TextIO

import typer

from poke import __version__
from poke.config import get_settings
from poke.domain.errors import InputReadError, PokeError
from poke.pipeline import run_pipeline
from poke.reporter import print_summary
from poke.utils.logging import configure_logging, get_logger

log = get_logger(__name__)

app = typer.Typer(
    help=(
        "poke is summoned for analysing MySQL slow query logs. It reads the time and "
        "query_time fields and adds time_start (time - query_time). "
        "Records are written to stdout as JSON, one per line."
    ),
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"poke {__version__}")
        raise typer.Exit()


def _open_input(path: Optional[Path], encoding: str) -> TextIO:
    # Lines end at "\n" only; a bare "\r" inside a query is data.
    if path is None or str(path) == "-":
        return io.TextIOWrapper(
            typer.get_binary_stream("stdin"), encoding=encoding, errors="replace", newline="\n"
        )
    try:
        return path.open("r", encoding=encoding, errors="replace", newline="\n")
    except OSError as exc:
        raise InputReadError(f"can't open file: {path}: {exc}") from exc


@app.command()
def run(
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        help="Specify file location to read (default: standard input).",
        dir_okay=False,
    ),
    stats: bool = typer.Option(
        False,
        "--stats",
        help="Print a run summary table to stderr when done.",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version.",
    ),
) -> None:
    """
    Convert a MySQL slow query log into JSON records.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        stream = _open_input(file, settings.input_encoding)
        try:
            summary = run_pipeline(stream, sys.stdout, settings)
        finally:
            if file is not None:
                stream.close()
    except PokeError as exc:
        log.debug("Fatal error", exc_info=True)
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)

    if stats:
        print_summary(summary)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
