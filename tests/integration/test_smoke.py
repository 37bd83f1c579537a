"""
End-to-end tests for the poke CLI.

These tests drive the Typer app through CliRunner and verify that:
1. Valid slow-log entries come out as one JSON object per line
2. Per-record failures drop only the offending record
3. Fatal errors stop the run with a non-zero exit code
"""

from __future__ import annotations

import io
import json
from typing import List

import pytest
from typer.testing import CliRunner

from poke import __version__
from poke.main import app
from poke.pipeline import run_pipeline
from scripts import generate_slowlog

GENERATED_ENTRIES = 25
MIXED_LOG_RECORDS = 2

TWO_LINE_ENTRY = """\
# Time: 2024-01-01T00:00:10.000000Z
# Query_time: 2.000000  Lock_time: 0.000000
SELECT 1 FROM x
"""

MIXED_LOG = """\
# Time: 2024-01-01T00:00:10.000000Z
# Query_time: 1.000000  Lock_time: 0.000000
SELECT * FROM first_table;
# Time: 2024-01-01T00:00:20.000000Z
# Query_time: 1.000000  Lock_time: 0.000000
SELECT * FROM broken WHERE (a = 1;
# Time: 2024-01-01T00:00:30.000000Z
# Query_time: 1.000000  Lock_time: 0.000000
DROP TABLE dropped_table;
# Time: 2024-01-01T00:00:40.000000Z
# Query_time: 0.500000  Lock_time: 0.000000
DELETE FROM last_table WHERE id = 1;
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _records(output: str) -> List[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestEndToEnd:
    """Valid input produces the documented records."""

    def test_two_line_entry_from_file(self, runner, write_log):
        path = write_log(TWO_LINE_ENTRY)

        result = runner.invoke(app, ["--file", str(path)])

        assert result.exit_code == 0, result.output
        records = _records(result.output)
        assert len(records) == 1
        record = records[0]
        assert record["time"] == "2024-01-01T00:00:10.000000Z"
        assert record["time_start"] == "2024-01-01T00:00:08.000000Z"
        assert record["query_time"] == 2.0
        assert record["lock_time"] == 0.0
        assert record["query"] == "SELECT 1 FROM x"
        assert record["query_type"] == "SELECT"
        assert record["query_length"] == len("SELECT 1 FROM x")
        assert record["table"] == "x"
        assert record["query_digest"] == "select ? from x"
        assert len(record["fingerprintID"]) == 16

    def test_reads_standard_input(self, runner, sample_log):
        result = runner.invoke(app, [], input=sample_log)

        assert result.exit_code == 0, result.output
        records = _records(result.output)
        assert [r["table"] for r in records] == ["users", "orders"]
        assert [r["query_type"] for r in records] == ["SELECT", "UPDATE"]
        assert records[1]["time_start"] == "2024-01-01T00:01:00.250000Z"

    def test_generated_log_round_trips(self, runner, write_log):
        buffer = io.StringIO()
        generate_slowlog.write_slowlog(buffer, GENERATED_ENTRIES, seed=42, extended=True)
        path = write_log(buffer.getvalue())

        result = runner.invoke(app, ["-f", str(path)])

        assert result.exit_code == 0, result.output
        records = _records(result.output)
        assert len(records) == GENERATED_ENTRIES
        for record in records:
            assert record["schema"] in generate_slowlog.SCHEMAS
            assert isinstance(record["qc_hit"], bool)
            assert isinstance(record["rows_examined"], int)
            assert record["table"]
            assert record["time_start"] < record["time"]


class TestPerRecordDrops:
    """Recoverable failures drop one record and the stream continues."""

    def test_bad_records_are_absent_and_later_ones_survive(self, runner, write_log):
        path = write_log(MIXED_LOG)

        result = runner.invoke(app, ["--file", str(path)])

        assert result.exit_code == 0, result.output
        records = _records(result.output)
        assert len(records) == MIXED_LOG_RECORDS
        assert [r["table"] for r in records] == ["first_table", "last_table"]
        assert "does not parse" in result.output
        assert "unsupported statement" in result.output

    def test_record_without_time_is_silently_absent(self, runner, write_log):
        path = write_log(
            "# Query_time: 1.000000  Lock_time: 0.000000\nSELECT * FROM no_time;\n"
        )

        result = runner.invoke(app, ["--file", str(path)])

        assert result.exit_code == 0
        assert result.output.strip() == ""

    def test_pipeline_summary_counts_drops(self):
        out = io.StringIO()

        summary = run_pipeline(MIXED_LOG.splitlines(), out)

        assert summary.records_emitted == MIXED_LOG_RECORDS
        assert summary.records_finalized == MIXED_LOG.count("# Time: ")
        assert summary.dropped == {"parse_error": 1, "unsupported_statement": 1}
        assert len(out.getvalue().splitlines()) == MIXED_LOG_RECORDS


class TestFatalErrors:
    """Fatal errors abort the whole run."""

    def test_malformed_bool_aborts(self, runner, write_log):
        path = write_log(
            TWO_LINE_ENTRY + "# Time: 2024-01-01T00:00:20.000000Z\n# QC_Hit: Maybe\n"
        )

        result = runner.invoke(app, ["--file", str(path)])

        assert result.exit_code == 1
        assert "error: unable to parse QC_Hit: Maybe" in result.output
        # Records completed before the failure were already written.
        assert len(_records(result.output)) == 1

    def test_malformed_field_can_be_skipped(self, runner, write_log, monkeypatch):
        monkeypatch.setenv("POKE_ON_FIELD_ERROR", "skip")
        path = write_log(TWO_LINE_ENTRY.replace("Lock_time: 0.000000", "Lock_time: 1.2.3"))

        result = runner.invoke(app, ["--file", str(path)])

        assert result.exit_code == 0, result.output
        records = _records(result.output)
        assert len(records) == 1
        assert "lock_time" not in records[0]

    def test_out_of_range_time_start_aborts(self, runner, write_log):
        path = write_log(TWO_LINE_ENTRY.replace("Query_time: 2.000000", "Query_time: 99999999999"))

        result = runner.invoke(app, ["--file", str(path)])

        assert result.exit_code == 1
        assert "error: unable to parse Query_time" in result.output
        assert _records(result.output) == []

    def test_missing_file_aborts(self, runner, tmp_path):
        result = runner.invoke(app, ["--file", str(tmp_path / "absent.log")])

        assert result.exit_code == 1
        assert "can't open file" in result.output


class TestCliSurface:
    def test_version(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner):
        result = runner.invoke(app, ["-h"])
        assert result.exit_code == 0
        assert "--file" in result.output

    def test_stats_table(self, runner, write_log):
        path = write_log(TWO_LINE_ENTRY)

        result = runner.invoke(app, ["--file", str(path), "--stats"])

        assert result.exit_code == 0, result.output
        assert "poke run summary" in result.output
        assert len(_records(result.output)) == 1

CR_QUERY = "SELECT 'a\rSELECT b' FROM x"
CR_LOG = (
    "# Time: 2024-01-01T00:00:10.000000Z\n"
    "# Query_time: 1.000000  Lock_time: 0.000000\n"
    f"{CR_QUERY}\n"
).encode("utf-8")


class TestLineDelimiting:
    """Only a newline ends a line; a bare carriage return is query text."""

    def test_carriage_return_inside_query_from_file(self, runner, tmp_path):
        path = tmp_path / "cr.log"
        path.write_bytes(CR_LOG)

        result = runner.invoke(app, ["--file", str(path)])

        assert result.exit_code == 0, result.output
        records = _records(result.output)
        assert len(records) == 1
        assert records[0]["query"] == CR_QUERY
        assert records[0]["query_length"] == len(CR_QUERY)

    def test_carriage_return_inside_query_from_stdin(self, runner):
        result = runner.invoke(app, [], input=CR_LOG)

        assert result.exit_code == 0, result.output
        assert [r["query"] for r in _records(result.output)] == [CR_QUERY]

    def test_crlf_line_endings_are_stripped(self, runner, tmp_path):
        path = tmp_path / "crlf.log"
        path.write_bytes(TWO_LINE_ENTRY.replace("\n", "\r\n").encode("utf-8"))

        result = runner.invoke(app, ["--file", str(path)])

        assert result.exit_code == 0, result.output
        assert [r["query"] for r in _records(result.output)] == ["SELECT 1 FROM x"]


class TestReplaceStatements:
    def test_replace_is_emitted_without_parser_warnings(self, runner, write_log):
        path = write_log(TWO_LINE_ENTRY.replace("SELECT 1 FROM x", "REPLACE INTO t (a) VALUES (1)"))

        result = runner.invoke(app, ["--file", str(path)])

        assert result.exit_code == 0, result.output
        records = _records(result.output)
        assert [(r["query_type"], r["table"]) for r in records] == [("REPLACE", "t")]
        assert "WARNING" not in result.output
