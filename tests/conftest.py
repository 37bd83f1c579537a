"""
Pytest configuration for poke.

Provides fixtures for:
- The compiled field rule set
- Settings with test-specific overrides
- Sample slow-log text and a log file factory
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Generator

import pytest

from poke.config import Settings, get_settings
from poke.extraction.rules import RuleSet, compile_rules

SAMPLE_LOG = """\
/usr/sbin/mysqld, Version: 5.7.44-log (MySQL Community Server (GPL)). started with:
Tcp port: 3306  Unix socket: /var/run/mysqld/mysqld.sock
Time                 Id Command    Argument
# Time: 2024-01-01T00:00:10.000000Z
# User@Host: app[app] @ localhost []  Id:    12
# Query_time: 2.000000  Lock_time: 0.000100 Rows_sent: 1  Rows_examined: 1000
use shop;
SET timestamp=1704067210;
SELECT * FROM users WHERE id = 42;
# Time: 2024-01-01T00:01:00.500000Z
# User@Host: app[app] @ localhost []  Id:    13
# Query_time: 0.250000  Lock_time: 0.000000 Rows_sent: 0  Rows_examined: 1  Rows_affected: 1
SET timestamp=1704067260;
UPDATE orders SET status = 'paid' WHERE id = 7;
"""


@pytest.fixture(autouse=True)
def _reset_settings_and_logging() -> Generator[None, None, None]:
    """
    Clear the cached settings and restore root logging after each test.

    CLI invocations configure logging against streams that are closed once the
    invocation returns.
    """
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(scope="session")
def rules() -> RuleSet:
    return compile_rules()


@pytest.fixture
def settings() -> Settings:
    """
    Settings fixture with defaults pinned, independent of the environment.
    """
    return Settings(
        log_level="DEBUG",
        log_json=False,
        input_encoding="utf-8",
        sql_dialect="mysql",
        on_field_error="abort",
        query_separator="",
    )


@pytest.fixture
def sample_log() -> str:
    return SAMPLE_LOG


@pytest.fixture
def write_log(tmp_path: Path) -> Callable[[str], Path]:
    """
    Factory writing slow-log text to a temporary file and returning its path.
    """

    def _write(text: str, name: str = "slow.log") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
