"""
Utilities package for poke.

Exports shared helpers for logging and profiling. Keep this package
lightweight and free of slow-log specific logic.
"""

from poke.utils.logging import configure_logging, get_logger
from poke.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
