"""
Statement keyword classification.

Used to decide whether a non-comment log line is SQL worth keeping, and to
label a finished query with its `query_type`.
"""

from __future__ import annotations

from typing import Optional, Tuple

OPERATIONS: Tuple[str, ...] = (
    "SELECT",
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "REPLACE",
)


def classify(text: str, operations: Tuple[str, ...] = OPERATIONS) -> Optional[str]:
    """
    Return the keyword occurring leftmost in `text`, or None.

    Matching is a plain case-sensitive substring search. When two keywords
    start at the same index the one listed first in `operations` wins.
    """
    best: Optional[str] = None
    best_index = -1
    for operation in operations:
        index = text.find(operation)
        if index < 0:
            continue
        if best is None or index < best_index:
            best = operation
            best_index = index
    return best


__all__ = ["OPERATIONS", "classify"]
