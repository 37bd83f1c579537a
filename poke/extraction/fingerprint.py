"""
Query fingerprinting.

A fingerprint is the query with comments removed, literals replaced by ``?``,
value and IN lists collapsed, whitespace squeezed and everything lowercased,
so that queries differing only in their parameters group together. The
fingerprint ID is the upper-case tail of its MD5 digest, matching the IDs
produced by pt-query-digest.
"""

from __future__ import annotations

import hashlib
import re

_re_versioned_hint = re.compile(r"/\*![0-9]{5}.*?\*/", flags=re.DOTALL)
_re_block_comment = re.compile(r"/\*.*?\*/", flags=re.DOTALL)
_re_line_comment = re.compile(r"(?:--|#)[^\n]*$", flags=re.MULTILINE)
_re_string = re.compile(r"'(?:[^'\\]|\\.|'')*'|\"(?:[^\"\\]|\\.|\"\")*\"", flags=re.DOTALL)
_re_hex = re.compile(r"\b0x[0-9a-f]+\b", flags=re.IGNORECASE)
_re_number = re.compile(r"(?<![\w`])[-+]?\d+(?:\.\d+)?(?:e[-+]?\d+)?\b", flags=re.IGNORECASE)
_re_null = re.compile(r"\bnull\b", flags=re.IGNORECASE)
_re_in_list = re.compile(r"\bin\s*\(\s*\?(?:\s*,\s*\?)*\s*\)", flags=re.IGNORECASE)
_re_values = re.compile(
    r"\b(values?)\s*\(\s*\?(?:\s*,\s*\?)*\s*\)(?:\s*,\s*\(\s*\?(?:\s*,\s*\?)*\s*\))*",
    flags=re.IGNORECASE,
)
_re_whitespace = re.compile(r"\s+")
_re_limit = re.compile(r"\blimit \?(?:\s*(?:,|offset)\s*\?)?", flags=re.IGNORECASE)


def fingerprint(query: str) -> str:
    """Return the normalized, literal-redacted form of `query`."""
    s = query.strip()
    s = _re_versioned_hint.sub(" ", s)
    s = _re_block_comment.sub(" ", s)
    s = _re_line_comment.sub(" ", s)

    s = _re_string.sub("?", s)
    s = _re_hex.sub("?", s)
    s = _re_number.sub("?", s)
    s = _re_null.sub("?", s)

    s = _re_whitespace.sub(" ", s).strip()
    s = s.rstrip(";").rstrip()
    s = s.lower()

    s = _re_in_list.sub("in(?+)", s)
    s = _re_values.sub(lambda m: f"{m.group(1)}(?+)", s)
    s = _re_limit.sub("limit ?", s)
    return s


def fingerprint_id(digest: str) -> str:
    """Stable 16 hex-digit identifier for a fingerprint."""
    checksum = hashlib.md5(digest.encode("utf-8")).hexdigest()
    return checksum[16:32].upper()


__all__ = ["fingerprint", "fingerprint_id"]
