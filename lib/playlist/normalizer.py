"""
Normalization helpers for raw string fragments.
"""
from __future__ import annotations

import re


_EDGE_NOISE = re.compile(r"^[\s\"'`]+|[\s\"'`]+$")
_WHITESPACE = re.compile(r"\s+")
_SEARCH_BRACKETS = re.compile(r"[()\[\]]")


def normalize_field(value: str) -> str:
    """
    Clean one fragment of pasted text:
    - strip leading/trailing quote characters (" ' `) and the whitespace around them
    - collapse interior whitespace runs to a single space
    - trim

    Total and idempotent: normalize_field(normalize_field(x)) == normalize_field(x).
    """
    s = _EDGE_NOISE.sub("", value or "")
    return _WHITESPACE.sub(" ", s)


def build_search_term(title: str, artist: str) -> str:
    """Catalog search term "<title> <artist>" with bracket characters removed."""
    term = f"{title or ''} {artist or ''}"
    term = _SEARCH_BRACKETS.sub("", term)
    return _WHITESPACE.sub(" ", term).strip()
