"""
Split pasted text into candidate track lines.
"""
from __future__ import annotations

import re
from typing import List


_SEMICOLON = re.compile(r"\s*;\s*")
_BULLET = re.compile(r"\s*•\s*")


def _split_clean(value: str, delimiter: re.Pattern) -> List[str]:
    return [part.strip() for part in delimiter.split(value) if part.strip()]


def split_candidate_lines(text: str) -> List[str]:
    """
    Newline-delimited text yields one candidate per non-empty line, in order.

    A paste that collapses into a single line ("A - B; C - D" or "A - B • C - D")
    is re-split on ";" first, then on the bullet character, when that yields
    more than one part.
    """
    normalized = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    lines = [line.strip() for line in normalized.split("\n") if line.strip()]

    if len(lines) == 1:
        single = lines[0]
        for delimiter in (_SEMICOLON, _BULLET):
            parts = _split_clean(single, delimiter)
            if len(parts) > 1:
                return parts

    return lines
