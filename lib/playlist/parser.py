"""
Track-line parser: one candidate line -> ParsedTrack or None.

Delimiter strategies are tried in order and the first one that applies wins:
"X by Y", tabs, spaced dash (- – —), pipe, then exactly one comma.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional

from lib.playlist.disambiguator import resolve_title_artist
from lib.playlist.models import ParsedTrack
from lib.playlist.normalizer import normalize_field

logger = logging.getLogger(__name__)


_NUMBER_PREFIX = re.compile(r"^\s*\d+[.)\-:]\s*")
_BULLET_PREFIX = re.compile(r"^\s*[•\-*+]+\s*")
_BY = re.compile(r"^(.*?)\s+by\s+(.+)$", re.IGNORECASE)
_TABS = re.compile(r"\t+")
_DASH = re.compile(r"\s[-–—]\s")
_PIPE = re.compile(r"\s*\|\s*")
_COMMA = re.compile(r"\s*,\s*")


def strip_line_prefix(line: str) -> str:
    """Drop list numbering ("1.", "02)", "3-") and bullet markers."""
    cleaned = _NUMBER_PREFIX.sub("", line.strip(), count=1)
    cleaned = _BULLET_PREFIX.sub("", cleaned, count=1)
    return cleaned.strip()


def split_parts(value: str, delimiter: re.Pattern) -> List[str]:
    parts = (normalize_field(p) for p in delimiter.split(value))
    return [p for p in parts if p]


def build_from_parts(parts: List[str]) -> Optional[ParsedTrack]:
    if len(parts) < 2:
        return None

    first, second, *rest = parts
    resolved = resolve_title_artist(first, second)
    album = normalize_field(" - ".join(rest)) if rest else ""
    title = normalize_field(resolved.title)
    artist = normalize_field(resolved.artist)
    if not title or not artist:
        return None
    return ParsedTrack(title=title, artist=artist, album=album)


def parse_track_line(line: str) -> Optional[ParsedTrack]:
    """Return the best (title, artist, album) guess for a line, or None when it has no usable delimiter."""
    cleaned = strip_line_prefix(line)
    if not cleaned:
        return None

    m = _BY.match(cleaned)
    if m:
        title = normalize_field(m.group(1))
        artist = normalize_field(m.group(2))
        if not title or not artist:
            return None
        return ParsedTrack(title=title, artist=artist, album="")

    # Tab-separated rows (spreadsheet copy) never fall through to other delimiters
    if "\t" in cleaned:
        return build_from_parts(split_parts(cleaned, _TABS))

    for delimiter in (_DASH, _PIPE):
        parts = split_parts(cleaned, delimiter)
        if len(parts) >= 2:
            return build_from_parts(parts)

    parts = split_parts(cleaned, _COMMA)
    if len(parts) == 2:
        return build_from_parts(parts)

    logger.debug(f"[parser] no delimiter in line={cleaned!r}")
    return None
