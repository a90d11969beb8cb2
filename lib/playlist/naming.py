"""
Playlist name detection from the first pasted line.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from lib.playlist.models import DEFAULT_PLAYLIST_NAME, ParsedTrack
from lib.playlist.normalizer import normalize_field


_HEADER = re.compile(r"^playlist\s*[:\-]\s*(.+)$", re.IGNORECASE)


@dataclass(frozen=True)
class NameDerivation:
    name: str
    start_index: int  # first line index that belongs to the track list


def derive_playlist_name(
    lines: Sequence[str],
    parsed: Sequence[Optional[ParsedTrack]],
    default: str = DEFAULT_PLAYLIST_NAME,
) -> NameDerivation:
    """
    - "Playlist: <name>" / "Playlist - <name>" header -> <name>, first line skipped
    - an unparseable first line followed by parseable lines -> that line is the name
    - otherwise the default name, nothing skipped
    """
    if not lines:
        return NameDerivation(name=default, start_index=0)

    m = _HEADER.match(lines[0])
    if m:
        return NameDerivation(name=normalize_field(m.group(1)) or default, start_index=1)

    if parsed and parsed[0] is None and any(p is not None for p in parsed[1:]):
        return NameDerivation(name=normalize_field(lines[0]) or default, start_index=1)

    return NameDerivation(name=default, start_index=0)
