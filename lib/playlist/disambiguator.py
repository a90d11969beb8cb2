"""
Title/artist disambiguation for two unlabeled fragments.

"Song - Artist" and "Artist - Song" are both common in pasted lists. Each side
gets a title score and an artist score; the ordered rules in
``resolve_title_artist`` pick the roles. Ties keep the first fragment as title.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple


# Words that usually belong to a song title (substring match, case-insensitive)
TITLE_HINTS: Tuple[str, ...] = (
    "remix",
    "mix",
    "edit",
    "version",
    "live",
    "demo",
    "acoustic",
    "instrumental",
    "remaster",
    "remastered",
    "radio",
    "extended",
    "feat",
    "ft",
    "featuring",
)

# Markers that usually join several performers
ARTIST_SIGNALS: Tuple[str, ...] = ("&", " x ", " vs ", " and ", " with ")

TITLE_HINT_POINTS = 2
BRACKET_POINTS = 1
YEAR_POINTS = 1

_BRACKET = re.compile(r"[()\[\]{]")
_YEAR = re.compile(r"\d{4}")


@dataclass(frozen=True)
class TitleScore:
    hints: Tuple[str, ...]
    has_bracket: bool
    has_year: bool

    @property
    def total(self) -> int:
        return (
            TITLE_HINT_POINTS * len(self.hints)
            + (BRACKET_POINTS if self.has_bracket else 0)
            + (YEAR_POINTS if self.has_year else 0)
        )


@dataclass(frozen=True)
class ArtistScore:
    signals: Tuple[str, ...]

    @property
    def total(self) -> int:
        return len(self.signals)


@dataclass(frozen=True)
class Resolution:
    title: str
    artist: str
    rule: str
    swapped: bool


def score_title(fragment: str) -> TitleScore:
    lower = fragment.lower()
    return TitleScore(
        hints=tuple(hint for hint in TITLE_HINTS if hint in lower),
        has_bracket=bool(_BRACKET.search(fragment)),
        has_year=bool(_YEAR.search(fragment)),
    )


def score_artist(fragment: str) -> ArtistScore:
    lower = fragment.lower()
    return ArtistScore(signals=tuple(s for s in ARTIST_SIGNALS if s in lower))


def contains_title_hint(text: str) -> bool:
    lower = (text or "").lower()
    return any(hint in lower for hint in TITLE_HINTS)


def resolve_title_artist(left: str, right: str) -> Resolution:
    """
    Decide which fragment is the title.

    Rules, first match wins:
    1. left has the higher title score and right is at least as artist-like -> left is title
    2. right has the higher title score and left is at least as artist-like -> right is title
    3. right is more artist-like -> left is title
    4. left is more artist-like -> right is title
    5. tie -> left is title
    """
    left_title = score_title(left).total
    right_title = score_title(right).total
    left_artist = score_artist(left).total
    right_artist = score_artist(right).total

    if left_title > right_title and right_artist >= left_artist:
        return Resolution(title=left, artist=right, rule="left_title_score", swapped=False)
    if right_title > left_title and left_artist >= right_artist:
        return Resolution(title=right, artist=left, rule="right_title_score", swapped=True)
    if right_artist > left_artist:
        return Resolution(title=left, artist=right, rule="right_artist_score", swapped=False)
    if left_artist > right_artist:
        return Resolution(title=right, artist=left, rule="left_artist_score", swapped=True)
    return Resolution(title=left, artist=right, rule="tie", swapped=False)
