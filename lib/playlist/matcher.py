"""
Heuristic match-confidence estimate for cross-service verification.

This does NOT query any catalog. It only guesses, from the shape of the
metadata, how likely a search on the target service is to find the track.
Real matches come from ``core.search_spotify_track`` /
``apple_catalog.AppleMusicClient.search_song``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from lib.playlist.disambiguator import contains_title_hint
from lib.playlist.models import Track, TrackStatus


BASE_CONFIDENCE = 0.65
TITLE_LENGTH_BONUS = 0.10   # title has >= 4 chars
ARTIST_LENGTH_BONUS = 0.10  # artist has >= 3 chars
ALBUM_BONUS = 0.05          # album known
TITLE_HINT_PENALTY = 0.05   # remix / live / feat... variants are harder to find
MIN_CONFIDENCE = 0.35
MAX_CONFIDENCE = 0.95
MATCH_THRESHOLD = 0.5


@dataclass(frozen=True)
class MatchEstimate:
    confidence: float
    match_found: bool
    contributions: Dict[str, float] = field(default_factory=dict)


def estimate_match_confidence(track: Track) -> MatchEstimate:
    title = (track.title or "").strip()
    artist = (track.artist or "").strip()
    album = (track.album or "").strip()

    if not title or not artist:
        return MatchEstimate(confidence=0.0, match_found=False)

    contributions: Dict[str, float] = {"base": BASE_CONFIDENCE}
    if len(title) >= 4:
        contributions["title_length"] = TITLE_LENGTH_BONUS
    if len(artist) >= 3:
        contributions["artist_length"] = ARTIST_LENGTH_BONUS
    if album:
        contributions["album"] = ALBUM_BONUS
    if contains_title_hint(f"{title} {artist} {album}"):
        contributions["title_hint"] = -TITLE_HINT_PENALTY

    confidence = sum(contributions.values())
    confidence = round(min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, confidence)), 4)
    return MatchEstimate(
        confidence=confidence,
        match_found=confidence >= MATCH_THRESHOLD,
        contributions=contributions,
    )


def apply_match_estimate(track: Track) -> MatchEstimate:
    """Record the estimate on the track (the only place status/confidence change)."""
    track.status = TrackStatus.MATCHING
    estimate = estimate_match_confidence(track)
    track.confidence = estimate.confidence
    track.status = TrackStatus.MATCHED if estimate.match_found else TrackStatus.FAILED
    return estimate
