"""
Playlist ingestion core.

Public API:
  - parse_playlist_text(text) -> PlaylistManifest
  - parse_track_line(line) -> ParsedTrack | None
  - extract_playlist_id(value) -> str | None
  - estimate_match_confidence(track) -> MatchEstimate
"""
from lib.playlist.errors import ErrorKind, IngestError
from lib.playlist.links import extract_playlist_id, is_standalone_url, resolve_remote_identifier
from lib.playlist.matcher import MatchEstimate, apply_match_estimate, estimate_match_confidence
from lib.playlist.models import (
    DEFAULT_PLAYLIST_NAME,
    ImageInput,
    ParsedTrack,
    PlaylistManifest,
    Track,
    TrackStatus,
)
from lib.playlist.parser import parse_track_line
from lib.playlist.pipeline import parse_playlist_text

__all__ = [
    "parse_playlist_text",
    "parse_track_line",
    "extract_playlist_id",
    "is_standalone_url",
    "resolve_remote_identifier",
    "estimate_match_confidence",
    "apply_match_estimate",
    "MatchEstimate",
    "ErrorKind",
    "IngestError",
    "DEFAULT_PLAYLIST_NAME",
    "ImageInput",
    "ParsedTrack",
    "PlaylistManifest",
    "Track",
    "TrackStatus",
]
