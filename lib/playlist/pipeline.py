"""
Local (no network) ingestion: pasted text -> PlaylistManifest.
"""
from __future__ import annotations

import logging

from lib.playlist.errors import ErrorKind, IngestError
from lib.playlist.models import PlaylistManifest, number_tracks
from lib.playlist.naming import derive_playlist_name
from lib.playlist.parser import parse_track_line
from lib.playlist.segmenter import split_candidate_lines

logger = logging.getLogger(__name__)


def parse_playlist_text(text: str) -> PlaylistManifest:
    """
    Segment, parse each line, derive the playlist name and number the tracks.

    Unparseable lines are dropped; only an empty final list is an error.
    """
    if not (text or "").strip():
        raise IngestError(ErrorKind.EMPTY_INPUT, "Empty track list")

    lines = split_candidate_lines(text)
    if not lines:
        raise IngestError(ErrorKind.NO_TRACKS_FOUND, "No candidate lines", meta={"source": "segmenter"})

    parsed = [parse_track_line(line) for line in lines]
    naming = derive_playlist_name(lines, parsed)
    tracks = [p for p in parsed[naming.start_index:] if p is not None]

    dropped = [
        line
        for line, p in zip(lines[naming.start_index:], parsed[naming.start_index:])
        if p is None
    ]
    logger.info(
        f"[ingest] text lines={len(lines)} tracks={len(tracks)} dropped={len(dropped)} name={naming.name!r}"
    )

    if not tracks:
        raise IngestError(
            ErrorKind.NO_TRACKS_FOUND,
            "No parseable track lines",
            meta={"source": "text", "lines": len(lines), "first_line": lines[0]},
        )

    return PlaylistManifest(name=naming.name, tracks=number_tracks(tracks))
