"""
Playlist ingestion data model.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_PLAYLIST_NAME = "My Migrated Playlist"


class TrackStatus(str, Enum):
    """
    Lifecycle of a track during cross-service verification.
    Only the matching stage moves a track past PENDING.
    """
    PENDING = "pending"
    MATCHING = "matching"
    MATCHED = "matched"
    FAILED = "failed"


@dataclass(frozen=True)
class ParsedTrack:
    """One track recovered from a line of text or a remote item."""
    title: str
    artist: str
    album: str = ""


@dataclass
class Track:
    """A numbered track inside a manifest."""
    id: str
    title: str
    artist: str
    album: str = ""
    status: TrackStatus = TrackStatus.PENDING
    confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class PlaylistManifest:
    """Normalized ingestion result. Track order is source order."""
    name: str
    tracks: List[Track] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "tracks": [t.to_dict() for t in self.tracks],
        }


@dataclass(frozen=True)
class ImageInput:
    """Raw image upload (screenshot of a playlist). Never parsed here."""
    data: bytes
    mime_type: str


def track_id(index: int) -> str:
    return f"track-{index}"


def number_tracks(parsed: List[ParsedTrack]) -> List[Track]:
    """Assign sequential ids in list order, starting at 0."""
    return [
        Track(id=track_id(i), title=p.title, artist=p.artist, album=p.album)
        for i, p in enumerate(parsed)
    ]
