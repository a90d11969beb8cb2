"""
Recognize Spotify playlist links pasted instead of a track list.

Supported forms:
- spotify:playlist:<id>
- https://open.spotify.com/playlist/<id>?si=...
- https://open.spotify.com/embed/playlist/<id>
- open.spotify.com/playlist/<id> (scheme added)
"""
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

from lib.playlist.errors import ErrorKind, IngestError


SERVICE_DOMAIN = "spotify.com"

_URI = re.compile(r"^spotify:playlist:([a-zA-Z0-9]+)$")
_PLAYLIST_PATH = re.compile(r"/(?:embed/)?playlist/([a-zA-Z0-9]+)", re.IGNORECASE)
_HAS_SCHEME = re.compile(r"^[a-z]+://", re.IGNORECASE)
_STANDALONE_URL = re.compile(r"^https?://\S+$", re.IGNORECASE)
# Spotify ids are base62, usually 22 chars
_BARE_ID = re.compile(r"^[A-Za-z0-9]{16,}$")


def is_single_token(value: str) -> bool:
    return not re.search(r"\s", (value or "").strip())


def is_standalone_url(value: str) -> bool:
    return bool(_STANDALONE_URL.match((value or "").strip()))


def extract_playlist_id(value: str) -> Optional[str]:
    """Return the playlist id when ``value`` is a playlist URI/URL, else None."""
    s = (value or "").strip()
    if not s or not is_single_token(s):
        return None

    m = _URI.match(s)
    if m:
        return m.group(1)

    with_scheme = s if _HAS_SCHEME.match(s) else f"https://{s}"
    try:
        parsed = urlparse(with_scheme)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return None
    if host != SERVICE_DOMAIN and not host.endswith(f".{SERVICE_DOMAIN}"):
        return None

    m = _PLAYLIST_PATH.search(parsed.path or "")
    return m.group(1) if m else None


def resolve_remote_identifier(value: str) -> str:
    """
    Playlist id for an explicit "fetch this playlist" request.
    Accepts everything ``extract_playlist_id`` does plus a bare id.
    """
    s = (value or "").strip()
    if not s:
        raise IngestError(ErrorKind.EMPTY_INPUT, "Empty playlist URL or ID")

    playlist_id = extract_playlist_id(s)
    if playlist_id:
        return playlist_id
    if _BARE_ID.match(s):
        return s

    raise IngestError(
        ErrorKind.UNSUPPORTED_LINK,
        f"Could not extract Spotify playlist ID from: {s}",
        meta={"input": s},
    )
