#!/usr/bin/env python3
"""
Playlist ingestion entry points.

- ingest_playlist(): pasted text or a Spotify playlist link -> PlaylistManifest
- fetch_spotify_playlist(): Spotify Web API fetch following `next` cursors
- Spotify search / playlist creation helpers used by the sync step
"""

from __future__ import annotations

import logging
import os
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import requests
import spotipy
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

from lib.playlist.errors import ErrorKind, IngestError, error_for_status
from lib.playlist.links import extract_playlist_id, is_standalone_url
from lib.playlist.models import (
    ImageInput,
    ParsedTrack,
    PlaylistManifest,
    Track,
    number_tracks,
)
from lib.playlist.normalizer import build_search_term, normalize_field
from lib.playlist.pipeline import parse_playlist_text
from token_pool import SPOTIFY, CredentialProvider

# Configure logger for this module
logger = logging.getLogger(__name__)

SPOTIFY_API_BASE = os.getenv("SPOTIFY_API_BASE", "https://api.spotify.com/v1")
SPOTIFY_MARKET = (os.getenv("SPOTIFY_MARKET", "US").strip().upper() or "US")
SPOTIFY_HTTP_TIMEOUT_S = float(os.getenv("SPOTIFY_HTTP_TIMEOUT_S", "20"))
REMOTE_FETCH_TIMEOUT_S = float(os.getenv("REMOTE_FETCH_TIMEOUT_S", "60"))

# Only what the manifest needs: playlist name + title / artists / album per item
SPOTIFY_PLAYLIST_FIELDS = "name,tracks.items(track(name,artists(name),album(name))),tracks.next"
SPOTIFY_DEFAULT_NAME = "Spotify Playlist"
SPOTIFY_ADD_CHUNK = 100
SPOTIFY_PLAYLIST_DESCRIPTION = "Migrated from another music service"


# =========================
# Ingestion
# =========================


async def ingest_playlist(
    raw: Union[str, ImageInput, bytes],
    *,
    credentials: Optional[CredentialProvider] = None,
    client: Optional[httpx.AsyncClient] = None,
    user_token: Optional[str] = None,
) -> PlaylistManifest:
    """
    Turn user input into a manifest.

    A Spotify playlist link/URI is fetched remotely; any other http(s) URL is
    rejected; everything else is parsed as a pasted track list.
    """
    if isinstance(raw, (ImageInput, bytes, bytearray)):
        mime_type = raw.mime_type if isinstance(raw, ImageInput) else None
        raise IngestError(
            ErrorKind.UNSUPPORTED_INPUT_KIND,
            "Image input is not supported",
            meta={"mime_type": mime_type},
        )
    if not isinstance(raw, str):
        raise IngestError(
            ErrorKind.UNSUPPORTED_INPUT_KIND,
            f"Unsupported input type: {type(raw).__name__}",
        )

    text = raw.strip()
    if not text:
        raise IngestError(ErrorKind.EMPTY_INPUT, "Empty input")

    playlist_id = extract_playlist_id(text)
    if playlist_id:
        logger.info(f"[ingest] spotify link detected playlist_id={playlist_id}")
        return await fetch_remote_playlist(
            playlist_id,
            credentials=credentials,
            client=client,
            user_token=user_token,
        )

    if is_standalone_url(text):
        raise IngestError(
            ErrorKind.UNSUPPORTED_LINK,
            "Only Spotify playlist links are supported",
            meta={"url": text},
        )

    return parse_playlist_text(text)


async def fetch_remote_playlist(
    playlist_id: str,
    *,
    credentials: Optional[CredentialProvider] = None,
    client: Optional[httpx.AsyncClient] = None,
    user_token: Optional[str] = None,
) -> PlaylistManifest:
    """Fetch with the user's token when given, else the app's client-credentials token."""
    token = user_token
    if not token:
        if credentials is None:
            raise RuntimeError("A CredentialProvider or user token is required for remote playlists")
        token = await get_spotify_app_token(credentials)
    return await fetch_spotify_playlist(playlist_id, token, client=client)


async def get_spotify_app_token(credentials: CredentialProvider) -> str:
    """App (client-credentials) token; auth-server failures surface as IngestError."""
    try:
        return await credentials.get(SPOTIFY)
    except SpotifyOauthError as e:
        logger.warning(f"[Spotify] credential fetch rejected: {e}")
        raise IngestError(
            ErrorKind.REMOTE_ACCESS_DENIED,
            f"Spotify rejected the app credentials: {e}",
            meta={"source": "spotify", "reason": "credentials"},
        ) from e
    except requests.exceptions.RequestException as e:
        logger.warning(f"[Spotify] credential fetch failed: {e}")
        raise IngestError(
            ErrorKind.REMOTE_TRANSPORT_FAILURE,
            f"Spotify credential request failed: {e}",
            meta={"source": "spotify", "reason": "credentials"},
        ) from e


# =========================
# Spotify playlist fetch (paginated)
# =========================


async def _get_json(
    client: httpx.AsyncClient,
    url: str,
    headers: Dict[str, str],
    params: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    try:
        response = await client.get(url, headers=headers, params=params)
    except httpx.HTTPError as e:
        logger.warning(f"[Spotify] transport error url={url}: {e}")
        raise IngestError(
            ErrorKind.REMOTE_TRANSPORT_FAILURE,
            f"Spotify request failed: {e}",
            meta={"source": "spotify", "url": url},
        ) from e

    if not response.is_success:
        logger.warning(f"[Spotify] status={response.status_code} url={url}")
        raise error_for_status(response.status_code, meta={"source": "spotify", "url": url})

    try:
        data = response.json()
    except ValueError as e:
        raise IngestError(
            ErrorKind.REMOTE_TRANSPORT_FAILURE,
            "Spotify returned a non-JSON body",
            meta={"source": "spotify", "url": url},
        ) from e
    if not isinstance(data, dict):
        raise IngestError(
            ErrorKind.REMOTE_TRANSPORT_FAILURE,
            "Unexpected Spotify response",
            meta={"source": "spotify", "url": url},
        )
    return data


def _split_page(data: Dict[str, Any]) -> Tuple[Optional[str], List[Any], Optional[str]]:
    """
    (name, items, next) from either response shape:
    - full playlist envelope: {"name", "tracks": {"items", "next"}}
    - bare tracks page:       {"items", "next"}
    """
    if "tracks" in data:
        tracks = data.get("tracks")
        tracks = tracks if isinstance(tracks, dict) else {}
        name = data.get("name")
        items = tracks.get("items")
        next_url = tracks.get("next")
    else:
        name = None
        items = data.get("items")
        next_url = data.get("next")

    return (
        name if isinstance(name, str) else None,
        items if isinstance(items, list) else [],
        next_url if isinstance(next_url, str) and next_url else None,
    )


def _item_to_parsed(item: Any) -> Optional[ParsedTrack]:
    track = item.get("track") if isinstance(item, dict) else None
    if not isinstance(track, dict):
        return None

    artists = track.get("artists") or []
    artist_names = [
        a.get("name") for a in artists if isinstance(a, dict) and a.get("name")
    ]
    album = track.get("album") if isinstance(track.get("album"), dict) else {}

    title = normalize_field(track.get("name") or "")
    artist = normalize_field(", ".join(artist_names))
    if not title or not artist:
        return None
    return ParsedTrack(title=title, artist=artist, album=normalize_field(album.get("name") or ""))


async def fetch_spotify_playlist(
    playlist_id: str,
    token: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    market: Optional[str] = None,
) -> PlaylistManifest:
    """
    Fetch playlist name and every track, one page at a time.

    Pages are requested strictly in sequence (each `next` URL comes from the
    previous page and is followed verbatim). Any failure aborts the whole fetch;
    no partial manifest is returned.
    """
    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=SPOTIFY_HTTP_TIMEOUT_S)

    encoded_id = urllib.parse.quote(playlist_id, safe="")
    headers = {"Authorization": f"Bearer {token}"}
    next_url: Optional[str] = f"{SPOTIFY_API_BASE}/playlists/{encoded_id}"
    params: Optional[Dict[str, str]] = {
        "market": market or SPOTIFY_MARKET,
        "fields": SPOTIFY_PLAYLIST_FIELDS,
    }

    name = ""
    items: List[Any] = []
    pages = 0
    try:
        while next_url:
            data = await _get_json(client, next_url, headers, params)
            # `next` URLs already carry their own query string
            params = None
            pages += 1
            page_name, page_items, next_url = _split_page(data)
            if not name and page_name:
                name = page_name
            items.extend(page_items)
    finally:
        if own_client:
            await client.aclose()

    parsed = [p for p in (_item_to_parsed(item) for item in items) if p is not None]
    logger.info(
        f"[Spotify] playlist id={playlist_id} pages={pages} items={len(items)} tracks={len(parsed)}"
    )
    if not parsed:
        raise IngestError(
            ErrorKind.NO_TRACKS_FOUND,
            "No tracks found in the Spotify playlist",
            meta={"source": "spotify", "playlist_id": playlist_id, "items": len(items)},
        )

    return PlaylistManifest(
        name=normalize_field(name) or SPOTIFY_DEFAULT_NAME,
        tracks=number_tracks(parsed),
    )


# =========================
# Spotify sync helpers (spotipy, blocking: run via asyncio.to_thread)
# =========================


def get_spotify_client(token: str) -> spotipy.Spotify:
    return spotipy.Spotify(auth=token, requests_timeout=SPOTIFY_HTTP_TIMEOUT_S)


def _spotify_error(e: SpotifyException, action: str) -> IngestError:
    status = getattr(e, "http_status", None) or 0
    msg = getattr(e, "msg", str(e))
    logger.warning(f"[Spotify] {action} failed ({status}): {msg}")
    return error_for_status(status, meta={"source": "spotify", "action": action, "msg": msg})


def search_spotify_track(track: Track, token: str) -> Optional[str]:
    """First search hit's URI for "<title> <artist>" (brackets removed), or None."""
    query = build_search_term(track.title, track.artist)
    if not query:
        return None
    try:
        results = get_spotify_client(token).search(q=query, type="track", limit=1)
    except (SpotifyException, requests.exceptions.RequestException) as e:
        logger.warning(f"[Spotify] search failed q={query!r}: {e}")
        return None

    items = ((results or {}).get("tracks") or {}).get("items") or []
    if not items:
        return None
    return items[0].get("uri")


def get_spotify_user_playlists(token: str) -> List[Dict[str, Any]]:
    try:
        data = get_spotify_client(token).current_user_playlists(limit=50)
    except SpotifyException as e:
        raise _spotify_error(e, "user_playlists") from e
    return (data or {}).get("items") or []


def create_spotify_playlist(name: str, token: str) -> str:
    sp = get_spotify_client(token)
    try:
        user_id = sp.current_user()["id"]
        playlist = sp.user_playlist_create(
            user_id,
            name,
            public=False,
            description=SPOTIFY_PLAYLIST_DESCRIPTION,
        )
    except SpotifyException as e:
        raise _spotify_error(e, "create_playlist") from e
    logger.info(f"[Spotify] created playlist id={playlist.get('id')} name={name!r}")
    return playlist["id"]


def add_tracks_to_spotify_playlist(playlist_id: str, uris: List[str], token: str) -> int:
    """Add URIs in order, at most 100 per request. Returns the number added."""
    sp = get_spotify_client(token)
    added = 0
    for start in range(0, len(uris), SPOTIFY_ADD_CHUNK):
        chunk = uris[start:start + SPOTIFY_ADD_CHUNK]
        try:
            sp.playlist_add_items(playlist_id, chunk)
        except SpotifyException as e:
            raise _spotify_error(e, "add_tracks") from e
        added += len(chunk)
    return added
