"""
Apple Music API client: catalog search and library playlists.

Responses go through lib.playlist.catalog because the resource envelope is
not stable across endpoints and API versions.
"""
from __future__ import annotations

import logging
import os
import urllib.parse
from typing import Any, Dict, List, Optional

import httpx

from lib.playlist.catalog import normalize_resource_array, pick_first_resource
from lib.playlist.errors import ErrorKind, IngestError, error_for_status
from lib.playlist.models import ParsedTrack, PlaylistManifest, Track, number_tracks
from lib.playlist.normalizer import build_search_term, normalize_field

logger = logging.getLogger(__name__)

APPLE_API_BASE = os.getenv("APPLE_API_BASE", "https://api.music.apple.com/v1")
APPLE_STOREFRONT = os.getenv("APPLE_STOREFRONT", "us")
APPLE_HTTP_TIMEOUT_S = float(os.getenv("APPLE_HTTP_TIMEOUT_S", "20"))
APPLE_SEARCH_LIMIT = 3
APPLE_LIBRARY_PAGE_LIMIT = 100
APPLE_DEFAULT_PLAYLIST_NAME = "Apple Music Playlist"
APPLE_UNTITLED_PLAYLIST = "Untitled Playlist"


def _dig(node: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


class AppleMusicClient:
    """
    Thin async client over the Apple Music REST API.

    developer_token: signed developer JWT (catalog access)
    user_token: Music-User-Token (library access); optional for search
    """

    def __init__(
        self,
        developer_token: str,
        user_token: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        storefront: str = APPLE_STOREFRONT,
    ):
        self.developer_token = developer_token
        self.user_token = user_token
        self.storefront = storefront
        self._own_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=APPLE_API_BASE,
            timeout=APPLE_HTTP_TIMEOUT_S,
        )

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AppleMusicClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _headers(self, library: bool) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.developer_token}"}
        if library:
            if not self.user_token:
                raise IngestError(
                    ErrorKind.REMOTE_ACCESS_DENIED,
                    "Music-User-Token is required for library access",
                    meta={"source": "apple", "reason": "user_token_required"},
                )
            headers["Music-User-Token"] = self.user_token
        return headers

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        library: bool = False,
    ) -> Any:
        headers = self._headers(library)
        try:
            response = await self._client.request(method, path, params=params, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"[Apple] transport error path={path}: {e}")
            raise IngestError(
                ErrorKind.REMOTE_TRANSPORT_FAILURE,
                f"Apple Music request failed: {e}",
                meta={"source": "apple", "path": path},
            ) from e

        if not response.is_success:
            logger.warning(f"[Apple] status={response.status_code} path={path}")
            raise error_for_status(response.status_code, meta={"source": "apple", "path": path})

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise IngestError(
                ErrorKind.REMOTE_TRANSPORT_FAILURE,
                "Apple Music returned a non-JSON body",
                meta={"source": "apple", "path": path},
            ) from e

    async def search_song(self, track: Track) -> Optional[str]:
        """Catalog id of the top search hit, or None. Search failures are not fatal."""
        term = build_search_term(track.title, track.artist)
        if not term:
            return None
        try:
            data = await self._request_json(
                "GET",
                f"/catalog/{self.storefront}/search",
                params={"term": term, "types": "songs", "limit": APPLE_SEARCH_LIMIT},
            )
        except IngestError as e:
            logger.warning(f"[Apple] search failed term={term!r}: {e}")
            return None

        songs = normalize_resource_array(_dig(data, "results", "songs"))
        first = songs[0] if songs else None
        return first.get("id") if isinstance(first, dict) else None

    async def list_library_playlists(self, limit: int = APPLE_LIBRARY_PAGE_LIMIT) -> List[Dict[str, Any]]:
        try:
            data = await self._request_json(
                "GET", "/me/library/playlists", params={"limit": limit}, library=True
            )
        except IngestError as e:
            if e.meta.get("status") == 403:
                e.meta["reason"] = "subscription_required"
            raise

        playlists = []
        for p in normalize_resource_array(data):
            if not isinstance(p, dict):
                continue
            attrs = p.get("attributes") or {}
            playlists.append(
                {
                    "id": p.get("id"),
                    "name": attrs.get("name") or APPLE_UNTITLED_PLAYLIST,
                    "tracks": {"total": attrs.get("trackCount") or 0},
                }
            )
        return playlists

    async def get_library_playlist(self, playlist_id: str) -> PlaylistManifest:
        encoded_id = urllib.parse.quote(playlist_id, safe="")
        response = await self._request_json(
            "GET",
            f"/me/library/playlists/{encoded_id}",
            params={"include": "tracks"},
            library=True,
        )

        playlist = pick_first_resource(response)
        if not isinstance(playlist, dict):
            playlist = {}
        included = normalize_resource_array(_dig(response, "included"))
        included_by_id = {
            item.get("id"): item for item in included if isinstance(item, dict) and item.get("id")
        }

        # Track references live in different places depending on the endpoint
        refs = _dig(playlist, "relationships", "tracks", "data")
        if refs is None:
            refs = _dig(playlist, "tracks", "data")
        if refs is None:
            refs = playlist.get("tracks")
        track_refs = normalize_resource_array(refs)
        source = track_refs or included

        parsed: List[ParsedTrack] = []
        for ref in source:
            if not isinstance(ref, dict):
                continue
            resolved = included_by_id.get(ref.get("id"), ref)
            attrs = resolved.get("attributes") or {}
            title = normalize_field(attrs.get("name") or "")
            artist = normalize_field(attrs.get("artistName") or "")
            if not title or not artist:
                continue
            parsed.append(ParsedTrack(title=title, artist=artist, album=normalize_field(attrs.get("albumName") or "")))

        logger.info(f"[Apple] library playlist id={playlist_id} refs={len(source)} tracks={len(parsed)}")
        if not parsed:
            raise IngestError(
                ErrorKind.NO_TRACKS_FOUND,
                "No tracks found in the Apple Music playlist",
                meta={"source": "apple", "playlist_id": playlist_id},
            )

        name = normalize_field(_dig(playlist, "attributes", "name") or "") or APPLE_DEFAULT_PLAYLIST_NAME
        return PlaylistManifest(name=name, tracks=number_tracks(parsed))

    async def create_library_playlist(
        self,
        name: str,
        description: str,
        song_ids: List[str],
    ) -> Dict[str, Any]:
        """Create a library playlist holding the given catalog songs, in order."""
        body = {
            "attributes": {"name": name, "description": description},
            "relationships": {
                "tracks": {"data": [{"id": song_id, "type": "songs"} for song_id in song_ids]},
            },
        }
        response = await self._request_json("POST", "/me/library/playlists", body=body, library=True)

        created = pick_first_resource(response)
        if not isinstance(created, dict):
            created = {}
        logger.info(f"[Apple] created library playlist id={created.get('id')} name={name!r} songs={len(song_ids)}")
        return {
            "id": created.get("id"),
            "name": _dig(created, "attributes", "name") or name,
            "tracks": {"total": len(song_ids)},
        }
