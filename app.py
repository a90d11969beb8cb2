from __future__ import annotations

import os
import time
import asyncio
from typing import Any, Dict, List, Literal, Optional

from dotenv import load_dotenv

# .env must be loaded before core/token_pool read their settings
load_dotenv()

from fastapi import (
    FastAPI,
    HTTPException,
    Header,
    Query,
    UploadFile,
    File,
    Request,
)
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.gzip import GZipMiddleware
from pydantic import BaseModel

from apple_catalog import AppleMusicClient
from core import (
    REMOTE_FETCH_TIMEOUT_S,
    add_tracks_to_spotify_playlist,
    create_spotify_playlist,
    fetch_remote_playlist,
    get_spotify_app_token,
    get_spotify_user_playlists,
    ingest_playlist,
    search_spotify_track,
)
from lib.playlist import (
    ErrorKind,
    ImageInput,
    IngestError,
    PlaylistManifest,
    Track,
    apply_match_estimate,
    extract_playlist_id,
    resolve_remote_identifier,
)
from lib.playlist.messages import describe_error
from token_pool import APPLE, CredentialProvider, default_provider
import logging

# Basic logging configuration to ensure logger outputs appear in the terminal
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)


# =========================
# Pydantic models
# =========================

class TrackModel(BaseModel):
    id: str
    title: str
    artist: str
    album: str = ""
    status: Literal["pending", "matching", "matched", "failed"] = "pending"
    confidence: Optional[float] = None


class PlaylistResponse(BaseModel):
    name: str
    source: str
    tracks: List[TrackModel]


class ParseRequest(BaseModel):
    text: str


class VerifyRequest(BaseModel):
    tracks: List[TrackModel]


class VerifyResult(BaseModel):
    track: TrackModel
    match_found: bool
    contributions: Dict[str, float]


class MatchRequest(BaseModel):
    source: Literal["spotify", "apple"]
    tracks: List[TrackModel]


class MatchResult(BaseModel):
    track_id: str
    match_id: Optional[str] = None
    matched: bool


class CreateSpotifyPlaylistBody(BaseModel):
    name: str
    uris: List[str]


class CreateApplePlaylistBody(BaseModel):
    name: str
    description: str = ""
    song_ids: List[str]


# =========================
# FastAPI app & middleware
# =========================

app = FastAPI(
    title="Playlist Ingest",
    version="1.0.0",
)

# Add GZip middleware for response compression (large manifests)
app.add_middleware(GZipMiddleware, minimum_size=1000)

MAX_REQUEST_BYTES = int(os.getenv("MAX_REQUEST_BYTES", 10 * 1024 * 1024))
MAX_PASTE_CHARS = int(os.getenv("MAX_PASTE_CHARS", "200000"))


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.method in ("POST", "PUT", "PATCH"):
            content_length = request.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_BYTES:
                logger.warning(f"[RequestSizeLimit] Rejected oversized request: {content_length} bytes from {request.client}")
                return JSONResponse(
                    status_code=413,
                    content={"detail": f"Request body too large (max {MAX_REQUEST_BYTES} bytes)"}
                )
        return await call_next(request)

app.add_middleware(RequestSizeLimitMiddleware)

default_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]

# ALLOWED_ORIGINS (comma separated) overrides the defaults
env_origins = os.getenv("ALLOWED_ORIGINS")
if env_origins:
    origins = [o.strip() for o in env_origins.split(",") if o.strip()]
else:
    origins = default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _init_credentials():
    app.state.credentials = default_provider()
    logger.info("playlist-ingest: startup event triggered")


# =========================
# Health check
# =========================

@app.get("/health", tags=["system"])
def health() -> Dict[str, Any]:
    return {
        "ok": True,
        "status": "ok",
        "build_commit": os.getenv("RENDER_GIT_COMMIT", "local")[:7],
    }


@app.get("/", tags=["system"])
def root() -> Dict[str, Any]:
    return {"ok": True, "status": "ok"}


# =========================
# Core helpers
# =========================

# Presentation of error kinds as HTTP statuses
ERROR_STATUS = {
    ErrorKind.EMPTY_INPUT: 400,
    ErrorKind.UNSUPPORTED_LINK: 422,
    ErrorKind.NO_TRACKS_FOUND: 422,
    ErrorKind.REMOTE_NOT_FOUND: 404,
    ErrorKind.REMOTE_ACCESS_DENIED: 403,
    ErrorKind.REMOTE_TRANSPORT_FAILURE: 502,
    ErrorKind.UNSUPPORTED_INPUT_KIND: 415,
}


def _http_error(e: IngestError, status_code: Optional[int] = None) -> HTTPException:
    return HTTPException(
        status_code=status_code or ERROR_STATUS[e.kind],
        detail={
            "error": describe_error(e),
            "kind": e.kind.value,
            "meta": e.meta,
        },
    )


def _timeout_error(source: str) -> HTTPException:
    e = IngestError(
        ErrorKind.REMOTE_TRANSPORT_FAILURE,
        f"Remote fetch exceeded {REMOTE_FETCH_TIMEOUT_S}s",
        meta={"source": source, "reason": "timeout"},
    )
    return _http_error(e, status_code=504)


def _get_credentials(request: Request) -> CredentialProvider:
    provider = getattr(request.app.state, "credentials", None)
    if provider is None:
        provider = default_provider()
        request.app.state.credentials = provider
    return provider


def _bearer_token(authorization: Optional[str], required: bool = False) -> Optional[str]:
    """User access token from an "Authorization: Bearer <token>" header."""
    value = (authorization or "").strip()
    if value.lower().startswith("bearer "):
        token = value[7:].strip()
        if token:
            return token
    if required:
        raise HTTPException(status_code=401, detail="Authorization: Bearer <user token> is required")
    return None


def _manifest_response(manifest: PlaylistManifest, source: str) -> Dict[str, Any]:
    return {"source": source, **manifest.to_dict()}


def _to_track(model: TrackModel) -> Track:
    return Track(id=model.id, title=model.title, artist=model.artist, album=model.album)


# =========================
# Endpoints
# =========================

@app.post("/api/parse", response_model=PlaylistResponse)
async def parse_playlist(body: ParseRequest, request: Request, authorization: Optional[str] = Header(None)):
    """Pasted track list, or a Spotify playlist link pasted in the same box."""
    t0_total = time.time()
    text = body.text or ""
    if len(text) > MAX_PASTE_CHARS:
        raise HTTPException(status_code=413, detail=f"Track list too long (max {MAX_PASTE_CHARS} characters)")

    source = "spotify" if extract_playlist_id(text) else "text"
    try:
        manifest = await asyncio.wait_for(
            ingest_playlist(
                text,
                credentials=_get_credentials(request),
                user_token=_bearer_token(authorization),
            ),
            timeout=REMOTE_FETCH_TIMEOUT_S,
        )
    except IngestError as e:
        logger.error(f"[api/parse] error source={source} text_len={len(text)}: {e!r}")
        raise _http_error(e)
    except asyncio.TimeoutError:
        logger.error(f"[api/parse] timeout source={source}")
        raise _timeout_error(source)

    total_ms = (time.time() - t0_total) * 1000
    logger.info(f"[PERF] api/parse source={source} text_len={len(text)} tracks={len(manifest.tracks)} total_ms={total_ms:.1f}")
    return _manifest_response(manifest, source)


@app.post("/api/parse-image", response_model=PlaylistResponse)
async def parse_image(file: UploadFile = File(...)):
    """Screenshots are not parsed here (no OCR); kept so clients get a clear error."""
    contents = await file.read()
    try:
        manifest = await ingest_playlist(ImageInput(data=contents, mime_type=file.content_type or ""))
    except IngestError as e:
        logger.info(f"[api/parse-image] rejected mime_type={file.content_type} bytes={len(contents)}")
        raise _http_error(e)
    return _manifest_response(manifest, "image")


@app.get("/api/playlist", response_model=PlaylistResponse)
async def get_playlist(
    request: Request,
    url: str = Query(..., description="Spotify playlist URL, URI or ID"),
    authorization: Optional[str] = Header(None),
):
    t0_total = time.time()
    try:
        playlist_id = resolve_remote_identifier(url)
        manifest = await asyncio.wait_for(
            fetch_remote_playlist(
                playlist_id,
                credentials=_get_credentials(request),
                user_token=_bearer_token(authorization),
            ),
            timeout=REMOTE_FETCH_TIMEOUT_S,
        )
    except IngestError as e:
        logger.error(f"[api/playlist] error for url={url}: {e!r}")
        raise _http_error(e)
    except asyncio.TimeoutError:
        logger.error(f"[api/playlist] timeout for url={url}")
        raise _timeout_error("spotify")

    total_ms = (time.time() - t0_total) * 1000
    logger.info(f"[PERF] api/playlist playlist_id={playlist_id} tracks={len(manifest.tracks)} total_ms={total_ms:.1f}")
    return _manifest_response(manifest, "spotify")


@app.post("/api/verify", response_model=List[VerifyResult])
def verify_tracks(body: VerifyRequest):
    """Heuristic confidence only; see lib.playlist.matcher."""
    results = []
    for model in body.tracks:
        track = _to_track(model)
        estimate = apply_match_estimate(track)
        results.append(
            {
                "track": track.to_dict(),
                "match_found": estimate.match_found,
                "contributions": estimate.contributions,
            }
        )
    return results


@app.post("/api/match", response_model=List[MatchResult])
async def match_tracks(body: MatchRequest, request: Request, authorization: Optional[str] = Header(None)):
    """Search each track on the target service, one request at a time."""
    credentials = _get_credentials(request)
    results: List[Dict[str, Any]] = []

    if body.source == "spotify":
        token = _bearer_token(authorization)
        if not token:
            try:
                token = await get_spotify_app_token(credentials)
            except IngestError as e:
                logger.error(f"[api/match] credential error: {e!r}")
                raise _http_error(e)
        for model in body.tracks:
            uri = await asyncio.to_thread(search_spotify_track, _to_track(model), token)
            results.append({"track_id": model.id, "match_id": uri, "matched": uri is not None})
    else:
        developer_token = await credentials.get(APPLE)
        async with AppleMusicClient(developer_token) as apple:
            for model in body.tracks:
                song_id = await apple.search_song(_to_track(model))
                results.append({"track_id": model.id, "match_id": song_id, "matched": song_id is not None})

    matched = sum(1 for r in results if r["matched"])
    logger.info(f"[api/match] source={body.source} tracks={len(results)} matched={matched}")
    return results


@app.get("/api/apple/playlists")
async def apple_playlists(
    request: Request,
    music_user_token: Optional[str] = Header(None, alias="Music-User-Token"),
):
    developer_token = await _get_credentials(request).get(APPLE)
    try:
        async with AppleMusicClient(developer_token, music_user_token) as apple:
            playlists = await apple.list_library_playlists()
    except IngestError as e:
        logger.error(f"[api/apple/playlists] error: {e!r}")
        raise _http_error(e)
    return {"playlists": playlists}


@app.post("/api/apple/playlists")
async def create_apple_playlist(
    body: CreateApplePlaylistBody,
    request: Request,
    music_user_token: Optional[str] = Header(None, alias="Music-User-Token"),
):
    developer_token = await _get_credentials(request).get(APPLE)
    try:
        async with AppleMusicClient(developer_token, music_user_token) as apple:
            playlist = await apple.create_library_playlist(body.name, body.description, body.song_ids)
    except IngestError as e:
        logger.error(f"[api/apple/playlists] create error name={body.name!r}: {e!r}")
        raise _http_error(e)
    return playlist


@app.get("/api/apple/playlists/{playlist_id}", response_model=PlaylistResponse)
async def apple_playlist(
    playlist_id: str,
    request: Request,
    music_user_token: Optional[str] = Header(None, alias="Music-User-Token"),
):
    developer_token = await _get_credentials(request).get(APPLE)
    try:
        async with AppleMusicClient(developer_token, music_user_token) as apple:
            manifest = await asyncio.wait_for(
                apple.get_library_playlist(playlist_id),
                timeout=REMOTE_FETCH_TIMEOUT_S,
            )
    except IngestError as e:
        logger.error(f"[api/apple/playlists/{playlist_id}] error: {e!r}")
        raise _http_error(e)
    except asyncio.TimeoutError:
        raise _timeout_error("apple")
    return _manifest_response(manifest, "apple")


@app.get("/api/spotify/playlists")
async def spotify_playlists(authorization: Optional[str] = Header(None)):
    token = _bearer_token(authorization, required=True)
    try:
        playlists = await asyncio.to_thread(get_spotify_user_playlists, token)
    except IngestError as e:
        raise _http_error(e)
    return {"playlists": playlists}


@app.post("/api/spotify/playlists")
async def create_spotify_playlist_with_tracks(
    body: CreateSpotifyPlaylistBody,
    authorization: Optional[str] = Header(None),
):
    token = _bearer_token(authorization, required=True)
    try:
        playlist_id = await asyncio.to_thread(create_spotify_playlist, body.name, token)
        added = await asyncio.to_thread(add_tracks_to_spotify_playlist, playlist_id, body.uris, token)
    except IngestError as e:
        logger.error(f"[api/spotify/playlists] error name={body.name!r}: {e!r}")
        raise _http_error(e)
    return {"playlist_id": playlist_id, "added": added}


# =========================
# Local dev entrypoint
# =========================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
