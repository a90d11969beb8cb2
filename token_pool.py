"""
Single-flight access-credential provider.

Each provider key ("spotify", "apple") resolves to one bearer token. Resolved
tokens sit in a TTLCache; while a fetch is running, concurrent callers for the
same key await that one fetch instead of starting their own.
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Awaitable, Callable, Dict, Optional

from cachetools import TTLCache
from spotipy.oauth2 import SpotifyClientCredentials

from lib.cache_manager import build_credential_cache_key, new_credential_cache

logger = logging.getLogger(__name__)

SPOTIFY = "spotify"
APPLE = "apple"

CredentialFetcher = Callable[[], Awaitable[str]]


class CredentialProvider:
    def __init__(
        self,
        fetchers: Dict[str, CredentialFetcher],
        cache: Optional[TTLCache] = None,
    ):
        self._fetchers = dict(fetchers)
        self._cache = cache if cache is not None else new_credential_cache()
        self._inflight: Dict[str, asyncio.Task] = {}

    async def get(self, provider: str) -> str:
        key = build_credential_cache_key(provider)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            fetcher = self._fetchers.get(provider)
            if fetcher is None:
                raise KeyError(f"No credential fetcher registered for {provider!r}")
            # No await between the lookup above and this insert
            task = asyncio.ensure_future(self._resolve(provider, key, fetcher))
            self._inflight[key] = task
        else:
            logger.debug(f"[token_pool] join in-flight fetch provider={provider}")

        # A cancelled caller must not cancel the fetch other callers wait on
        return await asyncio.shield(task)

    async def _resolve(self, provider: str, key: str, fetcher: CredentialFetcher) -> str:
        try:
            logger.info(f"[token_pool] fetch credential provider={provider}")
            token = await fetcher()
            if not token:
                raise RuntimeError(f"Credential fetcher for {provider!r} returned an empty token")
            self._cache[key] = token
            return token
        finally:
            self._inflight.pop(key, None)

    def invalidate(self, provider: str) -> None:
        self._cache.pop(build_credential_cache_key(provider), None)


def _spotify_app_token() -> str:
    client_id = os.getenv("SPOTIFY_CLIENT_ID")
    client_secret = os.getenv("SPOTIFY_CLIENT_SECRET")

    if not client_id or not client_secret:
        raise RuntimeError(
            "Spotify client credentials are not set. "
            "Please set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET."
        )

    auth_manager = SpotifyClientCredentials(
        client_id=client_id,
        client_secret=client_secret,
    )
    return auth_manager.get_access_token(as_dict=False)


async def spotify_app_token() -> str:
    """Client-credentials token (public playlists and search only)."""
    return await asyncio.to_thread(_spotify_app_token)


async def apple_developer_token() -> str:
    token = (os.getenv("APPLE_DEVELOPER_TOKEN") or "").strip()
    if not token:
        raise RuntimeError("Apple developer token is not set. Please set APPLE_DEVELOPER_TOKEN.")
    return token


def default_provider() -> CredentialProvider:
    return CredentialProvider({SPOTIFY: spotify_app_token, APPLE: apple_developer_token})
