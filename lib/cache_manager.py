"""Centralized cache utilities (TTLCache settings & key builders)."""
from __future__ import annotations

import os
from cachetools import TTLCache

# Resolved access credentials. Spotify app tokens live 3600s; expire ours earlier.
CREDENTIAL_CACHE_VERSION = int(os.getenv("CREDENTIAL_CACHE_VERSION", "1"))
CREDENTIAL_CACHE_MAXSIZE = int(os.getenv("CREDENTIAL_CACHE_MAXSIZE", "8"))
CREDENTIAL_CACHE_TTL_S = int(os.getenv("CREDENTIAL_CACHE_TTL_S", "3300"))


def new_credential_cache(ttl_s: int | None = None) -> TTLCache:
    return TTLCache(
        maxsize=CREDENTIAL_CACHE_MAXSIZE,
        ttl=CREDENTIAL_CACHE_TTL_S if ttl_s is None else ttl_s,
    )


def build_credential_cache_key(provider: str) -> str:
    return f"cred:{CREDENTIAL_CACHE_VERSION}:{provider}"
