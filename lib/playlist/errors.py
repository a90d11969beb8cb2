"""
Closed set of ingestion failures.

Every failure surfaced to callers is an ``IngestError`` whose ``kind`` is one of
``ErrorKind``. User-facing wording lives in ``lib.playlist.messages``.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    UNSUPPORTED_LINK = "unsupported_link"
    NO_TRACKS_FOUND = "no_tracks_found"
    REMOTE_NOT_FOUND = "remote_not_found"
    REMOTE_ACCESS_DENIED = "remote_access_denied"
    REMOTE_TRANSPORT_FAILURE = "remote_transport_failure"
    UNSUPPORTED_INPUT_KIND = "unsupported_input_kind"


class IngestError(Exception):
    """Ingestion failure carrying its kind and diagnostic meta (status, line, source...)."""

    def __init__(
        self,
        kind: ErrorKind,
        message: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ):
        self.kind = kind
        self.meta = meta or {}
        super().__init__(message or kind.value)

    def __repr__(self) -> str:
        return f"IngestError({self.kind.value!r}, {str(self)!r}, meta={self.meta!r})"


def error_for_status(status: int, meta: Optional[Dict[str, Any]] = None) -> IngestError:
    """Map a non-success HTTP status from a catalog API onto an error kind."""
    meta = {**(meta or {}), "status": status}
    if status == 404:
        return IngestError(ErrorKind.REMOTE_NOT_FOUND, f"Remote playlist not found ({status})", meta)
    if status in (401, 403):
        return IngestError(ErrorKind.REMOTE_ACCESS_DENIED, f"Remote playlist access denied ({status})", meta)
    return IngestError(ErrorKind.REMOTE_TRANSPORT_FAILURE, f"Remote request failed ({status})", meta)
