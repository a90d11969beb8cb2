"""User-facing text for each ErrorKind."""
from __future__ import annotations

from lib.playlist.errors import ErrorKind, IngestError


USER_MESSAGES = {
    ErrorKind.EMPTY_INPUT: "Paste a track list to continue.",
    ErrorKind.UNSUPPORTED_LINK: "Only Spotify playlist links are supported. Paste the track list instead.",
    ErrorKind.NO_TRACKS_FOUND: "No tracks found. Use formats like 'Song - Artist' or 'Artist - Song'.",
    ErrorKind.REMOTE_NOT_FOUND: "Spotify playlist not found or not public.",
    ErrorKind.REMOTE_ACCESS_DENIED: "Spotify playlist could not be accessed. Paste the track list instead.",
    ErrorKind.REMOTE_TRANSPORT_FAILURE: "Spotify request failed. Paste the track list instead.",
    ErrorKind.UNSUPPORTED_INPUT_KIND: "Image parsing is not supported. Paste a text track list instead.",
}

# Wording that depends on where the failure happened
_SOURCE_MESSAGES = {
    (ErrorKind.NO_TRACKS_FOUND, "spotify"): "No tracks found in the Spotify playlist.",
    (ErrorKind.NO_TRACKS_FOUND, "segmenter"): "No tracks found. Try one track per line.",
    (ErrorKind.NO_TRACKS_FOUND, "apple"): "No tracks found in the Apple Music playlist.",
    (ErrorKind.REMOTE_NOT_FOUND, "apple"): "Apple Music playlist not found.",
    (ErrorKind.REMOTE_ACCESS_DENIED, "apple"): "Apple Music could not be accessed. Sign in again and retry.",
    (ErrorKind.REMOTE_TRANSPORT_FAILURE, "apple"): "Apple Music request failed. Try again later.",
}

_REASON_MESSAGES = {
    "subscription_required": "An active Apple Music subscription is required.",
    "user_token_required": "Sign in to Apple Music to access your library.",
    "timeout": "The playlist service took too long to respond. Try again or paste the track list instead.",
    "credentials": "Spotify could not authorize this request. Try again later or paste the track list instead.",
}


def describe_error(error: IngestError) -> str:
    reason = error.meta.get("reason")
    if reason in _REASON_MESSAGES:
        return _REASON_MESSAGES[reason]
    source = error.meta.get("source")
    return _SOURCE_MESSAGES.get((error.kind, source)) or USER_MESSAGES[error.kind]
