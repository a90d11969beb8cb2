#!/usr/bin/env python3
"""
Playlist ingest probe.

Runs the same ingestion the API does, outside the server, to check credentials
and see how a paste or a link is parsed.

Usage (from the repo root):
    python scripts/ingest_probe.py "https://open.spotify.com/playlist/..."
    python scripts/ingest_probe.py tracks.txt --verify
    pbpaste | python scripts/ingest_probe.py -

Output:
    - manifest JSON (name + tracks)
    - with --verify: per-track heuristic confidence and its contributions
"""

import asyncio
import json
import logging
import os
import sys

from dotenv import load_dotenv

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# .env first, .env.local overrides
load_dotenv(os.path.join(ROOT, ".env"))
load_dotenv(os.path.join(ROOT, ".env.local"), override=True)

from core import ingest_playlist  # noqa: E402
from lib.playlist import IngestError, estimate_match_confidence  # noqa: E402
from lib.playlist.messages import describe_error  # noqa: E402
from token_pool import default_provider  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="[%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)


def _read_input(arg: str) -> str:
    if arg == "-":
        return sys.stdin.read()
    if os.path.isfile(arg):
        with open(arg, "r", encoding="utf-8") as f:
            return f.read()
    return arg


async def main():
    args = [a for a in sys.argv[1:] if a != "--verify"]
    verify = "--verify" in sys.argv[1:]
    if not args:
        print("Usage: python scripts/ingest_probe.py <link | file | -> [--verify]")
        sys.exit(1)

    raw = _read_input(args[0])
    logger.info(f"input chars={len(raw)}")

    try:
        manifest = await ingest_playlist(raw, credentials=default_provider())
    except IngestError as e:
        print(f"ERROR [{e.kind.value}] {describe_error(e)}")
        print(json.dumps(e.meta, indent=2, ensure_ascii=False, default=str))
        sys.exit(1)

    print("\n" + "=" * 70)
    print("MANIFEST")
    print("=" * 70)
    print(json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False))

    if verify:
        print("\n" + "=" * 70)
        print("CONFIDENCE (heuristic, no catalog lookup)")
        print("=" * 70)
        for track in manifest.tracks:
            estimate = estimate_match_confidence(track)
            mark = "✓" if estimate.match_found else "✗"
            print(f"{mark} {track.id} {estimate.confidence:.2f}  {track.title} / {track.artist}  {estimate.contributions}")


if __name__ == "__main__":
    asyncio.run(main())
