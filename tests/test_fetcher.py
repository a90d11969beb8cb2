import unittest

import httpx

from core import SPOTIFY_API_BASE, SPOTIFY_PLAYLIST_FIELDS, fetch_spotify_playlist
from lib.playlist import ErrorKind, IngestError


PID = "37i9dQZF1DXcBWIGoYBM5M"
PAGE_2 = f"{SPOTIFY_API_BASE}/playlists/{PID}/tracks?offset=2&limit=2"
PAGE_3 = f"{SPOTIFY_API_BASE}/playlists/{PID}/tracks?offset=4&limit=2"


def _item(title, *artists, album=""):
    return {
        "track": {
            "name": title,
            "artists": [{"name": a} for a in artists],
            "album": {"name": album},
        }
    }


class MockSpotify:
    def __init__(self, pages):
        self.pages = pages
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.pages[len(self.requests) - 1]
        if isinstance(response, Exception):
            raise response
        return response

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class FetchSpotifyPlaylistTests(unittest.IsolatedAsyncioTestCase):
    async def test_follows_next_cursor_in_order(self):
        mock = MockSpotify(
            [
                httpx.Response(200, json={
                    "name": "Road Trip",
                    "tracks": {"items": [_item("Song 1", "A"), _item("Song 2", "B", "C", album="Alb")], "next": PAGE_2},
                }),
                httpx.Response(200, json={"name": "ignored", "items": [_item("Song 3", "D"), _item("Song 4", "E")], "next": PAGE_3}),
                httpx.Response(200, json={"items": [_item("Song 5", "F")], "next": None}),
            ]
        )
        async with mock.client() as client:
            manifest = await fetch_spotify_playlist(PID, "tok", client=client)

        self.assertEqual(manifest.name, "Road Trip")
        self.assertEqual([t.title for t in manifest.tracks], ["Song 1", "Song 2", "Song 3", "Song 4", "Song 5"])
        self.assertEqual([t.id for t in manifest.tracks], [f"track-{i}" for i in range(5)])
        self.assertEqual(manifest.tracks[1].artist, "B, C")
        self.assertEqual(manifest.tracks[1].album, "Alb")

        first, second, third = mock.requests
        self.assertEqual(first.url.path, f"/v1/playlists/{PID}")
        self.assertEqual(first.url.params["fields"], SPOTIFY_PLAYLIST_FIELDS)
        self.assertEqual(first.url.params["market"], "US")
        self.assertEqual(first.headers["Authorization"], "Bearer tok")
        # next URLs are followed verbatim
        self.assertEqual(str(second.url), PAGE_2)
        self.assertEqual(str(third.url), PAGE_3)

    async def test_bare_page_shape_and_default_name(self):
        mock = MockSpotify([httpx.Response(200, json={"items": [_item("Song", "Artist")], "next": None})])
        async with mock.client() as client:
            manifest = await fetch_spotify_playlist(PID, "tok", client=client)
        self.assertEqual(manifest.name, "Spotify Playlist")
        self.assertEqual(len(manifest.tracks), 1)

    async def test_drops_invalid_items(self):
        mock = MockSpotify(
            [
                httpx.Response(200, json={
                    "name": "Mixed",
                    "tracks": {
                        "items": [
                            {"track": None},
                            _item("", "Artist"),
                            _item("No Artist"),
                            "garbage",
                            _item("Keep", "Artist"),
                        ],
                        "next": None,
                    },
                })
            ]
        )
        async with mock.client() as client:
            manifest = await fetch_spotify_playlist(PID, "tok", client=client)
        self.assertEqual([(t.id, t.title) for t in manifest.tracks], [("track-0", "Keep")])

    async def test_empty_playlist(self):
        mock = MockSpotify([httpx.Response(200, json={"name": "Empty", "tracks": {"items": [], "next": None}})])
        async with mock.client() as client:
            with self.assertRaises(IngestError) as ctx:
                await fetch_spotify_playlist(PID, "tok", client=client)
        self.assertEqual(ctx.exception.kind, ErrorKind.NO_TRACKS_FOUND)
        self.assertEqual(ctx.exception.meta["source"], "spotify")

    async def test_status_mapping(self):
        cases = {
            404: ErrorKind.REMOTE_NOT_FOUND,
            401: ErrorKind.REMOTE_ACCESS_DENIED,
            403: ErrorKind.REMOTE_ACCESS_DENIED,
            500: ErrorKind.REMOTE_TRANSPORT_FAILURE,
        }
        for status, kind in cases.items():
            mock = MockSpotify([httpx.Response(status, json={"error": {"status": status}})])
            async with mock.client() as client:
                with self.assertRaises(IngestError) as ctx:
                    await fetch_spotify_playlist(PID, "tok", client=client)
            self.assertEqual(ctx.exception.kind, kind)
            self.assertEqual(ctx.exception.meta["status"], status)

    async def test_failure_on_later_page_aborts(self):
        mock = MockSpotify(
            [
                httpx.Response(200, json={"name": "Road Trip", "tracks": {"items": [_item("Song 1", "A")], "next": PAGE_2}}),
                httpx.ConnectError("connection reset"),
            ]
        )
        async with mock.client() as client:
            with self.assertRaises(IngestError) as ctx:
                await fetch_spotify_playlist(PID, "tok", client=client)
        self.assertEqual(ctx.exception.kind, ErrorKind.REMOTE_TRANSPORT_FAILURE)
        self.assertEqual(len(mock.requests), 2)

    async def test_non_json_body(self):
        mock = MockSpotify([httpx.Response(200, content=b"<html>")])
        async with mock.client() as client:
            with self.assertRaises(IngestError) as ctx:
                await fetch_spotify_playlist(PID, "tok", client=client)
        self.assertEqual(ctx.exception.kind, ErrorKind.REMOTE_TRANSPORT_FAILURE)


if __name__ == "__main__":
    unittest.main()
