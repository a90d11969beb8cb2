import unittest

from lib.playlist import ErrorKind, IngestError, TrackStatus, parse_playlist_text
from lib.playlist.models import DEFAULT_PLAYLIST_NAME


class ParsePlaylistTextTests(unittest.TestCase):
    def test_header_name_and_tracks(self):
        manifest = parse_playlist_text("Playlist: Summer Hits\nSong - Artist")
        self.assertEqual(manifest.name, "Summer Hits")
        self.assertEqual(len(manifest.tracks), 1)
        track = manifest.tracks[0]
        self.assertEqual((track.id, track.title, track.artist), ("track-0", "Song", "Artist"))
        self.assertEqual(track.status, TrackStatus.PENDING)
        self.assertIsNone(track.confidence)

    def test_unparseable_lines_are_dropped_and_ids_stay_sequential(self):
        text = "Road Trip\n1. Song A - Artist A\nnonsense\n2. Song B - Artist B\n"
        manifest = parse_playlist_text(text)
        self.assertEqual(manifest.name, "Road Trip")
        self.assertEqual([t.id for t in manifest.tracks], ["track-0", "track-1"])
        self.assertEqual([t.title for t in manifest.tracks], ["Song A", "Song B"])

    def test_default_name(self):
        manifest = parse_playlist_text("Song A - Artist A\nSong B - Artist B")
        self.assertEqual(manifest.name, DEFAULT_PLAYLIST_NAME)
        self.assertEqual(len(manifest.tracks), 2)

    def test_single_line_paste(self):
        manifest = parse_playlist_text("Song A - Artist A; Song B - Artist B; Song C - Artist C")
        self.assertEqual([t.title for t in manifest.tracks], ["Song A", "Song B", "Song C"])

    def test_manifest_dict(self):
        data = parse_playlist_text("Hey Jude by The Beatles").to_dict()
        self.assertEqual(
            data,
            {
                "name": DEFAULT_PLAYLIST_NAME,
                "tracks": [
                    {
                        "id": "track-0",
                        "title": "Hey Jude",
                        "artist": "The Beatles",
                        "album": "",
                        "status": "pending",
                        "confidence": None,
                    }
                ],
            },
        )

    def test_empty_input(self):
        for text in ("", "   \n\t"):
            with self.assertRaises(IngestError) as ctx:
                parse_playlist_text(text)
            self.assertEqual(ctx.exception.kind, ErrorKind.EMPTY_INPUT)

    def test_only_unparseable_lines(self):
        with self.assertRaises(IngestError) as ctx:
            parse_playlist_text("hello\nworld")
        self.assertEqual(ctx.exception.kind, ErrorKind.NO_TRACKS_FOUND)
        self.assertEqual(ctx.exception.meta["lines"], 2)
        self.assertEqual(ctx.exception.meta["first_line"], "hello")


if __name__ == "__main__":
    unittest.main()
