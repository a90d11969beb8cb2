import unittest

from lib.playlist.errors import ErrorKind, IngestError, error_for_status
from lib.playlist.messages import USER_MESSAGES, describe_error


class ErrorForStatusTests(unittest.TestCase):
    def test_status_mapping(self):
        cases = {
            404: ErrorKind.REMOTE_NOT_FOUND,
            401: ErrorKind.REMOTE_ACCESS_DENIED,
            403: ErrorKind.REMOTE_ACCESS_DENIED,
            429: ErrorKind.REMOTE_TRANSPORT_FAILURE,
            500: ErrorKind.REMOTE_TRANSPORT_FAILURE,
        }
        for status, kind in cases.items():
            err = error_for_status(status, meta={"source": "spotify"})
            self.assertEqual(err.kind, kind)
            self.assertEqual(err.meta, {"source": "spotify", "status": status})

    def test_repr_has_kind_and_meta(self):
        err = IngestError(ErrorKind.EMPTY_INPUT, meta={"x": 1})
        self.assertIn("empty_input", repr(err))
        self.assertIn("'x': 1", repr(err))
        self.assertEqual(str(err), "empty_input")


class DescribeErrorTests(unittest.TestCase):
    def test_every_kind_has_a_message(self):
        for kind in ErrorKind:
            self.assertTrue(describe_error(IngestError(kind)))
        self.assertEqual(set(USER_MESSAGES), set(ErrorKind))

    def test_source_specific_wording(self):
        err = IngestError(ErrorKind.REMOTE_NOT_FOUND, meta={"source": "apple"})
        self.assertEqual(describe_error(err), "Apple Music playlist not found.")
        err = IngestError(ErrorKind.REMOTE_NOT_FOUND, meta={"source": "spotify"})
        self.assertEqual(describe_error(err), USER_MESSAGES[ErrorKind.REMOTE_NOT_FOUND])

    def test_reason_wins(self):
        err = IngestError(
            ErrorKind.REMOTE_ACCESS_DENIED,
            meta={"source": "apple", "reason": "subscription_required"},
        )
        self.assertIn("subscription", describe_error(err))


if __name__ == "__main__":
    unittest.main()
