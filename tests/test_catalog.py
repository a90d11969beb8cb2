import unittest

from lib.playlist.catalog import (
    NoResources,
    ResourceList,
    SingleResource,
    decode_resource_list,
    decode_single_resource,
    normalize_resource_array,
    pick_first_resource,
)


A = {"id": "a"}
B = {"id": "b"}


class DecodeResourceListTests(unittest.TestCase):
    def test_known_shapes(self):
        cases = [
            ([A, B], "array"),
            ({"data": [A, B]}, "data"),
            ({"items": [A, B]}, "items"),
            ({"data": {"data": [A, B]}}, "data.data"),
            ({"data": {"items": [A, B]}}, "data.items"),
            ({"results": [A, B]}, "results"),
        ]
        for value, shape in cases:
            decoded = decode_resource_list(value)
            self.assertEqual(decoded, ResourceList(resources=[A, B], shape=shape), shape)

    def test_priority_order(self):
        decoded = decode_resource_list({"items": [B], "data": [A]})
        self.assertEqual(decoded.shape, "data")
        self.assertEqual(decoded.resources, [A])

    def test_empty_values_decode_quietly(self):
        for value in (None, {}, [], ""):
            self.assertIsInstance(decode_resource_list(value), NoResources)

    def test_unrecognized_shape_is_logged(self):
        with self.assertLogs("lib.playlist.catalog", level="WARNING") as logs:
            decoded = decode_resource_list({"songs": {"href": "/x"}})
        self.assertIsInstance(decoded, NoResources)
        self.assertIn("songs", logs.output[0])
        self.assertEqual(normalize_resource_array({"songs": 1}), [])


class DecodeSingleResourceTests(unittest.TestCase):
    def test_first_of_list(self):
        self.assertEqual(decode_single_resource({"data": [A, B]}), SingleResource(resource=A, shape="first"))
        self.assertEqual(pick_first_resource([B, A]), B)

    def test_data_object(self):
        self.assertEqual(decode_single_resource({"data": A}), SingleResource(resource=A, shape="data"))

    def test_raw_object(self):
        self.assertEqual(decode_single_resource(A), SingleResource(resource=A, shape="raw"))

    def test_nothing(self):
        self.assertIsInstance(decode_single_resource(None), NoResources)
        self.assertIsInstance(decode_single_resource([]), NoResources)
        self.assertIsNone(pick_first_resource(None))


if __name__ == "__main__":
    unittest.main()
