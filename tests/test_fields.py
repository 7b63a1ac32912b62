"""
Unit tests for field probing helpers.
"""

import unittest

from opinion_iq.utils import fields as f


class TestProbe(unittest.TestCase):
    """Ordered alias probing."""

    def test_first_present_alias_wins(self):
        raw = {"yes_token_id": "B", "yesTokenId": "A"}
        self.assertEqual(f.probe(raw, f.YES_TOKEN_KEYS), "A")

    def test_skips_empty_values(self):
        raw = {"yesTokenId": "", "yes_token_id": "B"}
        self.assertEqual(f.probe(raw, f.YES_TOKEN_KEYS), "B")

    def test_default_when_absent_or_not_a_dict(self):
        self.assertEqual(f.probe({}, ("a",), "x"), "x")
        self.assertEqual(f.probe(["a"], ("a",), "x"), "x")

    def test_probe_id_stringifies_numbers(self):
        self.assertEqual(f.probe_id({"marketId": 1234}, f.MARKET_ID_KEYS), "1234")
        self.assertIsNone(f.probe_id({"marketId": {"nested": 1}}, f.MARKET_ID_KEYS))


class TestToFloat(unittest.TestCase):

    def test_numeric_strings(self):
        self.assertEqual(f.to_float("1,234.5"), 1234.5)
        self.assertEqual(f.to_float("$60000"), 60000.0)

    def test_garbage_degrades_to_default(self):
        self.assertEqual(f.to_float("abc"), 0.0)
        self.assertEqual(f.to_float(None), 0.0)
        self.assertEqual(f.to_float(True), 0.0)
        self.assertEqual(f.to_float(float("nan")), 0.0)
        self.assertEqual(f.to_float(float("inf"), default=-1.0), -1.0)


class TestProbeList(unittest.TestCase):

    def test_bare_array(self):
        self.assertEqual(f.probe_list([1, 2], f.LIST_KEYS), [1, 2])

    def test_wrapped_array(self):
        self.assertEqual(f.probe_list({"items": [1]}, f.LIST_KEYS), [1])
        self.assertEqual(f.probe_list({"list": [2], "items": [1]}, f.LIST_KEYS), [2])

    def test_unknown_shape(self):
        self.assertIsNone(f.probe_list({"rows": [1]}, f.LIST_KEYS))
        self.assertIsNone(f.probe_list("text", f.LIST_KEYS))


if __name__ == "__main__":
    unittest.main()
