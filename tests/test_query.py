import unittest

from suggestmap.query import preview, substitute


class TestSubstitute(unittest.TestCase):
    def test_placeholder_run_replaced(self):
        self.assertEqual(substitute("visit ___", "Texas"), "visit Texas")

    def test_place_appended_without_placeholder(self):
        self.assertEqual(substitute("visit", "Texas"), "visit Texas")

    def test_every_run_replaced(self):
        self.assertEqual(substitute("see __ and __", "Ohio"), "see Ohio and Ohio")

    def test_placeholder_at_start(self):
        self.assertEqual(substitute("_ is the best", "Utah"), "Utah is the best")

    def test_place_name_is_literal(self):
        self.assertEqual(substitute("why is _", r"A\1B"), r"why is A\1B")

    def test_preview_uses_placeholder_phrase(self):
        self.assertEqual(preview("why is ___ so"), "why is {state name} so")
        self.assertEqual(preview("best pizza in", "{country}"), "best pizza in {country}")


if __name__ == "__main__":
    unittest.main()
