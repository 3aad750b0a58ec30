import unittest

from suggestmap.state import QueryStringState, initial_query


class TestQueryStringState(unittest.TestCase):
    def test_reads_parameter(self):
        state = QueryStringState("https://maps.example.org/?q=why+is+___+so")
        self.assertEqual(state.get(), "why is ___ so")

    def test_missing_parameter(self):
        self.assertIsNone(QueryStringState("https://maps.example.org/").get())

    def test_set_replaces_and_keeps_other_params(self):
        state = QueryStringState("https://maps.example.org/app?q=old&lang=en#map")
        url = state.set("new query")
        self.assertEqual(url, "https://maps.example.org/app?lang=en&q=new+query#map")
        self.assertEqual(state.get(), "new query")

    def test_custom_parameter_name(self):
        state = QueryStringState("https://maps.example.org/?search=tacos", param="search")
        self.assertEqual(state.get(), "tacos")


class TestInitialQuery(unittest.TestCase):
    def test_falls_back_to_default(self):
        self.assertEqual(initial_query(QueryStringState("http://localhost/"), "default"), "default")
        self.assertEqual(initial_query(QueryStringState("http://localhost/?q="), "default"), "default")

    def test_prefers_query_string(self):
        self.assertEqual(initial_query(QueryStringState("http://localhost/?q=mine"), "default"), "mine")


if __name__ == "__main__":
    unittest.main()
