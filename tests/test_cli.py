import json
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

import yaml

from suggestmap.cli import main
from suggestmap.models import SuggestionResult

REPO_ROOT = Path(__file__).resolve().parents[1]


class StubFetcher:
    def __init__(self):
        self.phrases = []

    async def fetch(self, search_phrase):
        self.phrases.append(search_phrase)
        return SuggestionResult(highlight="so big", suggestion=f"{search_phrase} big")


class TestCli(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = Path(tmp.name)
        with (REPO_ROOT / "config.yaml").open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
        raw["map"]["topology"] = str(REPO_ROOT / "data" / "sample_topology.json")
        raw["render"]["labels"]["overrides"] = str(REPO_ROOT / "data" / "label_layout.yaml")
        raw["paths"] = {"output_dir": "build/maps", "logs_dir": "build/logs"}
        self.config = self.tmp / "config.yaml"
        self.config.write_text(yaml.safe_dump(raw), encoding="utf-8")

    def test_preview(self):
        with self.assertLogs("suggestmap.cli", level="INFO") as logs:
            code = main(["preview", "--config", str(self.config), "--query", "visit ___ today"])
        self.assertEqual(code, 0)
        self.assertIn("visit {state name} today", "\n".join(logs.output))

    def test_regions(self):
        with self.assertLogs("suggestmap.cli", level="INFO") as logs:
            code = main(["regions", "--config", str(self.config), "--scope", "world"])
        self.assertEqual(code, 0)
        output = "\n".join(logs.output)
        self.assertIn("3 regions in scope 'world'", output)

    def test_missing_config(self):
        self.assertEqual(main(["preview", "--config", str(self.tmp / "nope.yaml")]), 1)

    def test_search_writes_map_and_report(self):
        fetcher = StubFetcher()
        output = self.tmp / "map.png"
        report = self.tmp / "labels.json"
        with mock.patch("suggestmap.cli.SuggestionFetcher", return_value=fetcher):
            code = main(
                [
                    "search",
                    "--config",
                    str(self.config),
                    "--query",
                    "why is ___ so",
                    "--output",
                    str(output),
                    "--json",
                    str(report),
                ]
            )
        self.assertEqual(code, 0)
        self.assertIn("why is Texas so", fetcher.phrases)
        self.assertTrue(output.exists())

        payload = json.loads(report.read_text(encoding="utf-8"))
        self.assertEqual(payload["query"], "why is ___ so")
        self.assertEqual(payload["labels"]["TX"]["highlight"], "so big")
        self.assertEqual(payload["placements"]["RI"]["text"], "RI:  so big")
        self.assertEqual(payload["share_url"], "http://localhost:8000/?q=why+is+___+so")

    def test_unreadable_topology_layer_exits_with_error(self):
        broken = SimpleNamespace(read_file=mock.Mock(side_effect=RuntimeError("bad arc index")))
        with mock.patch("suggestmap.topology._require_geopandas", return_value=broken):
            with mock.patch("suggestmap.cli.SuggestionFetcher", return_value=StubFetcher()):
                self.assertEqual(main(["search", "--config", str(self.config)]), 1)
            self.assertEqual(main(["validate", "--config", str(self.config)]), 1)

    def test_search_out_of_range_sample(self):
        with mock.patch("suggestmap.cli.SuggestionFetcher", return_value=StubFetcher()):
            code = main(["search", "--config", str(self.config), "--sample", "99"])
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
