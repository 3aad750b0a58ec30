import json
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

from suggestmap.config import load_config
from suggestmap.validate import ValidationReport, Validator, format_report_lines

REPO_ROOT = Path(__file__).resolve().parents[1]


class TestValidator(unittest.TestCase):
    def setUp(self):
        self.cfg = load_config(REPO_ROOT / "config.yaml")

    def test_shipped_files_validate(self):
        report = Validator(self.cfg).run()
        self.assertTrue(report.ok, report.errors)
        self.assertIn("Scope 'national': 5 regions", report.infos)
        self.assertTrue(any("cluster lists unknown regions" in w for w in report.warnings))

    def test_strict_turns_unknown_override_ids_into_errors(self):
        report = Validator(self.cfg).run(strict=True)
        self.assertFalse(report.ok)
        self.assertTrue(any("adjustments for unknown regions" in e for e in report.errors))

    def test_disallowed_endpoint(self):
        suggest = replace(self.cfg.suggest, allowed_resources=("self",))
        report = Validator(replace(self.cfg, suggest=suggest)).run()
        self.assertTrue(any("not in suggest.allowed_resources" in e for e in report.errors))

    def test_bad_topology(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "topology.json"
            path.write_text(json.dumps({"type": "FeatureCollection"}), encoding="utf-8")
            cfg = replace(self.cfg, map=replace(self.cfg.map, topology=path))
            report = Validator(cfg).run()
        self.assertFalse(report.ok)
        self.assertTrue(report.errors[0].startswith("Failed loading topology"))

    def test_unreadable_scope_layer_reported(self):
        broken = SimpleNamespace(read_file=mock.Mock(side_effect=RuntimeError("bad arc index")))
        with mock.patch("suggestmap.topology._require_geopandas", return_value=broken):
            report = Validator(self.cfg).run()
        self.assertFalse(report.ok)
        self.assertTrue(any("Failed reading scope 'national'" in e for e in report.errors))
        self.assertIn("[ERROR]", "\n".join(format_report_lines(report)))


class TestFormatReportLines(unittest.TestCase):
    def test_ok_line_only_without_errors(self):
        report = ValidationReport()
        report.add_info("loaded")
        report.add_warning("odd")
        self.assertEqual(
            list(format_report_lines(report)),
            ["[INFO] loaded", "[WARN] odd", "[OK] Validation completed with no errors."],
        )
        report.add_error("broken")
        self.assertEqual(list(format_report_lines(report))[-1], "[ERROR] broken")


if __name__ == "__main__":
    unittest.main()
