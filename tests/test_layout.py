import unittest

from suggestmap.layout import LabelLayoutEngine, LabelOptions
from suggestmap.models import Adjustment, LayoutOverrides, Region, SmallRegionCluster, SuggestionResult


class FakeLabel:
    def __init__(self, text, font_size):
        self.text = text
        self.font_size = font_size
        self.position = None
        self.click = None


class FakeScene:
    """Each character is 7px wide; a line is font_size px tall."""

    CHAR_WIDTH = 7.0

    def __init__(self, bounds):
        self._bounds = bounds
        self.labels = []
        self.cleared = 0

    def projection(self, lon, lat):
        return (lon * 10.0 + 1000.0, 500.0 - lat * 10.0)

    def bounds(self, region_id):
        return self._bounds.get(region_id)

    def clear_labels(self):
        self.cleared += 1
        self.labels = []

    def add_label(self, text, *, font_size):
        label = FakeLabel(text, font_size)
        self.labels.append(label)
        return label

    def measure_label(self, handle):
        return (len(handle.text) * self.CHAR_WIDTH, handle.font_size)

    def move_label(self, handle, x, y):
        handle.position = (x, y)

    def on_label_click(self, handle, callback):
        handle.click = callback


TX = Region(id="TX", name="Texas")
OH = Region(id="OH", name="Ohio")
CA = Region(id="CA", name="California")
RI = Region(id="RI", name="Rhode Island")
CT = Region(id="CT", name="Connecticut")
DE = Region(id="DE", name="Delaware")

BOUNDS = {
    "TX": ((100.0, 200.0), (300.0, 400.0)),
    "OH": ((500.0, 100.0), (540.0, 160.0)),
    "CA": ((0.0, 0.0), (80.0, 200.0)),
}

CLUSTER = SmallRegionCluster(region_ids=("RI", "CT", "DE"), anchor_lon=-70.0, anchor_lat=41.5, gap_px=5.0)


def _hit(text):
    return SuggestionResult(highlight=text, suggestion=f"full {text}")


class TestLabelLayoutEngine(unittest.TestCase):
    def setUp(self):
        self.scene = FakeScene(BOUNDS)
        self.engine = LabelLayoutEngine(
            self.scene,
            LayoutOverrides(adjustments={"CA": Adjustment(x=-50.0)}, cluster=CLUSTER),
        )

    def test_bounding_box_center_minus_half_label_extent(self):
        placements = self.engine.place([TX], {"TX": _hit("big")}, LabelOptions(font_size=13))
        width = 3 * FakeScene.CHAR_WIDTH
        self.assertEqual(placements["TX"].x, 100.0 + (200.0 - width) / 2.0)
        self.assertEqual(placements["TX"].y, 200.0 + (200.0 - 13.0) / 2.0)
        self.assertEqual(self.scene.labels[0].position, (placements["TX"].x, placements["TX"].y))
        self.assertEqual(self.scene.labels[0].text, "big")

    def test_adjustment_added_after_placement(self):
        plain = LabelLayoutEngine(FakeScene(BOUNDS)).place([CA], {"CA": _hit("gold")})
        adjusted = self.engine.place([CA], {"CA": _hit("gold")})
        self.assertEqual(adjusted["CA"].x, plain["CA"].x - 50.0)
        self.assertEqual(adjusted["CA"].y, plain["CA"].y)

    def test_cluster_members_stack_in_configured_order(self):
        assignment = {"DE": _hit("d"), "RI": _hit("r"), "CT": _hit("c")}
        placements = self.engine.place([DE, CT, RI], assignment, LabelOptions(font_size=13))
        anchor_x, anchor_y = self.scene.projection(-70.0, 41.5)
        ys = [placements[rid].y for rid in CLUSTER.region_ids]
        for idx, rid in enumerate(CLUSTER.region_ids):
            self.assertEqual(placements[rid].x, anchor_x)
            self.assertEqual(placements[rid].y, anchor_y + idx * (5.0 + 13.0))
        self.assertEqual(ys, sorted(ys))
        self.assertEqual([b - a for a, b in zip(ys, ys[1:])], [18.0, 18.0])

    def test_cluster_labels_prefixed_with_region_id(self):
        placements = self.engine.place([RI], {"RI": _hit("tiny")})
        self.assertEqual(placements["RI"].text, "RI:  tiny")

    def test_cluster_spacing_follows_font_size(self):
        placements = self.engine.place(
            [RI, CT], {"RI": _hit("a"), "CT": _hit("b")}, LabelOptions(font_size=20)
        )
        self.assertEqual(placements["CT"].y - placements["RI"].y, 25.0)

    def test_empty_highlight_draws_nothing(self):
        clicks = []
        placements = self.engine.place(
            [TX, OH],
            {"TX": SuggestionResult.empty(), "OH": _hit("buckeye")},
            LabelOptions(click_handler=clicks.append),
        )
        self.assertEqual(list(placements), ["OH"])
        self.assertEqual([label.text for label in self.scene.labels], ["buckeye"])
        self.assertEqual(sum(1 for label in self.scene.labels if label.click), 1)

    def test_missing_assignment_or_shape_skipped(self):
        placements = self.engine.place(
            [TX, Region(id="ZZ", name="Nowhere")], {"ZZ": _hit("lost")}
        )
        self.assertEqual(placements, {})
        self.assertEqual(self.scene.labels, [])

    def test_click_invokes_handler_with_region(self):
        clicked = []
        self.engine.place([OH], {"OH": _hit("buckeye")}, LabelOptions(click_handler=clicked.append))
        self.scene.labels[0].click()
        self.assertEqual(clicked, [OH])

    def test_handler_return_value_ignored(self):
        opened = []

        def open_and_report(region):
            opened.append(region.id)
            return True

        self.engine.place([OH], {"OH": _hit("buckeye")}, LabelOptions(click_handler=open_and_report))
        self.assertIsNone(self.scene.labels[0].click())
        self.assertEqual(opened, ["OH"])

    def test_previous_labels_cleared(self):
        self.engine.place([TX], {"TX": _hit("one")})
        self.engine.place([OH], {"OH": _hit("two")})
        self.assertEqual(self.scene.cleared, 2)
        self.assertEqual([label.text for label in self.scene.labels], ["two"])

    def test_default_font_size(self):
        self.engine.place([TX], {"TX": _hit("x")})
        self.assertEqual(self.scene.labels[0].font_size, 13.0)

    def test_placement_is_deterministic(self):
        assignment = {"TX": _hit("a"), "RI": _hit("b"), "CA": _hit("c")}
        first = self.engine.place([TX, RI, CA], assignment)
        second = self.engine.place([TX, RI, CA], assignment)
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
