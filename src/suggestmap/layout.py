"""Label placement on top of the rendered map."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, Sequence

from .models import LabelPlacement, LayoutOverrides, Region, SuggestionResult

_LOGGER = logging.getLogger("suggestmap.layout")

DEFAULT_FONT_SIZE = 13.0

ClickHandler = Callable[[Region], object]
_ScreenBounds = tuple[tuple[float, float], tuple[float, float]]


class LabelScene(Protocol):
    """Drawing surface the layout engine writes labels into (screen pixels, y down)."""

    def projection(self, lon: float, lat: float) -> tuple[float, float]: ...

    def bounds(self, region_id: str) -> _ScreenBounds | None: ...

    def clear_labels(self) -> None: ...

    def add_label(self, text: str, *, font_size: float) -> Any: ...

    def measure_label(self, handle: Any) -> tuple[float, float]: ...

    def move_label(self, handle: Any, x: float, y: float) -> None: ...

    def on_label_click(self, handle: Any, callback: Callable[[], None]) -> None: ...


@dataclass(frozen=True, slots=True)
class LabelOptions:
    font_size: float = DEFAULT_FONT_SIZE
    click_handler: ClickHandler | None = None


class LabelLayoutEngine:
    """Compute label anchors per region and draw them into a scene.

    Regions outside the small-region cluster are centred on their screen
    bounding box, using the measured text extent; cluster members are
    stacked below a fixed projected anchor. Static adjustments are added
    last.
    """

    def __init__(self, scene: LabelScene, overrides: LayoutOverrides | None = None) -> None:
        self.scene = scene
        self.overrides = overrides if overrides is not None else LayoutOverrides()

    def place(
        self,
        regions: Sequence[Region],
        assignment: Mapping[str, SuggestionResult],
        options: LabelOptions | None = None,
    ) -> dict[str, LabelPlacement]:
        opts = options if options is not None else LabelOptions()
        self.scene.clear_labels()

        placements: dict[str, LabelPlacement] = {}
        for region in regions:
            result = assignment.get(region.id)
            if result is None or not result.has_highlight:
                continue
            placement = self._place_region(region, result, opts)
            if placement is not None:
                placements[region.id] = placement
        _LOGGER.debug("Placed %d labels for %d regions", len(placements), len(regions))
        return placements

    def _place_region(
        self,
        region: Region,
        result: SuggestionResult,
        opts: LabelOptions,
    ) -> LabelPlacement | None:
        cluster = self.overrides.cluster
        cluster_index = cluster.index_of(region.id) if cluster is not None else None

        if cluster is not None and cluster_index is not None:
            text = f"{region.id}:  {result.highlight}"
            handle = self.scene.add_label(text, font_size=opts.font_size)
            start_x, start_y = self.scene.projection(cluster.anchor_lon, cluster.anchor_lat)
            x = start_x
            y = start_y + cluster_index * (cluster.gap_px + opts.font_size)
        else:
            bounds = self.scene.bounds(region.id)
            if bounds is None:
                _LOGGER.debug("No shape on the map for region %s; label skipped", region.id)
                return None
            text = result.highlight
            handle = self.scene.add_label(text, font_size=opts.font_size)
            width, height = self.scene.measure_label(handle)
            (x0, y0), (x1, y1) = bounds
            x = x0 + ((x1 - x0) - width) / 2.0
            y = y0 + ((y1 - y0) - height) / 2.0

        adjustment = self.overrides.adjustments.get(region.id)
        if adjustment is not None:
            x += adjustment.x
            y += adjustment.y

        self.scene.move_label(handle, x, y)
        if opts.click_handler is not None:
            click_handler = opts.click_handler

            def on_click() -> None:
                click_handler(region)

            self.scene.on_label_click(handle, on_click)
        return LabelPlacement(region_id=region.id, text=text, x=x, y=y)
