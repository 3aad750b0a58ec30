"""Choropleth surface: projected region shapes plus a label scene on matplotlib."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from .config import RenderConfig

_LOGGER = logging.getLogger("suggestmap.surface")

_POINTS_PER_INCH = 72.0
_REGION_ZORDER = 1
_LABEL_ZORDER = 3


@dataclass(frozen=True, slots=True)
class _CanvasFit:
    """Uniform scale plus offsets from projected metres to screen pixels (y down)."""

    scale: float
    x_offset: float
    y_offset: float

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (self.scale * x + self.x_offset, -self.scale * y + self.y_offset)

    @property
    def affine(self) -> list[float]:
        return [self.scale, 0.0, 0.0, -self.scale, self.x_offset, self.y_offset]


class MapSurface:
    """One map scope drawn into a pixel-space matplotlib figure.

    Axes span the whole figure with limits equal to the canvas size, so
    data coordinates are screen pixels and label geometry can be computed
    without touching matplotlib transforms. Use as a context manager to
    scope the pick/resize listener registrations.
    """

    def __init__(
        self,
        shapes: Mapping[str, Any],
        scope: str,
        cfg: RenderConfig,
        *,
        interactive: bool = False,
    ) -> None:
        self.cfg = cfg
        self.scope = scope
        self.width_px = cfg.image.width_px
        self.height_px = cfg.image.height_px
        self.dpi = cfg.image.dpi

        self._transformer = _require_pyproj_transformer(cfg.projection.crs_for(scope))
        shapely_transform = _require_shapely_transform()
        affine_transform = _require_shapely_affine_transform()

        projected = {
            region_id: shapely_transform(self._transformer.transform, geometry)
            for region_id, geometry in shapes.items()
        }
        self._fit = _fit_to_canvas(
            projected.values(),
            width=self.width_px,
            height=self.height_px,
            padding=cfg.image.padding_px,
        )
        self._screen_geometries = {
            region_id: affine_transform(geometry, self._fit.affine)
            for region_id, geometry in projected.items()
        }
        _LOGGER.debug("Surface for scope '%s' has %d shapes", scope, len(self._screen_geometries))

        self._plt = _require_pyplot(interactive=interactive)
        self.figure = self._plt.figure(
            figsize=(self.width_px / self.dpi, self.height_px / self.dpi),
            dpi=self.dpi,
        )
        self.ax = self.figure.add_axes((0.0, 0.0, 1.0, 1.0))
        self.ax.set_xlim(0, self.width_px)
        self.ax.set_ylim(self.height_px, 0)
        self.ax.set_axis_off()
        self.figure.patch.set_facecolor(cfg.image.background)

        self._labels: list[Any] = []
        self._click_callbacks: dict[Any, Callable[[], None]] = {}
        self._connections: list[int] = []
        self._draw_regions()

    def __enter__(self) -> MapSurface:
        canvas = self.figure.canvas
        self._connections = [
            canvas.mpl_connect("pick_event", self._on_pick),
            canvas.mpl_connect("resize_event", self._on_resize),
        ]
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        canvas = self.figure.canvas
        for cid in self._connections:
            canvas.mpl_disconnect(cid)
        self._connections = []
        self._plt.close(self.figure)

    @property
    def connected(self) -> bool:
        return bool(self._connections)

    @property
    def region_ids(self) -> tuple[str, ...]:
        return tuple(self._screen_geometries)

    def projection(self, lon: float, lat: float) -> tuple[float, float]:
        x, y = self._transformer.transform(float(lon), float(lat))
        return self._fit.apply(float(x), float(y))

    def bounds(self, region_id: str) -> tuple[tuple[float, float], tuple[float, float]] | None:
        geometry = self._screen_geometries.get(region_id)
        if geometry is None or geometry.is_empty:
            return None
        x0, y0, x1, y1 = geometry.bounds
        return ((float(x0), float(y0)), (float(x1), float(y1)))

    def clear_labels(self) -> None:
        for artist in self._labels:
            artist.remove()
        self._labels = []
        self._click_callbacks = {}

    def add_label(self, text: str, *, font_size: float) -> Any:
        style = self.cfg.style
        artist = self.ax.text(
            0.0,
            0.0,
            text,
            color=style.label_color,
            fontsize=font_size * _POINTS_PER_INCH / self.dpi,
            family=style.font_family,
            ha="left",
            va="top",
            clip_on=False,
            parse_math=False,
            zorder=_LABEL_ZORDER,
        )
        self._labels.append(artist)
        return artist

    def measure_label(self, handle: Any) -> tuple[float, float]:
        """Rendered label extent in canvas pixels."""
        renderer = self.figure.canvas.get_renderer()
        bbox = handle.get_window_extent(renderer=renderer)
        inverse = self.ax.transData.inverted()
        (x0, y0), (x1, y1) = inverse.transform([[bbox.x0, bbox.y0], [bbox.x1, bbox.y1]])
        return (abs(float(x1) - float(x0)), abs(float(y1) - float(y0)))

    def move_label(self, handle: Any, x: float, y: float) -> None:
        handle.set_position((x, y))

    def on_label_click(self, handle: Any, callback: Callable[[], None]) -> None:
        handle.set_picker(True)
        self._click_callbacks[handle] = callback

    def resize(self, width_px: float, height_px: float) -> None:
        """Rescale the figure; pixel data coordinates stay the same."""
        if width_px <= 0 or height_px <= 0:
            return
        self.figure.set_size_inches(width_px / self.dpi, height_px / self.dpi, forward=False)
        self.figure.canvas.draw_idle()

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.figure.savefig(path, dpi=self.dpi, facecolor=self.figure.get_facecolor())
        return path

    def show(self) -> None:
        self._plt.show()

    def _on_pick(self, event: Any) -> None:
        callback = self._click_callbacks.get(event.artist)
        if callback is not None:
            callback()

    def _on_resize(self, event: Any) -> None:
        self.resize(float(event.width), float(event.height))

    def _draw_regions(self) -> None:
        style = self.cfg.style
        for geometry in self._screen_geometries.values():
            for polygon in _explode_polygons(geometry):
                xs, ys = polygon.exterior.xy
                self.ax.fill(
                    list(xs),
                    list(ys),
                    facecolor=style.fill_color,
                    edgecolor=style.border_color,
                    linewidth=style.border_width,
                    zorder=_REGION_ZORDER,
                )
                for interior in polygon.interiors:
                    hx, hy = interior.xy
                    self.ax.fill(
                        list(hx),
                        list(hy),
                        facecolor=self.cfg.image.background,
                        edgecolor=style.border_color,
                        linewidth=style.border_width,
                        zorder=_REGION_ZORDER,
                    )


def _fit_to_canvas(
    geometries: Iterable[Any],
    *,
    width: float,
    height: float,
    padding: float,
) -> _CanvasFit:
    bounds = [geometry.bounds for geometry in geometries if not geometry.is_empty]
    if not bounds:
        return _CanvasFit(scale=1.0, x_offset=0.0, y_offset=float(height))
    min_x = min(b[0] for b in bounds)
    min_y = min(b[1] for b in bounds)
    max_x = max(b[2] for b in bounds)
    max_y = max(b[3] for b in bounds)
    span_x = max_x - min_x
    span_y = max_y - min_y
    avail_w = width - 2.0 * padding
    avail_h = height - 2.0 * padding
    candidates = [avail_w / span_x if span_x > 0 else None, avail_h / span_y if span_y > 0 else None]
    scales = [s for s in candidates if s is not None]
    scale = min(scales) if scales else 1.0
    x_offset = padding + (avail_w - scale * span_x) / 2.0 - scale * min_x
    y_offset = padding + (avail_h - scale * span_y) / 2.0 + scale * max_y
    return _CanvasFit(scale=scale, x_offset=x_offset, y_offset=y_offset)


def _explode_polygons(geometry: Any) -> list[Any]:
    geom_type = getattr(geometry, "geom_type", "")
    if geom_type == "Polygon":
        return [geometry]
    if geom_type in {"MultiPolygon", "GeometryCollection"}:
        out: list[Any] = []
        for part in geometry.geoms:
            out.extend(_explode_polygons(part))
        return out
    return []


def _require_pyplot(*, interactive: bool) -> Any:
    try:
        import matplotlib

        if not interactive:
            matplotlib.use("Agg", force=False)
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for map rendering") from exc
    return plt


def _require_shapely_transform() -> Any:
    try:
        from shapely.ops import transform
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for geometry projection") from exc
    return transform


def _require_shapely_affine_transform() -> Any:
    try:
        from shapely.affinity import affine_transform
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for canvas fitting") from exc
    return affine_transform


@lru_cache(maxsize=8)
def _require_pyproj_transformer(crs: str) -> Any:
    try:
        from pyproj import Transformer
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for map projection") from exc
    return Transformer.from_crs("EPSG:4326", crs, always_xy=True)
