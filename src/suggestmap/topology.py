"""TopoJSON loading: raw records for the catalog, GeoPandas layers for the map."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

_LOGGER = logging.getLogger("suggestmap.topology")

_GEOGRAPHIC_CRS = "EPSG:4326"
_POLYGON_TYPES = frozenset({"Polygon", "MultiPolygon"})


def load_topology(path: Path) -> dict[str, Any]:
    """Read a TopoJSON file and check its top-level shape."""
    if not path.exists():
        raise FileNotFoundError(f"Topology file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, dict) or raw.get("type") != "Topology":
        raise ValueError(f"Expected a TopoJSON Topology object in {path}")
    if not isinstance(raw.get("objects"), dict):
        raise ValueError(f"Topology in {path} has no 'objects' mapping")
    return raw


def object_geometries(topology: Mapping[str, Any], name: str) -> list[Mapping[str, Any]]:
    """Raw geometry records of one named topology object, or [] when absent."""
    objects = topology.get("objects")
    if not isinstance(objects, Mapping):
        return []
    obj = objects.get(name)
    if not isinstance(obj, Mapping):
        return []
    geometries = obj.get("geometries")
    if not isinstance(geometries, list):
        return []
    return [geo for geo in geometries if isinstance(geo, Mapping)]


def load_scope_shapes(path: Path, scope: str) -> dict[str, Any]:
    """Polygons of one topology object in lon/lat, keyed by geometry id.

    Each top-level GeometryCollection is a layer of the TopoJSON driver.
    Unreadable layers raise ValueError naming the scope.
    """
    topology = load_topology(path)
    if scope not in topology["objects"]:
        _LOGGER.warning("Topology %s has no object for scope '%s'", path, scope)
        return {}

    gpd = _require_geopandas()
    try:
        frame = gpd.read_file(path, layer=scope)
    except (OSError, RuntimeError, ValueError) as exc:
        raise ValueError(f"Failed reading scope '{scope}' from {path}: {exc}") from exc
    if "id" not in frame.columns:
        raise ValueError(f"Scope '{scope}' in {path} has no 'id' field")
    frame = frame.set_crs(_GEOGRAPHIC_CRS) if frame.crs is None else frame.to_crs(_GEOGRAPHIC_CRS)

    shapes: dict[str, Any] = {}
    for region_id, geometry in zip(frame["id"], frame.geometry):
        if region_id is None or not isinstance(region_id, str) or not region_id.strip():
            continue
        if geometry is None or geometry.is_empty:
            _LOGGER.debug("Region %s in scope '%s' has no geometry", region_id, scope)
            continue
        if geometry.geom_type not in _POLYGON_TYPES:
            _LOGGER.debug("Skipping %s geometry %s in scope '%s'", geometry.geom_type, region_id, scope)
            continue
        shapes[region_id.strip()] = geometry
    return shapes


def _require_geopandas() -> Any:
    try:
        import geopandas as gpd
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("geopandas is required for topology loading") from exc
    return gpd
