"""Region lookup per map scope."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .models import Region
from .topology import object_geometries

_LOGGER = logging.getLogger("suggestmap.catalog")

KNOWN_SCOPES = ("national", "world")


class RegionCatalog:
    """Region id/name pairs for the known map scopes, derived once from a topology."""

    def __init__(self, topology: Mapping[str, Any]) -> None:
        self._regions: dict[str, tuple[Region, ...]] = {
            scope: _regions_from_geometries(topology, scope) for scope in KNOWN_SCOPES
        }

    def regions_for_scope(self, scope: str) -> tuple[Region, ...]:
        """Regions of `scope`; unknown scopes have no regions."""
        return self._regions.get(scope, ())


def _regions_from_geometries(topology: Mapping[str, Any], scope: str) -> tuple[Region, ...]:
    geometries = object_geometries(topology, scope)
    if not geometries:
        _LOGGER.warning("Topology has no geometries for scope '%s'", scope)
        return ()

    regions: list[Region] = []
    seen: set[str] = set()
    for geo in geometries:
        raw_id = geo.get("id")
        if raw_id is None or not str(raw_id).strip():
            continue
        region_id = str(raw_id).strip()
        if region_id in seen:
            raise ValueError(f"Duplicate region id '{region_id}' in scope '{scope}'")
        seen.add(region_id)
        properties = geo.get("properties")
        name = properties.get("name") if isinstance(properties, Mapping) else None
        if not isinstance(name, str) or not name.strip():
            name = region_id
        regions.append(Region(id=region_id, name=name.strip()))
    return tuple(regions)
