"""Domain models shared across search and layout modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _optional_number(value: Any, field_name: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected numeric value for '{field_name}'")
    return float(value)


@dataclass(frozen=True, slots=True)
class Region:
    """One mappable unit of a map scope."""

    id: str
    name: str


@dataclass(frozen=True, slots=True)
class SuggestionResult:
    """Highlighted span and full text of the chosen autocomplete entry."""

    highlight: str = ""
    suggestion: str = ""

    @classmethod
    def empty(cls) -> SuggestionResult:
        return cls(highlight="", suggestion="")

    @property
    def has_highlight(self) -> bool:
        return bool(self.highlight)

    def to_dict(self) -> dict[str, str]:
        return {"highlight": self.highlight, "suggestion": self.suggestion}


LabelAssignment = dict[str, SuggestionResult]


@dataclass(frozen=True, slots=True)
class Adjustment:
    """Fixed pixel nudge applied after a label has been placed."""

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], region_id: str = "") -> Adjustment:
        prefix = f"adjustments.{region_id}" if region_id else "adjustments"
        return cls(
            x=_optional_number(data.get("x"), f"{prefix}.x"),
            y=_optional_number(data.get("y"), f"{prefix}.y"),
        )


@dataclass(frozen=True, slots=True)
class SmallRegionCluster:
    """Regions drawn as a stacked legend near a fixed anchor."""

    region_ids: tuple[str, ...]
    anchor_lon: float
    anchor_lat: float
    gap_px: float = 5.0

    def index_of(self, region_id: str) -> int | None:
        try:
            return self.region_ids.index(region_id)
        except ValueError:
            return None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], scope: str = "") -> SmallRegionCluster:
        prefix = f"{scope}.cluster" if scope else "cluster"
        anchor = data.get("anchor")
        if not isinstance(anchor, Mapping):
            raise ValueError(f"Expected mapping for '{prefix}.anchor'")
        lon = anchor.get("lon")
        lat = anchor.get("lat")
        if isinstance(lon, bool) or not isinstance(lon, (int, float)):
            raise ValueError(f"Expected numeric value for '{prefix}.anchor.lon'")
        if isinstance(lat, bool) or not isinstance(lat, (int, float)):
            raise ValueError(f"Expected numeric value for '{prefix}.anchor.lat'")
        if not -180.0 <= float(lon) <= 180.0:
            raise ValueError(f"{prefix}.anchor.lon must be between -180 and 180")
        if not -90.0 <= float(lat) <= 90.0:
            raise ValueError(f"{prefix}.anchor.lat must be between -90 and 90")

        regions_raw = data.get("regions", [])
        if not isinstance(regions_raw, list):
            raise ValueError(f"Expected list for '{prefix}.regions'")
        region_ids = tuple(_require_str(item, f"{prefix}.regions[]") for item in regions_raw)
        if len(set(region_ids)) != len(region_ids):
            raise ValueError(f"Duplicate region id in '{prefix}.regions'")

        gap = _optional_number(data.get("gap_px", 5), f"{prefix}.gap_px")
        if gap < 0:
            raise ValueError(f"{prefix}.gap_px must be >= 0")
        return cls(region_ids=region_ids, anchor_lon=float(lon), anchor_lat=float(lat), gap_px=gap)


@dataclass(frozen=True, slots=True)
class LayoutOverrides:
    """Static per-scope label tuning tables."""

    adjustments: Mapping[str, Adjustment] = field(default_factory=dict)
    cluster: SmallRegionCluster | None = None


@dataclass(frozen=True, slots=True)
class LabelPlacement:
    region_id: str
    text: str
    x: float
    y: float

    def to_dict(self) -> dict[str, Any]:
        return {"region_id": self.region_id, "text": self.text, "x": self.x, "y": self.y}


@dataclass(frozen=True, slots=True)
class SearchOutcome:
    """Published result of one search cycle."""

    generation: int
    query: str
    scope: str
    assignment: Mapping[str, SuggestionResult]
    click_queries: Mapping[str, str]
    placements: Mapping[str, LabelPlacement]

    def to_dict(self) -> dict[str, Any]:
        return {
            "generation": self.generation,
            "query": self.query,
            "scope": self.scope,
            "labels": {
                region_id: result.to_dict() for region_id, result in self.assignment.items()
            },
            "click_queries": dict(self.click_queries),
            "placements": {
                region_id: placement.to_dict() for region_id, placement in self.placements.items()
            },
        }
