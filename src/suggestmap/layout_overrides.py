"""Label layout override loading."""

from __future__ import annotations

from pathlib import Path

import yaml

from .models import Adjustment, LayoutOverrides, SmallRegionCluster


def load_layout_overrides(path: Path) -> dict[str, LayoutOverrides]:
    """Load optional per-scope label adjustments and small-region clusters."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in {path}")

    overrides: dict[str, LayoutOverrides] = {}
    for scope_raw, value in raw.items():
        if not isinstance(scope_raw, str) or not scope_raw.strip():
            raise ValueError(f"Layout override key must be a scope name in {path}")
        scope = scope_raw.strip()
        if value is None:
            overrides[scope] = LayoutOverrides()
            continue
        if not isinstance(value, dict):
            raise ValueError(f"Layout override value for {scope} must be a mapping in {path}")
        overrides[scope] = _scope_overrides(scope, value, path)
    return overrides


def _scope_overrides(scope: str, value: dict, path: Path) -> LayoutOverrides:
    adjustments_raw = value.get("adjustments") or {}
    if not isinstance(adjustments_raw, dict):
        raise ValueError(f"Expected mapping for '{scope}.adjustments' in {path}")
    adjustments: dict[str, Adjustment] = {}
    for region_id, adjustment in adjustments_raw.items():
        key = str(region_id).strip()
        if not key:
            raise ValueError(f"Empty region id in '{scope}.adjustments' in {path}")
        if not isinstance(adjustment, dict):
            raise ValueError(f"Adjustment for {scope}.{key} must be a mapping in {path}")
        adjustments[key] = Adjustment.from_mapping(adjustment, key)

    cluster_raw = value.get("cluster")
    cluster: SmallRegionCluster | None
    if cluster_raw is None:
        cluster = None
    elif isinstance(cluster_raw, dict):
        cluster = SmallRegionCluster.from_mapping(cluster_raw, scope)
    else:
        raise ValueError(f"Expected mapping for '{scope}.cluster' in {path}")
    return LayoutOverrides(adjustments=adjustments, cluster=cluster)
