"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str, *, minimum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    if minimum is not None and value < minimum:
        raise ValueError(f"'{field_name}' must be >= {minimum}")
    return value


def _float(value: Any, field_name: str, *, positive: bool = False) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Expected number for '{field_name}'")
    if positive and value <= 0:
        raise ValueError(f"'{field_name}' must be > 0")
    return float(value)


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _str_tuple(value: Any, field_name: str) -> tuple[str, ...]:
    """A YAML list of strings; an empty key (`sample_queries:`) means none."""
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    return tuple(_str(item, f"{field_name}[{idx}]") for idx, item in enumerate(value))


def _config_path(value: Any, field_name: str, root_dir: Path) -> Path:
    """Paths in the config are relative to the config file's directory."""
    path = Path(_str(value, field_name)).expanduser()
    return path if path.is_absolute() else root_dir / path


@dataclass(frozen=True, slots=True)
class SuggestConfig:
    base_url: str
    client: str
    callback: str
    search_url: str
    request_timeout_s: float
    user_agent: str
    cache_http: bool
    allowed_resources: tuple[str, ...]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SuggestConfig:
        timeout = _float(raw.get("request_timeout_s", 10), "suggest.request_timeout_s", positive=True)
        base_url = _str(raw.get("base_url"), "suggest.base_url")
        allowed_raw = raw.get("allowed_resources")
        allowed = (
            ("self", base_url)
            if allowed_raw is None
            else _str_tuple(allowed_raw, "suggest.allowed_resources")
        )
        return cls(
            base_url=base_url,
            client=_str(raw.get("client", "psy-ab"), "suggest.client"),
            callback=_str(raw.get("callback", "suggestmap_cb"), "suggest.callback"),
            search_url=_str(raw.get("search_url"), "suggest.search_url"),
            request_timeout_s=timeout,
            user_agent=_str(raw.get("user_agent"), "suggest.user_agent"),
            cache_http=_bool(raw.get("cache_http", True), "suggest.cache_http"),
            allowed_resources=allowed,
        )


@dataclass(frozen=True, slots=True)
class MapConfig:
    topology: Path
    scope: str
    default_query: str
    query_param: str
    page_url: str
    preview_placeholder: str
    sample_queries: tuple[str, ...]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> MapConfig:
        return cls(
            topology=_config_path(raw.get("topology"), "map.topology", root_dir),
            scope=_str(raw.get("scope"), "map.scope"),
            default_query=_str(raw.get("default_query"), "map.default_query"),
            query_param=_str(raw.get("query_param", "q"), "map.query_param"),
            page_url=_str(raw.get("page_url"), "map.page_url"),
            preview_placeholder=_str(
                raw.get("preview_placeholder", "{state name}"), "map.preview_placeholder"
            ),
            sample_queries=_str_tuple(raw.get("sample_queries"), "map.sample_queries"),
        )


@dataclass(frozen=True, slots=True)
class RenderImageConfig:
    width_px: int
    height_px: int
    dpi: int
    padding_px: int
    background: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RenderImageConfig:
        width = _int(raw.get("width_px"), "render.image.width_px", minimum=1)
        height = _int(raw.get("height_px"), "render.image.height_px", minimum=1)
        dpi = _int(raw.get("dpi"), "render.image.dpi", minimum=1)
        padding = _int(raw.get("padding_px", 10), "render.image.padding_px", minimum=0)
        if 2 * padding >= min(width, height):
            raise ValueError("render.image.padding_px must be smaller than half the canvas")
        return cls(
            width_px=width,
            height_px=height,
            dpi=dpi,
            padding_px=padding,
            background=_str(raw.get("background", "white"), "render.image.background"),
        )


@dataclass(frozen=True, slots=True)
class ProjectionConfig:
    default_crs: str
    crs_by_scope: Mapping[str, str]

    def crs_for(self, scope: str) -> str:
        return self.crs_by_scope.get(scope, self.default_crs)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ProjectionConfig:
        scopes_raw = raw.get("by_scope", {})
        scopes = _mapping({} if scopes_raw is None else scopes_raw, "render.projection.by_scope")
        return cls(
            default_crs=_str(raw.get("crs"), "render.projection.crs"),
            crs_by_scope={
                _str(scope, "render.projection.by_scope key"): _str(
                    crs, f"render.projection.by_scope.{scope}"
                )
                for scope, crs in scopes.items()
            },
        )


@dataclass(frozen=True, slots=True)
class RenderStyleConfig:
    fill_color: str
    border_color: str
    border_width: float
    label_color: str
    font_family: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RenderStyleConfig:
        return cls(
            fill_color=_str(raw.get("fill_color"), "render.style.fill_color"),
            border_color=_str(raw.get("border_color"), "render.style.border_color"),
            border_width=_float(raw.get("border_width"), "render.style.border_width"),
            label_color=_str(raw.get("label_color"), "render.style.label_color"),
            font_family=_str(raw.get("font_family"), "render.style.font_family"),
        )


@dataclass(frozen=True, slots=True)
class LabelsConfig:
    font_size_px: float
    overrides: Path

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> LabelsConfig:
        font_size = _float(raw.get("font_size_px", 13), "render.labels.font_size_px", positive=True)
        return cls(
            font_size_px=font_size,
            overrides=_config_path(raw.get("overrides"), "render.labels.overrides", root_dir),
        )


@dataclass(frozen=True, slots=True)
class RenderConfig:
    image: RenderImageConfig
    projection: ProjectionConfig
    style: RenderStyleConfig
    labels: LabelsConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> RenderConfig:
        return cls(
            image=RenderImageConfig.from_mapping(_mapping(raw.get("image"), "render.image")),
            projection=ProjectionConfig.from_mapping(
                _mapping(raw.get("projection"), "render.projection")
            ),
            style=RenderStyleConfig.from_mapping(_mapping(raw.get("style"), "render.style")),
            labels=LabelsConfig.from_mapping(_mapping(raw.get("labels"), "render.labels"), root_dir),
        )


@dataclass(frozen=True, slots=True)
class PathsConfig:
    output_dir: Path
    logs_dir: Path

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.output_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            output_dir=_config_path(raw.get("output_dir"), "paths.output_dir", root_dir),
            logs_dir=_config_path(raw.get("logs_dir"), "paths.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    suggest: SuggestConfig
    map: MapConfig
    render: RenderConfig
    paths: PathsConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            suggest=SuggestConfig.from_mapping(_mapping(raw.get("suggest"), "suggest")),
            map=MapConfig.from_mapping(_mapping(raw.get("map"), "map"), root_dir),
            render=RenderConfig.from_mapping(_mapping(raw.get("render"), "render"), root_dir),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
