"""Validation layer for config, topology and label layout files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .catalog import KNOWN_SCOPES, RegionCatalog
from .config import AppConfig
from .layout_overrides import load_layout_overrides
from .models import LayoutOverrides, Region
from .suggest import ResourcePolicy
from .topology import load_scope_shapes, load_topology
from .util import format_code_list


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class Validator:
    """Cross-checks the config against the topology and layout overrides."""

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg

    def run(self, *, strict: bool = False) -> ValidationReport:
        report = ValidationReport()
        self._validate_suggest(report)
        self._validate_queries(report)
        topology = self._load_topology(report)
        regions_by_scope: dict[str, tuple[Region, ...]] = {}
        if topology is not None:
            regions_by_scope = self._validate_scopes(report, topology)
        overrides = self._load_overrides(report)
        if overrides is not None and regions_by_scope:
            self._validate_overrides(report, overrides, regions_by_scope, strict=strict)
        return report

    def _validate_suggest(self, report: ValidationReport) -> None:
        policy = ResourcePolicy(
            page_url=self.cfg.map.page_url,
            allowed=self.cfg.suggest.allowed_resources,
        )
        if not policy.is_allowed(self.cfg.suggest.base_url):
            report.add_error(
                f"Suggestion endpoint {self.cfg.suggest.base_url} is not in suggest.allowed_resources"
            )
        if not self.cfg.suggest.search_url.startswith(("http://", "https://")):
            report.add_error(f"suggest.search_url must be an http(s) URL: {self.cfg.suggest.search_url}")

    def _validate_queries(self, report: ValidationReport) -> None:
        if self.cfg.map.scope not in KNOWN_SCOPES:
            report.add_error(
                f"map.scope '{self.cfg.map.scope}' is not one of: {', '.join(KNOWN_SCOPES)}"
            )
        report.add_info(f"Configured {len(self.cfg.map.sample_queries)} sample queries")

    def _load_topology(self, report: ValidationReport) -> Mapping[str, Any] | None:
        try:
            topology = load_topology(self.cfg.map.topology)
        except (OSError, ValueError) as exc:
            report.add_error(f"Failed loading topology: {exc}")
            return None
        report.add_info(f"Loaded topology {self.cfg.map.topology}")
        return topology

    def _validate_scopes(
        self,
        report: ValidationReport,
        topology: Mapping[str, Any],
    ) -> dict[str, tuple[Region, ...]]:
        try:
            catalog = RegionCatalog(topology)
        except ValueError as exc:
            report.add_error(f"Invalid region catalog: {exc}")
            return {}

        out: dict[str, tuple[Region, ...]] = {}
        for scope in KNOWN_SCOPES:
            regions = catalog.regions_for_scope(scope)
            out[scope] = regions
            if not regions:
                report.add_warning(f"Scope '{scope}' has no regions")
                continue
            report.add_info(f"Scope '{scope}': {len(regions)} regions")
            try:
                shapes = load_scope_shapes(self.cfg.map.topology, scope)
            except ValueError as exc:
                report.add_error(str(exc))
                continue
            missing = sorted(region.id for region in regions if region.id not in shapes)
            if missing:
                report.add_warning(
                    f"Scope '{scope}' regions without a drawable shape: {format_code_list(missing)}"
                )
        return out

    def _load_overrides(self, report: ValidationReport) -> dict[str, LayoutOverrides] | None:
        path = self.cfg.render.labels.overrides
        if not path.exists():
            report.add_warning(f"Label layout overrides not found: {path}")
            return {}
        try:
            overrides = load_layout_overrides(path)
        except (OSError, ValueError) as exc:
            report.add_error(f"Failed parsing label layout overrides: {exc}")
            return None
        report.add_info(f"Loaded label layout overrides for {len(overrides)} scopes")
        return overrides

    def _validate_overrides(
        self,
        report: ValidationReport,
        overrides: Mapping[str, LayoutOverrides],
        regions_by_scope: Mapping[str, tuple[Region, ...]],
        *,
        strict: bool,
    ) -> None:
        for scope, scoped in overrides.items():
            if scope not in regions_by_scope:
                self._add_quality_issue(
                    report, f"Label layout overrides for unknown scope '{scope}'", strict=strict
                )
                continue
            known = {region.id for region in regions_by_scope[scope]}
            unknown_adjustments = sorted(set(scoped.adjustments) - known)
            if unknown_adjustments:
                self._add_quality_issue(
                    report,
                    f"Scope '{scope}' adjustments for unknown regions: "
                    f"{format_code_list(unknown_adjustments)}",
                    strict=strict,
                )
            if scoped.cluster is None:
                continue
            unknown_members = [rid for rid in scoped.cluster.region_ids if rid not in known]
            if unknown_members:
                self._add_quality_issue(
                    report,
                    f"Scope '{scope}' cluster lists unknown regions: "
                    f"{format_code_list(unknown_members)}",
                    strict=strict,
                )

    @staticmethod
    def _add_quality_issue(report: ValidationReport, msg: str, *, strict: bool) -> None:
        if strict:
            report.add_error(msg)
        else:
            report.add_warning(msg)


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    for info in report.infos:
        yield f"[INFO] {info}"
    for warning in report.warnings:
        yield f"[WARN] {warning}"
    for error in report.errors:
        yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."
