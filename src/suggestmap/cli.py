"""CLI entrypoint for the suggestion map."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Sequence

import requests

from .catalog import KNOWN_SCOPES, RegionCatalog
from .config import AppConfig, load_config
from .layout import LabelLayoutEngine
from .layout_overrides import load_layout_overrides
from .models import LayoutOverrides, SearchOutcome
from .query import preview
from .search import SearchOrchestrator
from .state import QueryStringState, initial_query
from .suggest import ResourceNotAllowedError, ResourcePolicy, SuggestionFetcher
from .surface import MapSurface
from .topology import load_scope_shapes, load_topology
from .util import ensure_directories, format_code_list, setup_logging, write_json
from .validate import Validator, format_report_lines

LOGGER = logging.getLogger("suggestmap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="suggestmap",
        description="Label map regions with autocomplete suggestions.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")
        p.add_argument("--scope", default=None, help="Map scope (national or world).")

    search_p = subparsers.add_parser("search", help="Run a search and render the labelled map.")
    add_common(search_p)
    query_group = search_p.add_mutually_exclusive_group()
    query_group.add_argument("--query", default=None, help="Query; '_' runs mark the place name.")
    query_group.add_argument(
        "--sample",
        type=int,
        default=None,
        help="Use the configured sample query at this index.",
    )
    query_group.add_argument(
        "--share-url",
        default=None,
        help="Shareable page URL to read the query from.",
    )
    search_p.add_argument("--output", default=None, help="PNG output path.")
    search_p.add_argument("--json", dest="json_path", default=None, help="JSON label report path.")
    search_p.add_argument(
        "--show",
        action="store_true",
        help="Open an interactive window; clicking a label opens the search.",
    )

    regions_p = subparsers.add_parser("regions", help="List the regions of a map scope.")
    add_common(regions_p)

    preview_p = subparsers.add_parser("preview", help="Print the substituted query preview.")
    add_common(preview_p)
    preview_p.add_argument("--query", default=None, help="Query to preview.")

    validate_p = subparsers.add_parser(
        "validate", help="Check config against the topology and label layout files."
    )
    add_common(validate_p)
    validate_p.add_argument(
        "--strict",
        action="store_true",
        help="Treat override entries for unknown regions as errors.",
    )

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.paths.logs_dir / "suggestmap.log", verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _scope_overrides(cfg: AppConfig, scope: str) -> LayoutOverrides:
    overrides = load_layout_overrides(cfg.render.labels.overrides)
    scoped = overrides.get(scope)
    if scoped is None:
        LOGGER.info("No label layout overrides for scope '%s'", scope)
        return LayoutOverrides()
    return scoped


def _run_search(
    cfg: AppConfig,
    *,
    scope: str,
    query: str | None,
    sample: int | None,
    share_url: str | None,
    output: Path,
    json_path: Path,
    show: bool,
) -> int:
    topology = load_topology(cfg.map.topology)
    catalog = RegionCatalog(topology)
    state = QueryStringState(share_url or cfg.map.page_url, cfg.map.query_param)
    policy = ResourcePolicy(page_url=cfg.map.page_url, allowed=cfg.suggest.allowed_resources)
    fetcher = SuggestionFetcher(cfg.suggest, policy=policy)

    shapes = load_scope_shapes(cfg.map.topology, scope)
    with MapSurface(shapes, scope, cfg.render, interactive=show) as surface:
        missing = sorted(
            region.id
            for region in catalog.regions_for_scope(scope)
            if surface.bounds(region.id) is None
        )
        if missing:
            LOGGER.warning("Regions without a drawable shape: %s", format_code_list(missing))

        orchestrator = SearchOrchestrator(
            catalog=catalog,
            fetcher=fetcher,
            layout=LabelLayoutEngine(surface, _scope_overrides(cfg, scope)),
            query_state=state,
            search_url=cfg.suggest.search_url,
            font_size=cfg.render.labels.font_size_px,
            preview_placeholder=cfg.map.preview_placeholder,
            sample_queries=cfg.map.sample_queries,
        )
        try:
            if sample is not None:
                outcome = asyncio.run(orchestrator.select_sample_query(sample, scope))
            else:
                active_query = query or initial_query(state, cfg.map.default_query)
                outcome = asyncio.run(orchestrator.run_search(active_query, scope))
        except (requests.RequestException, ResourceNotAllowedError, IndexError) as exc:
            LOGGER.error("Search failed: %s", exc)
            return 1

        LOGGER.info("Query preview: %s", orchestrator.substituted_query_preview)
        LOGGER.info("Shareable URL: %s", state.url)
        if outcome is None:
            LOGGER.error("Search result was superseded; nothing to render.")
            return 1

        surface.save(output)
        LOGGER.info("Map written to %s", output)
        write_json(json_path, _report_payload(outcome, share_url=state.url))
        LOGGER.info("Label report written to %s", json_path)
        if show:
            surface.show()
    return 0


def _report_payload(outcome: SearchOutcome, *, share_url: str) -> dict:
    payload = outcome.to_dict()
    payload["share_url"] = share_url
    return payload


def _run_regions(cfg: AppConfig, *, scope: str) -> int:
    catalog = RegionCatalog(load_topology(cfg.map.topology))
    regions = catalog.regions_for_scope(scope)
    if not regions:
        LOGGER.warning("No regions for scope '%s' (known: %s)", scope, ", ".join(KNOWN_SCOPES))
        return 0
    for region in regions:
        LOGGER.info("%s\t%s", region.id, region.name)
    LOGGER.info("%d regions in scope '%s'", len(regions), scope)
    return 0


def _run_preview(cfg: AppConfig, *, query: str | None) -> int:
    LOGGER.info(preview(query or cfg.map.default_query, cfg.map.preview_placeholder))
    return 0


def _run_validate(cfg: AppConfig, *, strict: bool) -> int:
    report = Validator(cfg).run(strict=strict)
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    scope = str(args.scope or cfg.map.scope)
    command = str(args.command)
    if command == "search":
        output = Path(args.output) if args.output else cfg.paths.output_dir / f"map_{scope}.png"
        json_path = (
            Path(args.json_path) if args.json_path else cfg.paths.output_dir / f"labels_{scope}.json"
        )
        return _run_search(
            cfg,
            scope=scope,
            query=args.query,
            sample=args.sample,
            share_url=args.share_url,
            output=output,
            json_path=json_path,
            show=bool(args.show),
        )
    if command == "regions":
        return _run_regions(cfg, scope=scope)
    if command == "preview":
        return _run_preview(cfg, query=args.query)
    if command == "validate":
        return _run_validate(cfg, strict=bool(args.strict))
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return _dispatch(args)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
