"""Search orchestration: one suggestion lookup per region, published as map labels."""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Awaitable, Callable, Protocol
from urllib.parse import quote

from .catalog import RegionCatalog
from .layout import DEFAULT_FONT_SIZE, LabelLayoutEngine, LabelOptions
from .models import LabelAssignment, Region, SearchOutcome, SuggestionResult
from .query import DEFAULT_PREVIEW_PLACEHOLDER, preview, substitute
from .state import QueryStringState

_LOGGER = logging.getLogger("suggestmap.search")

# Sub-delimiters kept literal in the query value, as browsers encode URI components.
_URI_COMPONENT_SAFE = "!'()*"


class SuggestionSource(Protocol):
    def fetch(self, search_phrase: str) -> Awaitable[SuggestionResult]: ...


def search_page_url(search_url: str, suggestion: str) -> str:
    separator = "&" if "?" in search_url else "?"
    return f"{search_url}{separator}q={quote(suggestion, safe=_URI_COMPONENT_SAFE)}"


class SearchOrchestrator:
    """Run a query against every region of a scope and publish the labels.

    Results of a search cycle are published only when every lookup of that
    cycle succeeded and no newer cycle has been started meanwhile.
    """

    def __init__(
        self,
        *,
        catalog: RegionCatalog,
        fetcher: SuggestionSource,
        layout: LabelLayoutEngine,
        query_state: QueryStringState,
        search_url: str,
        font_size: float = DEFAULT_FONT_SIZE,
        preview_placeholder: str = DEFAULT_PREVIEW_PLACEHOLDER,
        sample_queries: tuple[str, ...] = (),
        opener: Callable[[str], object] = webbrowser.open,
    ) -> None:
        self.catalog = catalog
        self.fetcher = fetcher
        self.layout = layout
        self.query_state = query_state
        self.search_url = search_url
        self.font_size = font_size
        self.preview_placeholder = preview_placeholder
        self.sample_queries = sample_queries
        self._opener = opener
        self._generation = 0
        self._substituted_query_preview = ""
        self._click_queries: dict[str, str] = {}

    @property
    def substituted_query_preview(self) -> str:
        return self._substituted_query_preview

    @property
    def generation(self) -> int:
        return self._generation

    async def run_search(self, query: str, scope: str) -> SearchOutcome | None:
        """Search `query` for every region of `scope`.

        Returns the published outcome, or None when a newer search started
        before this one finished. Any failed lookup propagates and nothing
        is published.
        """
        self._generation += 1
        generation = self._generation
        self._substituted_query_preview = preview(query, self.preview_placeholder)
        self.query_state.set(query)

        regions = self.catalog.regions_for_scope(scope)
        _LOGGER.info(
            "Search #%d for %r over %d regions (scope=%s)", generation, query, len(regions), scope
        )
        lookups = [self.fetcher.fetch(substitute(query, region.name)) for region in regions]
        try:
            results = await asyncio.gather(*lookups)
        except Exception as exc:
            _LOGGER.error("Search #%d for %r failed; labels left unchanged: %s", generation, query, exc)
            raise

        if generation != self._generation:
            _LOGGER.debug(
                "Discarding search #%d; newer search #%d in progress", generation, self._generation
            )
            return None
        return self._publish(generation, query, scope, regions, results)

    async def select_sample_query(self, index: int, scope: str) -> SearchOutcome | None:
        if not 0 <= index < len(self.sample_queries):
            raise IndexError(f"No sample query at index {index}")
        return await self.run_search(self.sample_queries[index], scope)

    def open_search(self, region: Region) -> bool:
        """Open the web search for the region's full suggestion; False when there is none."""
        suggestion = self._click_queries.get(region.id)
        if not suggestion:
            return False
        self._opener(search_page_url(self.search_url, suggestion))
        return True

    def _publish(
        self,
        generation: int,
        query: str,
        scope: str,
        regions: tuple[Region, ...],
        results: list[SuggestionResult],
    ) -> SearchOutcome:
        assignment: LabelAssignment = {}
        click_queries: dict[str, str] = {}
        for region, result in zip(regions, results):
            assignment[region.id] = result
            click_queries[region.id] = result.suggestion
        self._click_queries = click_queries

        placements = self.layout.place(
            regions,
            assignment,
            LabelOptions(font_size=self.font_size, click_handler=self.open_search),
        )
        labelled = sum(1 for result in results if result.has_highlight)
        _LOGGER.info(
            "Search #%d published: %d/%d regions labelled", generation, labelled, len(regions)
        )
        return SearchOutcome(
            generation=generation,
            query=query,
            scope=scope,
            assignment=assignment,
            click_queries=click_queries,
            placements=placements,
        )
