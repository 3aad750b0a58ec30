"""Autocomplete suggestion fetching over the provider's JSONP endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import threading
from typing import Any, Callable, Sequence
from urllib.parse import urlsplit

import requests

from .config import SuggestConfig
from .extract import extract
from .models import SuggestionResult

_LOGGER = logging.getLogger("suggestmap.suggest")

_SELF_ORIGIN = "self"


class ResourceNotAllowedError(RuntimeError):
    """Raised when a request URL is outside the resource allow-list."""


class ResourcePolicy:
    """Allow-list of origins and URL prefixes requests may reach."""

    def __init__(self, *, page_url: str, allowed: Sequence[str]) -> None:
        self.page_origin = _origin(page_url)
        self.allow_self = _SELF_ORIGIN in allowed
        self.prefixes = tuple(item for item in allowed if item != _SELF_ORIGIN)

    def is_allowed(self, url: str) -> bool:
        if self.allow_self and self.page_origin and _origin(url) == self.page_origin:
            return True
        return any(url.startswith(prefix) for prefix in self.prefixes)

    def check(self, url: str) -> None:
        if not self.is_allowed(url):
            raise ResourceNotAllowedError(f"Resource URL not in allow-list: {url}")


class SuggestionFetcher:
    """Issue one autocomplete lookup per search phrase and extract its highlight."""

    def __init__(
        self,
        cfg: SuggestConfig,
        *,
        policy: ResourcePolicy,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self.cfg = cfg
        self.policy = policy
        self._session_factory = session_factory
        self._local = threading.local()
        self._cache: dict[str, str] = {}
        self._wrapper_re = re.compile(
            r"^\s*(?:/\*\*/\s*)?" + re.escape(cfg.callback) + r"\s*\((?P<body>.*)\)\s*;?\s*$",
            re.DOTALL,
        )

    async def fetch(self, search_phrase: str) -> SuggestionResult:
        body = await asyncio.to_thread(self._get_body, search_phrase)
        return extract(self._decode_suggestions(body, search_phrase))

    def request_url(self, search_phrase: str) -> str:
        prepared = requests.Request(
            "GET",
            self.cfg.base_url,
            params={
                "sclient": self.cfg.client,
                "q": search_phrase,
                "callback": self.cfg.callback,
            },
        ).prepare()
        return str(prepared.url)

    def _get_body(self, search_phrase: str) -> str:
        url = self.request_url(search_phrase)
        self.policy.check(url)
        if self.cfg.cache_http:
            cached = self._cache.get(url)
            if cached is not None:
                _LOGGER.debug("Cache hit for %s", url)
                return cached

        response = self._session().get(url, timeout=self.cfg.request_timeout_s)
        try:
            response.raise_for_status()
            body = response.text
        finally:
            response.close()

        if self.cfg.cache_http:
            self._cache[url] = body
        return body

    def _session(self) -> requests.Session:
        # Sessions are not shared across the worker threads running lookups.
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            session.headers.update({"User-Agent": self.cfg.user_agent})
            self._local.session = session
        return session

    def _decode_suggestions(self, body: str, search_phrase: str) -> list[Any]:
        match = self._wrapper_re.match(body)
        raw = match.group("body") if match else body
        try:
            payload = json.loads(raw)
            suggestions = payload[1]
        except (ValueError, TypeError, IndexError, KeyError) as exc:
            _LOGGER.debug("Unusable suggestion payload for %r: %s", search_phrase, exc)
            return []
        if not isinstance(payload, list) or not isinstance(suggestions, list):
            _LOGGER.debug("Unexpected suggestion payload shape for %r", search_phrase)
            return []
        return suggestions


def _origin(url: str) -> str:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"
