"""Shareable page URL whose query string carries the active search."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


class QueryStringState:
    """Round-trips one query-string parameter on a page URL."""

    def __init__(self, url: str, param: str = "q") -> None:
        self._url = url
        self.param = param

    @property
    def url(self) -> str:
        return self._url

    def get(self) -> str | None:
        query = urlsplit(self._url).query
        for key, value in parse_qsl(query, keep_blank_values=True):
            if key == self.param:
                return value
        return None

    def set(self, value: str) -> str:
        """Write `value` into the URL, keeping any other parameters, and return the new URL."""
        parts = urlsplit(self._url)
        params = [
            (key, item)
            for key, item in parse_qsl(parts.query, keep_blank_values=True)
            if key != self.param
        ]
        params.append((self.param, value))
        self._url = urlunsplit(parts._replace(query=urlencode(params)))
        return self._url


def initial_query(state: QueryStringState, default_query: str) -> str:
    """Query read at startup, falling back to `default_query` when absent or empty."""
    return state.get() or default_query
