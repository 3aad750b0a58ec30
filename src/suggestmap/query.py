"""Per-region search phrase templating."""

from __future__ import annotations

import re

_PLACEHOLDER_RE = re.compile(r"_+")

DEFAULT_PREVIEW_PLACEHOLDER = "{state name}"


def substitute(query: str, place_name: str) -> str:
    """Replace every run of underscores with `place_name`, or append it.

    The phrase is built on `query + " "` so a trailing placeholder is still
    word-separated; the padding space itself is not sent.
    """
    if _PLACEHOLDER_RE.search(query):
        padded = _PLACEHOLDER_RE.sub(lambda _match: place_name, f"{query} ")
        return padded[:-1]
    return f"{query} {place_name}"


def preview(query: str, placeholder: str = DEFAULT_PREVIEW_PLACEHOLDER) -> str:
    """Phrase shown to the user while a search runs; never sent anywhere."""
    return substitute(query, placeholder)
