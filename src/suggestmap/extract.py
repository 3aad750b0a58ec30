"""Highlight extraction from autocomplete entries."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from bs4 import BeautifulSoup

from .models import SuggestionResult

_LOGGER = logging.getLogger("suggestmap.extract")

_EMPHASIS_TAG = "b"

# Removed together with their content.
_DROPPED_TAGS = ["script", "style", "iframe", "object", "embed", "template", "noscript"]

# Kept (attributes stripped); every other tag is unwrapped so only its text survives.
_ALLOWED_TAGS = frozenset(
    {"b", "i", "em", "strong", "u", "s", "small", "sub", "sup", "span", "mark", "br"}
)


def sanitize_html(markup: str) -> BeautifulSoup:
    """Parse untrusted markup and reduce it to a safe inline subset."""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup.find_all(_DROPPED_TAGS):
        if not tag.decomposed:
            tag.decompose()
    for tag in soup.find_all(True):
        if tag.name in _ALLOWED_TAGS:
            tag.attrs = {}
        else:
            tag.unwrap()
    return soup


def extract(raw_suggestions: Iterable[Any]) -> SuggestionResult:
    """Pick the first entry carrying emphasis and split it into highlight/full text."""
    for idx, entry in enumerate(raw_suggestions):
        markup = _entry_markup(entry)
        if markup is None:
            _LOGGER.debug("Skipping malformed suggestion entry #%d: %r", idx, entry)
            continue
        soup = sanitize_html(markup)
        emphasized = soup.find_all(_EMPHASIS_TAG)
        if not emphasized:
            continue
        highlight = " ".join(node.get_text() for node in emphasized).strip()
        return SuggestionResult(highlight=highlight, suggestion=soup.get_text())
    return SuggestionResult.empty()


def _entry_markup(entry: Any) -> str | None:
    if isinstance(entry, (str, bytes)) or not isinstance(entry, (list, tuple)):
        return None
    if not entry:
        return None
    markup = entry[0]
    return markup if isinstance(markup, str) else None
