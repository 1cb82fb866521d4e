"""Keyword matching of feed entries against the loaded filters."""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping

from .models import FeedEntry

logger = logging.getLogger(__name__)


def matches(title: str, filters: Mapping[str, str]) -> bool:
    """Return True when any filter string occurs in ``title``."""
    return any(pattern in title for pattern in filters.values())


def match_entries(
    entries: Iterable[FeedEntry], filters: Mapping[str, str]
) -> List[FeedEntry]:
    """Keep the entries whose titles contain a filter, preserving order."""
    candidates = list(entries)
    selected = [entry for entry in candidates if matches(entry.title, filters)]
    logger.info(
        "Matched %d of %d entries against %d filters",
        len(selected),
        len(candidates),
        len(filters),
    )
    return selected
