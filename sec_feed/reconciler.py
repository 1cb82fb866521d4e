"""Decide between updating the cached snapshot and fetching a fresh one."""

from __future__ import annotations

import logging
from typing import Callable

from .cache import CacheNotFoundError, load_snapshot
from .feeds import FeedFetchError, fetch_feed, merge_entries
from .models import FeedSnapshot, ReconcileResult

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], FeedSnapshot]


def reconcile(
    url: str,
    cache_path: str,
    tolerate_update_failure: bool,
    fetch: FetchFn = fetch_feed,
) -> ReconcileResult:
    """Return the current feed state and whether it was derived from a cache.

    Entries only count as new relative to a cached snapshot. When the cache
    exists but the live update fails, ``tolerate_update_failure`` selects
    between returning the stale snapshot and raising ``FeedFetchError``.
    """
    try:
        cached = load_snapshot(cache_path)
    except CacheNotFoundError:
        logger.info("No cached feed at %s; fetching %s fresh", cache_path, url)
        return ReconcileResult(snapshot=fetch(url), was_cached=False)

    try:
        fetched = fetch(url)
    except FeedFetchError as exc:
        if not tolerate_update_failure:
            raise
        logger.warning("Feed update failed, using cached feed: %s", exc)
        return ReconcileResult(snapshot=cached, was_cached=True)

    merged, discovered = merge_entries(cached, fetched)
    return ReconcileResult(
        snapshot=merged, was_cached=True, new_entries=tuple(discovered)
    )
