"""Feed fetching and reconciliation of fetched entries with a cached snapshot."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import feedparser
import requests
from bs4 import BeautifulSoup

from .models import EPOCH, FeedEntry, FeedSnapshot

logger = logging.getLogger(__name__)

DEFAULT_FEED_URL = "https://nvd.nist.gov/feeds/xml/cve/misc/nvd-rss-analyzed.xml"


class FeedFetchError(RuntimeError):
    """Raised when the upstream feed cannot be retrieved or parsed."""


def to_datetime(value: Optional[time.struct_time]) -> datetime:
    """Convert feedparser timestamps to timezone-aware datetimes."""
    if value is None:
        return EPOCH
    return datetime(*value[:6], tzinfo=timezone.utc)


def fetch_feed(url: str, timeout: float = 10.0) -> FeedSnapshot:
    """Fetch ``url`` and return it as a snapshot with every entry unseen."""
    logger.info("Fetching feed %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise FeedFetchError(f"Failed to fetch feed {url}: {exc}") from exc

    parsed = feedparser.parse(response.content)
    if getattr(parsed, "bozo", False) and not parsed.entries:
        reason = getattr(parsed, "bozo_exception", "unknown error")
        raise FeedFetchError(f"Failed to parse feed {url}: {reason}")

    entries: List[FeedEntry] = []
    for entry in parsed.entries:
        link = entry.get("link")
        title = entry.get("title")

        if not link or not title:
            logger.debug("Skipping entry without link or title in feed '%s'", url)
            continue

        summary = entry.get("summary")
        if not summary:
            summary_detail = entry.get("summary_detail")
            if summary_detail:
                summary = summary_detail.get("value")
        if summary:
            summary = _strip_html(summary)

        published = None
        for attr in ("published_parsed", "updated_parsed", "created_parsed"):
            published = entry.get(attr)
            if published:
                break

        entries.append(
            FeedEntry(
                title=title,
                link=link,
                published=to_datetime(published),
                summary=summary or "",
            )
        )

    feed_info = getattr(parsed, "feed", None) or {}
    logger.info("Collected %d entries from feed '%s'", len(entries), url)
    return FeedSnapshot(
        url=url,
        title=feed_info.get("title", ""),
        entries=tuple(entries),
        fetched_at=datetime.now(timezone.utc),
    )


def _strip_html(raw_value: str) -> str:
    """Return text content extracted from HTML fragments."""
    soup = BeautifulSoup(raw_value, "html.parser")
    text = soup.get_text(separator=" ", strip=True)
    text = re.sub(r"\s+([.,;:!?])", r"\1", text)
    text = re.sub(r"\s{2,}", " ", text)
    return text.strip()


def merge_entries(
    cached: FeedSnapshot, fetched: FeedSnapshot
) -> Tuple[FeedSnapshot, List[FeedEntry]]:
    """Fold ``fetched`` into ``cached``.

    Cached entries are kept as they are. Fetched entries with an unknown
    (title, link) key are appended unseen and returned as the new entries.
    """
    known = {entry.key for entry in cached.entries}
    discovered: List[FeedEntry] = []
    for entry in fetched.entries:
        if entry.key in known:
            continue
        known.add(entry.key)
        discovered.append(replace(entry, seen=False))

    merged = FeedSnapshot(
        url=fetched.url or cached.url,
        title=fetched.title or cached.title,
        entries=cached.entries + tuple(discovered),
        fetched_at=fetched.fetched_at,
    )
    logger.info(
        "Discovered %d new entries (%d total)", len(discovered), len(merged.entries)
    )
    return merged, discovered
