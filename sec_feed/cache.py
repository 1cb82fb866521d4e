"""Persistence of the feed snapshot between runs."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from .models import EPOCH, FeedEntry, FeedSnapshot

logger = logging.getLogger(__name__)

CACHE_FILE = "cache.json"
CACHE_FILE_MODE = 0o664


class CacheError(RuntimeError):
    """Raised when the cache cannot be read or written."""


class CacheNotFoundError(FileNotFoundError):
    """Raised when no cached snapshot exists yet."""


def cache_file_path(cache_dir: str) -> str:
    return os.path.join(cache_dir, CACHE_FILE)


def _parse_datetime(value: Any) -> datetime:
    if not value:
        return EPOCH
    return datetime.fromisoformat(value)


def snapshot_to_dict(snapshot: FeedSnapshot) -> Dict[str, Any]:
    return {
        "url": snapshot.url,
        "title": snapshot.title,
        "fetched_at": snapshot.fetched_at.isoformat(),
        "unseen": snapshot.unseen_count,
        "entries": [
            {
                "title": entry.title,
                "link": entry.link,
                "published": entry.published.isoformat(),
                "summary": entry.summary,
                "seen": entry.seen,
            }
            for entry in snapshot.entries
        ],
    }


def snapshot_from_dict(payload: Dict[str, Any]) -> FeedSnapshot:
    entries = tuple(
        FeedEntry(
            title=item["title"],
            link=item["link"],
            published=_parse_datetime(item.get("published")),
            summary=item.get("summary") or "",
            seen=bool(item.get("seen", False)),
        )
        for item in payload.get("entries", [])
    )
    return FeedSnapshot(
        url=payload.get("url", ""),
        title=payload.get("title", ""),
        entries=entries,
        fetched_at=_parse_datetime(payload.get("fetched_at")),
    )


def load_snapshot(path: str) -> FeedSnapshot:
    """Read the cached snapshot at ``path``."""
    location = Path(path)
    try:
        payload = json.loads(location.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CacheNotFoundError(f"No cached feed at {location}") from exc
    except json.JSONDecodeError as exc:
        raise CacheError(f"Cached feed is not valid JSON: {location}") from exc
    except UnicodeDecodeError as exc:
        raise CacheError(f"Cached feed is not valid UTF-8: {location}: {exc}") from exc
    except OSError as exc:
        raise CacheError(f"Failed to read cached feed {location}: {exc}") from exc

    if not isinstance(payload, dict):
        raise CacheError(f"Cached feed must contain a JSON object: {location}")

    try:
        snapshot = snapshot_from_dict(payload)
    except (KeyError, TypeError, ValueError) as exc:
        raise CacheError(f"Cached feed is malformed: {location}: {exc}") from exc

    logger.info(
        "Loaded cached feed with %d entries from %s", len(snapshot.entries), location
    )
    return snapshot


def save_snapshot(path: str, snapshot: FeedSnapshot) -> FeedSnapshot:
    """Persist ``snapshot`` as fully consumed and return the persisted copy.

    The document is written to a temporary file beside ``path`` and moved
    into place, so readers only ever see a complete cache.
    """
    consumed = snapshot.mark_consumed()
    location = Path(path)
    data = json.dumps(snapshot_to_dict(consumed), indent=2, ensure_ascii=False)

    tmp_name = None
    try:
        location.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=location.parent,
            prefix=f".{location.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(data)
        os.chmod(tmp_name, CACHE_FILE_MODE)
        os.replace(tmp_name, location)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise CacheError(f"failed to cache {location}: {exc}") from exc

    logger.info("Cached %d entries to %s", len(consumed.entries), location)
    return consumed
