"""Shared data models for sec_feed."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Tuple

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class FeedEntry:
    """A single advisory from the upstream feed."""

    title: str
    link: str
    published: datetime = EPOCH
    summary: str = ""
    seen: bool = False

    @property
    def key(self) -> Tuple[str, str]:
        return (self.title, self.link)


@dataclass(frozen=True)
class FeedSnapshot:
    """The full feed as of one fetch, each entry tagged seen or unseen."""

    url: str
    title: str = ""
    entries: Tuple[FeedEntry, ...] = ()
    fetched_at: datetime = EPOCH

    @property
    def unseen_count(self) -> int:
        return sum(1 for entry in self.entries if not entry.seen)

    @property
    def unseen(self) -> List[FeedEntry]:
        return [entry for entry in self.entries if not entry.seen]

    def mark_consumed(self) -> "FeedSnapshot":
        """Return a copy with every entry flagged as seen."""
        return replace(
            self,
            entries=tuple(replace(entry, seen=True) for entry in self.entries),
        )


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of reconciling the cached snapshot against the live feed."""

    snapshot: FeedSnapshot
    was_cached: bool
    new_entries: Tuple[FeedEntry, ...] = ()


@dataclass
class PageRecord:
    """Data rendered into one generated site page."""

    title: str
    link: str
    date: datetime
    tags: List[str] = field(default_factory=list)
    summary: str = ""
