from datetime import datetime, timezone

import pytest

from sec_feed.models import FeedEntry, FeedSnapshot

FEED_URL = "https://feeds.example.com/nvd.xml"


def make_entry(title, link=None, seen=False, summary="Summary"):
    return FeedEntry(
        title=title,
        link=link or f"https://nvd.example.com/{title.split(' ')[0]}",
        published=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        summary=summary,
        seen=seen,
    )


def make_snapshot(*entries, url=FEED_URL):
    return FeedSnapshot(
        url=url,
        title="NVD",
        entries=tuple(entries),
        fetched_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
    )


@pytest.fixture
def filter_dir(tmp_path):
    directory = tmp_path / "conf"
    directory.mkdir()
    (directory / "linux").write_text("\n  \nLinux\nignored\n", encoding="utf-8")
    nested = directory / "vendors"
    nested.mkdir()
    (nested / "openssl").write_text("OpenSSL\n", encoding="utf-8")
    return directory
