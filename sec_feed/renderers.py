"""Rendering helpers for digest output and generated site pages."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, TextIO, Tuple

from jinja2 import Template, TemplateError

from .models import FeedEntry, PageRecord
from .templating import PAGE_TEMPLATE, get_environment

logger = logging.getLogger(__name__)

PAGE_DIR = Path("content") / "cve"
PAGE_SUFFIX = ".md"


class PageGenerationError(RuntimeError):
    """Raised when a matched entry cannot be turned into a page."""


class MalformedTitleError(PageGenerationError):
    """Raised when a title has no parenthesised tag list."""


class PageWriteError(PageGenerationError):
    """Raised when a generated page cannot be written."""


class DigestRenderError(RuntimeError):
    """Raised when an entry cannot be rendered with the output format."""


def split_title(title: str) -> Tuple[str, List[str]]:
    """Split ``"CVE-1 (Linux, Kernel)"`` into ``("CVE-1", ["Linux", "Kernel"])``.

    Only the first parenthesised group is read; text after a second ``(`` is
    ignored.
    """
    head, sep, rest = title.partition("(")
    if not sep:
        raise MalformedTitleError(f"title has no tag list: {title!r}")

    inner = rest.split("(", 1)[0].strip().strip("()").strip()
    tags = [tag.strip() for tag in inner.split(",")]
    return head.strip(), [tag for tag in tags if tag]


def parse_page_record(entry: FeedEntry) -> PageRecord:
    title, tags = split_title(entry.title)
    return PageRecord(
        title=title,
        link=entry.link,
        date=entry.published,
        tags=tags,
        summary=entry.summary,
    )


def page_filename(title: str) -> str:
    """Return the lower-cased, path-safe file name for a page title."""
    name = re.sub(r"[\\/]+", "-", title.strip().lower())
    if name in ("", ".", ".."):
        raise MalformedTitleError(f"title cannot be used as a file name: {title!r}")
    return name + PAGE_SUFFIX


def page_path(site_path: str, title: str) -> Path:
    return Path(site_path) / PAGE_DIR / page_filename(title)


def render_entry(template: Template, entry: FeedEntry) -> str:
    try:
        return template.render(
            title=entry.title,
            date=entry.published,
            summary=entry.summary,
            link=entry.link,
        )
    except TemplateError as exc:
        raise DigestRenderError(
            f"failed to render {entry.title!r} with the output format: {exc}"
        ) from exc


def write_digest(
    template: Template, entries: Iterable[FeedEntry], stream: TextIO
) -> int:
    """Render each entry through the digest template and write it as it is done.

    Entries written before a rendering failure stay on ``stream``.
    """
    count = 0
    for entry in entries:
        stream.write(render_entry(template, entry))
        stream.flush()
        count += 1
    return count


def build_page(record: PageRecord) -> str:
    """Render the front-matter page for one record."""
    template = get_environment().get_template(PAGE_TEMPLATE)
    return template.render(page=record)


def write_page(site_path: str, record: PageRecord) -> Path:
    """Write ``record`` to its page file, replacing any previous content."""
    location = page_path(site_path, record.title)
    content = build_page(record)
    try:
        location.parent.mkdir(parents=True, exist_ok=True)
        location.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise PageWriteError(f"failed to write page {location}: {exc}") from exc
    logger.debug("Wrote page %s", location)
    return location
