"""High-level orchestration for the sec_feed application."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from jinja2 import Template

from .cache import cache_file_path, save_snapshot
from .feeds import DEFAULT_FEED_URL, fetch_feed
from .filters import load_filters
from .matching import match_entries
from .models import ReconcileResult
from .reconciler import FetchFn, reconcile
from .renderers import parse_page_record, write_digest, write_page
from .templating import DEFAULT_OUTPUT_FORMAT, compile_template

logger = logging.getLogger(__name__)

MODE_NEW = "new"
MODE_ALL = "all"
MODE_GENERATE = "generate"
MODES = (MODE_NEW, MODE_ALL, MODE_GENERATE)

# Modes that keep working from a stale cache when the upstream update fails.
_TOLERANT_MODES = {MODE_ALL, MODE_GENERATE}


@dataclass
class RunConfig:
    """Runtime options for executing the application."""

    mode: str
    feed_url: str = DEFAULT_FEED_URL
    filter_path: str = "conf"
    cache_path: str = ".sec-feed"
    site_path: str = "site"
    output_format: str = DEFAULT_OUTPUT_FORMAT


@dataclass
class RunResult:
    """Returned data after executing the app."""

    matched: int = 0
    rendered: int = 0
    pages_written: List[Path] = field(default_factory=list)


def run_new_items(
    result: ReconcileResult,
    cache_file: str,
    filters: Dict[str, str],
    template: Template,
    stream: TextIO,
) -> RunResult:
    """Render matching entries discovered since the previous run."""
    candidates = result.snapshot.unseen if result.was_cached else []
    save_snapshot(cache_file, result.snapshot)

    matched = match_entries(candidates, filters)
    rendered = write_digest(template, matched, stream)
    return RunResult(matched=len(matched), rendered=rendered)


def run_all_items(
    result: ReconcileResult,
    cache_file: str,
    filters: Dict[str, str],
    template: Template,
    stream: TextIO,
) -> RunResult:
    """Render every matching entry in the feed."""
    save_snapshot(cache_file, result.snapshot)

    matched = match_entries(result.snapshot.entries, filters)
    rendered = write_digest(template, matched, stream)
    return RunResult(matched=len(matched), rendered=rendered)


def run_generate(
    result: ReconcileResult,
    cache_file: str,
    filters: Dict[str, str],
    site_path: str,
) -> RunResult:
    """Write one site page per matching entry.

    The first entry that fails stops the batch; pages already written stay.
    """
    save_snapshot(cache_file, result.snapshot)

    matched = match_entries(result.snapshot.entries, filters)
    written: List[Path] = []
    for entry in matched:
        written.append(write_page(site_path, parse_page_record(entry)))

    logger.info("Generated %d pages under %s", len(written), site_path)
    return RunResult(matched=len(matched), pages_written=written)


def execute(
    config: RunConfig,
    fetch: FetchFn = fetch_feed,
    stream: Optional[TextIO] = None,
) -> RunResult:
    """Run the application logic and return the result payload.

    Digest modes write to ``stream``, standard output by default.
    """
    out = stream if stream is not None else sys.stdout
    if config.mode not in MODES:
        raise ValueError(f"invalid command: {config.mode}")

    template = compile_template(config.output_format)
    filters = load_filters(config.filter_path)

    cache_file = cache_file_path(config.cache_path)
    result = reconcile(
        config.feed_url,
        cache_file,
        tolerate_update_failure=config.mode in _TOLERANT_MODES,
        fetch=fetch,
    )

    if config.mode == MODE_NEW:
        return run_new_items(result, cache_file, filters, template, out)
    if config.mode == MODE_ALL:
        return run_all_items(result, cache_file, filters, template, out)
    return run_generate(result, cache_file, filters, config.site_path)
