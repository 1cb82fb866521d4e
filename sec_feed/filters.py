"""Loading keyword filters from a directory of filter files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class FilterLoadError(RuntimeError):
    """Raised when the filter directory cannot be loaded."""


class EmptyFilterFileError(FilterLoadError):
    """Raised when a filter file contains no non-blank line."""

    def __init__(self, path: str):
        super().__init__(f"file {path} is empty")
        self.path = path


def first_non_blank_line(path: str) -> str:
    """Return the first line of ``path`` that is not whitespace only."""
    with open(path, "r", encoding="utf-8", errors="replace") as handle:
        for line in handle:
            text = line.rstrip("\r\n")
            if text.strip():
                return text
    raise EmptyFilterFileError(path)


def _read_filter(path: str) -> str:
    try:
        return first_non_blank_line(path)
    except OSError as exc:
        raise FilterLoadError(f"failed to read filter file {path}: {exc}") from exc


def _raise_walk_error(exc: OSError) -> None:
    raise FilterLoadError(f"failed to read filter directory: {exc}") from exc


def load_filters(directory: str) -> Dict[str, str]:
    """Map each regular file's base name under ``directory`` to its filter string.

    Stops at the first blank file. Files sharing a base name in different
    subdirectories collapse to a single key; the last one visited wins. A
    path naming a single regular file loads that file as the only filter.
    """
    root = Path(directory)
    if root.is_file() and not root.is_symlink():
        return {root.name: _read_filter(str(root))}
    if not root.is_dir():
        raise FilterLoadError(f"filter directory not found: {directory}")

    logger.info("Loading filters from %s", root)
    filters: Dict[str, str] = {}
    walk_error: Optional[OSError] = None

    def on_error(exc: OSError) -> None:
        nonlocal walk_error
        walk_error = exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        if walk_error is not None:
            _raise_walk_error(walk_error)
        dirnames.sort()
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            if os.path.islink(path) or not os.path.isfile(path):
                continue
            filters[name] = _read_filter(path)
            logger.debug("Registered filter '%s' from %s", filters[name], path)

    if walk_error is not None:
        _raise_walk_error(walk_error)

    logger.info("Loaded %d filters", len(filters))
    return filters
