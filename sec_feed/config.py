"""Configuration loading for sec_feed."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
from xml.etree import ElementTree as ET

from .feeds import DEFAULT_FEED_URL
from .templating import DEFAULT_OUTPUT_FORMAT

logger = logging.getLogger(__name__)

ENV_PREFIX = "SEC_FEED_"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    feed_url: str = DEFAULT_FEED_URL
    filter_path: str = "conf"
    cache_path: str = ".sec-feed"
    site_path: str = "site"
    output_format: str = DEFAULT_OUTPUT_FORMAT
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def parse_app_config(path: Optional[str] = None) -> AppConfig:
    """Parse the optional XML configuration file.

    Without a path the built-in defaults are returned.
    """
    config = AppConfig()
    if not path:
        return config

    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    try:
        root = ET.parse(config_path).getroot()
    except ET.ParseError as exc:
        raise ValueError(f"Config file is not valid XML: {path}: {exc}") from exc

    url = root.findtext("url")
    if url:
        config.feed_url = url.strip()

    for tag, attr in (
        ("filter-path", "filter_path"),
        ("cache-path", "cache_path"),
        ("site-path", "site_path"),
    ):
        value = root.findtext(tag)
        if value and value.strip():
            setattr(config, attr, _resolve_path(config_path, value.strip()))

    # Formats are taken verbatim; surrounding whitespace is significant.
    format_node = root.find("format")
    if format_node is not None and format_node.text:
        config.output_format = format_node.text

    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = log_node.findtext("level", config.logging.level).strip()
        log_file = log_node.findtext("file")
        if log_file:
            config.logging.file = _resolve_path(config_path, log_file.strip())

    return config


def apply_env_overrides(
    config: AppConfig, environ: Optional[Mapping[str, str]] = None
) -> AppConfig:
    """Override ``config`` in place with any SEC_FEED_* environment variables."""
    env = os.environ if environ is None else environ

    for name, attr in (
        ("URL", "feed_url"),
        ("FILTER_PATH", "filter_path"),
        ("CACHE_PATH", "cache_path"),
        ("SITE_PATH", "site_path"),
        ("OUTPUT_FORMAT", "output_format"),
    ):
        value = env.get(ENV_PREFIX + name)
        if value is not None:
            logger.debug("Using %s%s from environment", ENV_PREFIX, name)
            setattr(config, attr, value)

    if ENV_PREFIX + "LOG_LEVEL" in env:
        config.logging.level = env[ENV_PREFIX + "LOG_LEVEL"]
    if ENV_PREFIX + "LOG_FILE" in env:
        config.logging.file = env[ENV_PREFIX + "LOG_FILE"] or None

    return config
