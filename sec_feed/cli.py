"""Command-line interface for the sec_feed application."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
import sys
from pathlib import Path
from typing import List, Optional

from .config import apply_env_overrides, parse_app_config
from .runner import MODES, RunConfig, execute
from .templating import TemplateConfigError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="sec-feed",
        description="A cli checker utility for generating vulnerability feeds.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        help=f"One of: {', '.join(MODES)}.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional path to an XML configuration file.",
    )
    parser.add_argument(
        "--url", default=None, help="The url source feed. Overrides SEC_FEED_URL."
    )
    parser.add_argument(
        "--filter-path",
        default=None,
        help="The directory path to source filters from.",
    )
    parser.add_argument(
        "--cache-path",
        default=None,
        help="The directory path to store all cache files.",
    )
    parser.add_argument(
        "--site-path",
        default=None,
        help="The directory path to the hugo root.",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        default=None,
        help="A formatting string for the resulting output data.",
    )

    # Overrides for logging/debugging
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    # stdout carries the digest, so diagnostics go to stderr.
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.error("command not specified")
    if args.command not in MODES:
        parser.error(f"invalid command: {args.command}")

    try:
        app_config = apply_env_overrides(parse_app_config(args.config))

        # Determine logging settings (CLI overrides env and config)
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file

        configure_logging(log_level, log_file)

        config = RunConfig(
            mode=args.command,
            feed_url=args.url or app_config.feed_url,
            filter_path=args.filter_path or app_config.filter_path,
            cache_path=args.cache_path or app_config.cache_path,
            site_path=args.site_path or app_config.site_path,
            output_format=(
                args.output_format
                if args.output_format is not None
                else app_config.output_format
            ),
        )
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, OSError) as exc:
        logger.error("%s", exc)
        return 1

    logger.info(
        "Active Configuration:\n%s", pprint.pformat(dataclasses.asdict(config))
    )

    try:
        result = execute(config)
    except TemplateConfigError as exc:
        parser.error(str(exc))
    except (RuntimeError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    logger.debug("Run finished with %d matching entries", result.matched)
    return 0
