import logging

import pytest
import requests

from sec_feed import cli, feeds
from sec_feed.cache import save_snapshot
from sec_feed.config import AppConfig, LoggingConfig
from sec_feed.feeds import FeedFetchError
from sec_feed.runner import RunResult
from sec_feed.templating import TemplateConfigError

from conftest import make_entry, make_snapshot


@pytest.fixture
def restore_root_handlers():
    original_handlers = list(logging.getLogger().handlers)
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)
    try:
        yield
    finally:
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            logging.getLogger().addHandler(handler)


@pytest.fixture
def quiet_cli(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)
    for name in (
        "SEC_FEED_URL",
        "SEC_FEED_FILTER_PATH",
        "SEC_FEED_CACHE_PATH",
        "SEC_FEED_SITE_PATH",
        "SEC_FEED_OUTPUT_FORMAT",
        "SEC_FEED_LOG_LEVEL",
        "SEC_FEED_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_configure_logging_defaults_to_console_only(restore_root_handlers):
    cli.configure_logging("INFO")

    handlers = logging.getLogger().handlers
    assert any(isinstance(handler, logging.StreamHandler) for handler in handlers)
    assert not any(isinstance(handler, logging.FileHandler) for handler in handlers)


def test_configure_logging_with_log_file_creates_file_handler(
    restore_root_handlers, tmp_path
):
    log_path = tmp_path / "logs" / "sec-feed.log"
    cli.configure_logging("DEBUG", str(log_path))

    assert log_path.exists()
    handlers = logging.getLogger().handlers
    assert any(isinstance(handler, logging.FileHandler) for handler in handlers)


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        cli.configure_logging("LOUD")


@pytest.mark.parametrize("argv", [[], ["latest"]])
def test_main_rejects_missing_or_unknown_command(quiet_cli, capsys, argv):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)

    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert "command not specified" in err or "invalid command: latest" in err


def test_main_builds_run_config_with_precedence(quiet_cli, monkeypatch):
    monkeypatch.setattr(
        cli,
        "parse_app_config",
        lambda path: AppConfig(
            feed_url="https://file.example.com", site_path="file-site"
        ),
    )
    monkeypatch.setenv("SEC_FEED_FILTER_PATH", "env-conf")
    monkeypatch.setenv("SEC_FEED_SITE_PATH", "env-site")

    captured = {}

    def fake_execute(config):
        captured["config"] = config
        return RunResult(matched=1, rendered=1)

    monkeypatch.setattr(cli, "execute", fake_execute)

    exit_code = cli.main(["new", "--site-path", "cli-site", "--format", "{{ link }}"])

    assert exit_code == 0
    config = captured["config"]
    assert config.mode == "new"
    assert config.feed_url == "https://file.example.com"
    assert config.filter_path == "env-conf"
    assert config.site_path == "cli-site"
    assert config.output_format == "{{ link }}"


def test_main_cli_overrides_logging(monkeypatch):
    captured = {}

    def fake_configure(level, log_file=None):
        captured["level"] = level
        captured["file"] = log_file

    monkeypatch.setattr(cli, "configure_logging", fake_configure)
    monkeypatch.delenv("SEC_FEED_LOG_LEVEL", raising=False)
    monkeypatch.delenv("SEC_FEED_LOG_FILE", raising=False)
    monkeypatch.setattr(
        cli,
        "parse_app_config",
        lambda path: AppConfig(logging=LoggingConfig(level="INFO", file="config.log")),
    )
    monkeypatch.setattr(cli, "execute", lambda config: RunResult())

    cli.main(["all", "--log-level", "DEBUG", "--log-file", "cli.log"])

    assert captured == {"level": "DEBUG", "file": "cli.log"}


def test_main_returns_error_code_on_runtime_failure(quiet_cli, monkeypatch, capsys):
    def fake_execute(config):
        raise FeedFetchError("upstream down")

    monkeypatch.setattr(cli, "execute", fake_execute)

    assert cli.main(["new"]) == 1
    assert capsys.readouterr().out == ""


def test_main_reports_template_errors_as_usage_errors(quiet_cli, monkeypatch):
    def fake_execute(config):
        raise TemplateConfigError("invalid output format")

    monkeypatch.setattr(cli, "execute", fake_execute)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["all"])

    assert excinfo.value.code == 2


def test_main_runs_end_to_end_against_cached_feed(
    quiet_cli, monkeypatch, tmp_path, filter_dir, capsys
):
    def offline(url, timeout=None):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(feeds.requests, "get", offline)
    cache_dir = tmp_path / "cache"
    save_snapshot(
        str(cache_dir / "cache.json"),
        make_snapshot(make_entry("CVE-1 (Linux)"), make_entry("CVE-2 (Windows)")),
    )
    # The update fails; "all" keeps working from the cached feed.
    exit_code = cli.main(
        [
            "all",
            "--url",
            "https://feeds.example.com/nvd.xml",
            "--filter-path",
            str(filter_dir),
            "--cache-path",
            str(cache_dir),
            "--format",
            "{{ title }}\n",
        ]
    )

    assert exit_code == 0
    assert capsys.readouterr().out == "CVE-1 (Linux)\n"


def _cli_args(tmp_path, filter_dir, command="all"):
    return [
        command,
        "--url",
        "https://feeds.example.com/nvd.xml",
        "--filter-path",
        str(filter_dir),
        "--cache-path",
        str(tmp_path / "cache"),
    ]


def test_main_corrupt_cache_is_runtime_failure(quiet_cli, tmp_path, filter_dir, capsys):
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    (cache_dir / "cache.json").write_bytes(b'{"url": "\xff"}')

    exit_code = cli.main(_cli_args(tmp_path, filter_dir))

    assert exit_code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "usage:" not in captured.err


def test_main_unknown_format_field_is_runtime_failure(
    quiet_cli, monkeypatch, tmp_path, filter_dir, capsys
):
    def offline(url, timeout=None):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(feeds.requests, "get", offline)
    save_snapshot(
        str(tmp_path / "cache" / "cache.json"),
        make_snapshot(make_entry("CVE-1 (Linux)")),
    )

    exit_code = cli.main(_cli_args(tmp_path, filter_dir) + ["--format", "{{ Title }}"])

    assert exit_code == 1
    assert capsys.readouterr().out == ""
