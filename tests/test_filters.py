import os

import pytest

from sec_feed.filters import (
    EmptyFilterFileError,
    FilterLoadError,
    first_non_blank_line,
    load_filters,
)


def test_load_filters_reads_first_non_blank_line_keyed_by_name(filter_dir):
    filters = load_filters(str(filter_dir))

    assert filters == {"linux": "Linux", "openssl": "OpenSSL"}


def test_load_filters_keeps_inner_whitespace(tmp_path):
    (tmp_path / "spaced").write_text("\t\nApache HTTP Server\r\n", encoding="utf-8")

    assert load_filters(str(tmp_path)) == {"spaced": "Apache HTTP Server"}


def test_load_filters_fails_on_blank_file_and_names_it(filter_dir):
    blank = filter_dir / "blank"
    blank.write_text("\n   \n\t\n", encoding="utf-8")

    with pytest.raises(EmptyFilterFileError) as excinfo:
        load_filters(str(filter_dir))

    assert excinfo.value.path == str(blank)
    assert str(blank) in str(excinfo.value)


def test_load_filters_fails_on_zero_byte_file(tmp_path):
    (tmp_path / "empty").touch()

    with pytest.raises(EmptyFilterFileError):
        load_filters(str(tmp_path))


def test_load_filters_duplicate_names_last_visited_wins(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "b").mkdir()
    (tmp_path / "a" / "kernel").write_text("first\n", encoding="utf-8")
    (tmp_path / "b" / "kernel").write_text("second\n", encoding="utf-8")

    assert load_filters(str(tmp_path)) == {"kernel": "second"}


def test_load_filters_missing_directory_raises(tmp_path):
    with pytest.raises(FilterLoadError):
        load_filters(str(tmp_path / "missing"))


def test_load_filters_skips_symlinks(filter_dir, tmp_path):
    target = tmp_path / "outside"
    target.write_text("Outside\n", encoding="utf-8")
    os.symlink(target, filter_dir / "link")

    assert "link" not in load_filters(str(filter_dir))


def test_load_filters_empty_directory_returns_empty_mapping(tmp_path):
    assert load_filters(str(tmp_path)) == {}


def test_first_non_blank_line_stops_at_first_match(tmp_path):
    path = tmp_path / "f"
    path.write_text("\n\nCVE\nnext\n", encoding="utf-8")

    assert first_non_blank_line(str(path)) == "CVE"


def test_load_filters_accepts_a_single_filter_file(tmp_path):
    path = tmp_path / "kernel"
    path.write_text("\nLinux Kernel\n", encoding="utf-8")

    assert load_filters(str(path)) == {"kernel": "Linux Kernel"}


def test_load_filters_single_blank_file_fails(tmp_path):
    path = tmp_path / "blank"
    path.write_text("  \n", encoding="utf-8")

    with pytest.raises(EmptyFilterFileError):
        load_filters(str(path))
