"""Tests for loading .haven-viewer.yml."""

from __future__ import annotations

from pathlib import Path

import pytest

from haven_viewer.config import (
    CONFIG_FILENAME,
    ConfigNotFoundError,
    ConfigValidationError,
    find_viewer_config,
    load_viewer_config,
)


def write_config(directory: Path, body: str) -> Path:
    path = directory / CONFIG_FILENAME
    path.write_text(body, encoding="utf-8")
    return path


def test_no_config_uses_defaults(tmp_path: Path):
    settings = load_viewer_config(start_dir=tmp_path)
    assert settings.search.max_results == 50


def test_config_is_found_in_parent_directory(tmp_path: Path):
    write_config(tmp_path, "search:\n  max_results: 3\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_viewer_config(nested) == (tmp_path / CONFIG_FILENAME).resolve()
    assert load_viewer_config(start_dir=nested).search.max_results == 3


def test_explicit_config_path(tmp_path: Path):
    path = write_config(tmp_path, "container:\n  max_member_count: 12\ndisplay:\n  message_limit: 20\n")

    settings = load_viewer_config(path)

    assert settings.container.max_member_count == 12
    assert settings.display.message_limit == 20


def test_explicit_missing_config_raises(tmp_path: Path):
    with pytest.raises(ConfigNotFoundError) as excinfo:
        load_viewer_config(tmp_path / "missing.yml")
    assert excinfo.value.path == tmp_path / "missing.yml"


def test_explicit_invalid_config_raises(tmp_path: Path):
    path = write_config(tmp_path, "search:\n  max_results: -1\n")

    with pytest.raises(ConfigValidationError) as excinfo:
        load_viewer_config(path)

    assert excinfo.value.errors[0]["loc"] == ("search", "max_results")


def test_discovered_invalid_config_falls_back(tmp_path: Path):
    write_config(tmp_path, "search:\n  max_results: -1\n")
    assert load_viewer_config(start_dir=tmp_path).search.max_results == 50


@pytest.mark.parametrize("body", ["search: [unclosed\n", "- just\n- a list\n", ""])
def test_unusable_yaml_falls_back(tmp_path: Path, body: str):
    path = write_config(tmp_path, body)
    assert load_viewer_config(path).search.max_results == 50


def test_environment_still_applies_with_file(tmp_path: Path, monkeypatch):
    path = write_config(tmp_path, "search:\n  min_query_length: 4\n")
    monkeypatch.setenv("HAVEN_VIEWER_SEARCH__MAX_RESULTS", "9")

    settings = load_viewer_config(path)

    assert settings.search.min_query_length == 4
    assert settings.search.max_results == 9


def test_environment_overrides_same_key_in_file(tmp_path: Path, monkeypatch):
    path = write_config(tmp_path, "search:\n  max_results: 5\n  snippet_context: 10\n")
    monkeypatch.setenv("HAVEN_VIEWER_SEARCH__MAX_RESULTS", "100")

    settings = load_viewer_config(path)

    assert settings.search.max_results == 100
    assert settings.search.snippet_context == 10
