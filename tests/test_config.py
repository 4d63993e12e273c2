"""Tests for settings loading and environment overrides."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from assessment_engine.config.loader import OVERRIDES_ENV_VAR, load_settings, merge_dicts


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run each test from an empty directory without override variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(OVERRIDES_ENV_VAR, raising=False)


def test_defaults_when_no_config_file():
    settings = load_settings()
    assert settings.engine.tick_seconds == 1
    assert settings.prerequisites.video_completion_percent == 90
    assert settings.paths.attempts_path == Path("data/attempts.jsonl")
    assert settings.logging.json_output is False


def test_explicit_missing_file_raises():
    with pytest.raises(FileNotFoundError):
        load_settings("missing.yaml")


def test_yaml_values_and_env_overrides(tmp_path, monkeypatch):
    config_file = tmp_path / "custom.yaml"
    config_file.write_text(
        "logging:\n  level: debug\n  json: true\nengine:\n  tick_seconds: 2\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(
        OVERRIDES_ENV_VAR, json.dumps({"prerequisites": {"video_completion_percent": 75}})
    )
    settings = load_settings(config_file)
    assert settings.logging.level == "DEBUG"
    assert settings.logging.json_output is True
    assert settings.engine.tick_seconds == 2
    assert settings.prerequisites.video_completion_percent == 75


def test_default_file_is_picked_up(tmp_path):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "default.yaml").write_text(
        "project_name: Week Quizzes\n", encoding="utf-8"
    )
    assert load_settings().project_name == "Week Quizzes"


def test_bad_override_json_raises(monkeypatch):
    monkeypatch.setenv(OVERRIDES_ENV_VAR, "{not json")
    with pytest.raises(ValueError):
        load_settings()


def test_invalid_values_raise_value_error(monkeypatch):
    monkeypatch.setenv(OVERRIDES_ENV_VAR, json.dumps({"engine": {"tick_seconds": 0}}))
    with pytest.raises(ValueError, match="Invalid configuration"):
        load_settings()


def test_merge_dicts_is_recursive():
    merged = merge_dicts({"a": {"b": 1, "c": 2}, "d": 1}, {"a": {"c": 3}})
    assert merged == {"a": {"b": 1, "c": 3}, "d": 1}
