"""End-to-end tests for the typer CLI against on-disk storage."""

from __future__ import annotations

import pytest
import yaml
from typer.testing import CliRunner

from assessment_engine.cli import app
from assessment_engine.config.loader import OVERRIDES_ENV_VAR

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Config file, one question set and an answers file in a temp directory."""
    monkeypatch.delenv(OVERRIDES_ENV_VAR, raising=False)
    sets_dir = tmp_path / "sets"
    sets_dir.mkdir()
    question_set = {
        "title": "Lecture 1 Quiz",
        "kind": "quiz",
        "max_attempts": 1,
        "questions": [
            {
                "id": "q1",
                "text": "Unit of force?",
                "kind": "multiple_choice",
                "options": ["Joule", "Newton"],
                "correct_answer": 1,
                "points": 2,
            },
            {
                "id": "q2",
                "text": "Symbol for velocity?",
                "kind": "short_answer",
                "correct_answer": "v",
                "points": 3,
            },
        ],
    }
    (sets_dir / "lecture-1.yaml").write_text(yaml.safe_dump(question_set), encoding="utf-8")
    config = {
        "paths": {
            "question_sets_dir": str(sets_dir),
            "attempts_path": str(tmp_path / "attempts.jsonl"),
            "video_progress_path": str(tmp_path / "video.jsonl"),
        },
        "logging": {"level": "WARNING"},
    }
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(config), encoding="utf-8")
    answers_path = tmp_path / "answers.yaml"
    answers_path.write_text(yaml.safe_dump({"q1": 1, "q2": " V "}), encoding="utf-8")
    return tmp_path, config_path, answers_path


def test_check_take_and_summary(workspace):
    tmp_path, config_path, answers_path = workspace

    result = runner.invoke(app, ["check", "lecture-1", "ana", "--config", str(config_path)])
    assert result.exit_code == 0, result.output
    assert "Eligible" in result.output

    markdown_path = tmp_path / "result.md"
    result = runner.invoke(
        app,
        [
            "take",
            "lecture-1",
            "ana",
            str(answers_path),
            "--config",
            str(config_path),
            "--markdown",
            str(markdown_path),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "100%" in result.output
    assert "- passed" in result.output
    assert "# Lecture 1 Quiz - Results" in markdown_path.read_text(encoding="utf-8")

    result = runner.invoke(app, ["check", "lecture-1", "ana", "--config", str(config_path)])
    assert result.exit_code == 2
    assert "max_attempts_reached" in result.output

    result = runner.invoke(app, ["summary", "lecture-1", "ana", "--config", str(config_path)])
    assert result.exit_code == 0, result.output
    assert "Total attempts: 1" in result.output
    assert "Pass rate: 100%" in result.output


def test_take_reports_missing_answers(workspace):
    tmp_path, config_path, _ = workspace
    partial = tmp_path / "partial.yaml"
    partial.write_text(yaml.safe_dump({"q1": 1}), encoding="utf-8")
    result = runner.invoke(
        app, ["take", "lecture-1", "ana", str(partial), "--config", str(config_path)]
    )
    assert result.exit_code == 1
    assert "q2" in result.output
    assert not (tmp_path / "attempts.jsonl").exists() or not (
        tmp_path / "attempts.jsonl"
    ).read_text(encoding="utf-8").strip()


def test_unknown_subject_exits_with_error(workspace):
    _, config_path, _ = workspace
    result = runner.invoke(app, ["check", "missing", "ana", "--config", str(config_path)])
    assert result.exit_code == 1


def test_take_past_due_requires_late_ok(workspace):
    tmp_path, config_path, _ = workspace
    homework = {
        "title": "Homework 1",
        "kind": "assignment",
        "due_date": "2024-01-01T00:00:00Z",
        "allow_late_submission": True,
        "late_penalty_percent_per_day": 10,
        "questions": [
            {
                "id": "q1",
                "text": "Unit of force?",
                "kind": "multiple_choice",
                "options": ["Joule", "Newton"],
                "correct_answer": 1,
                "points": 1,
            },
        ],
    }
    (tmp_path / "sets" / "hw-1.yaml").write_text(yaml.safe_dump(homework), encoding="utf-8")
    answers_path = tmp_path / "hw-answers.yaml"
    answers_path.write_text(yaml.safe_dump({"q1": 1}), encoding="utf-8")
    args = ["take", "hw-1", "ana", str(answers_path), "--config", str(config_path)]

    result = runner.invoke(app, args)
    assert result.exit_code == 2
    assert "--late-ok" in result.output
    assert not (tmp_path / "attempts.jsonl").exists()

    result = runner.invoke(app, args + ["--late-ok"])
    assert result.exit_code == 0, result.output
    assert "(raw 100%)" in result.output
    assert "Submitted late" in result.output
