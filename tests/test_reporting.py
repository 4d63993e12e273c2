"""Tests for attempt analytics, countdown labels and markdown export."""

from __future__ import annotations

from datetime import timedelta

from assessment_engine.assessment.grading import score_attempt
from assessment_engine.assessment.models import AssessmentResult, Attempt
from assessment_engine.assessment.policy import gate_feedback
from assessment_engine.assessment.reporting import (
    best_attempt,
    format_clock,
    is_overdue,
    result_to_markdown,
    summarize_attempts,
    time_remaining_label,
)

from conftest import DUE, T0


def _attempt(score=None, passed=None, completed=True) -> Attempt:
    return Attempt(
        subject_id="s",
        user_id="u",
        started_at=T0,
        completed_at=T0 + timedelta(minutes=3) if completed else None,
        final_score_percent=score,
        passed=passed,
    )


def test_summary_of_no_attempts_is_zero():
    summary = summarize_attempts([])
    assert summary.total_attempts == 0
    assert summary.average_score == 0
    assert summary.pass_rate == 0
    assert summary.completion_rate == 0


def test_summary_statistics():
    attempts = [
        _attempt(90, True),
        _attempt(45, False),
        _attempt(75, True),
        _attempt(completed=False),
    ]
    summary = summarize_attempts(attempts)
    assert summary.total_attempts == 4
    assert summary.average_score == 70
    assert summary.pass_rate == 67
    assert summary.completion_rate == 75


def test_best_attempt_prefers_first_on_ties():
    first, second = _attempt(80, True), _attempt(80, True)
    assert best_attempt([_attempt(10, False), first, second]) is first
    assert best_attempt([_attempt(completed=False)]) is None


def test_time_remaining_labels():
    assert time_remaining_label(DUE, DUE) == "Overdue"
    assert time_remaining_label(DUE, DUE + timedelta(hours=1)) == "Overdue"
    assert time_remaining_label(DUE, DUE - timedelta(days=2, hours=3)) == "2d 3h remaining"
    assert time_remaining_label(DUE, DUE - timedelta(hours=5, minutes=7)) == "5h 7m remaining"
    assert time_remaining_label(DUE, DUE - timedelta(minutes=12, seconds=30)) == "12m remaining"


def test_is_overdue(assignment, quiz):
    assert not is_overdue(assignment, DUE)
    assert is_overdue(assignment, DUE + timedelta(seconds=1))
    assert not is_overdue(quiz, DUE + timedelta(days=30))


def test_format_clock():
    assert format_clock(0) == "0:00"
    assert format_clock(65) == "1:05"
    assert format_clock(600) == "10:00"


def _result(config, visible: bool) -> AssessmentResult:
    attempt = Attempt(
        subject_id=config.subject_id,
        user_id="u",
        answers={"mc": 1, "short": "joule"},
        started_at=T0,
        completed_at=T0 + timedelta(minutes=4),
        time_spent_seconds=240,
    )
    scored, report = score_attempt(attempt, config)
    return AssessmentResult(
        attempt=scored,
        feedback=gate_feedback(report.feedback, visible),
        can_view_answers=visible,
    )


def test_markdown_export_respects_redaction(assignment):
    hidden = result_to_markdown(_result(assignment, visible=False), assignment)
    assert "# Week 1 Assignment - Results" in hidden
    assert "Your answer: B. Second" in hidden
    assert "**Answer:" not in hidden
    assert "Explanation" not in hidden
    assert "awaiting manual grading" in hidden

    shown = result_to_markdown(_result(assignment, visible=True), assignment)
    assert "**Answer: A. First**" in shown
    assert "**Explanation:** Energy is measured in joules." in shown
    assert "**Time spent:** 4:00" in shown
