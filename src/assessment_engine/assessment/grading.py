"""Auto-grading and late-penalty arithmetic for completed attempts.

Functions:
- grade: score every question against the answer key -> GradeReport.
- apply_penalty: reduce a raw percentage for late submissions.
- score_attempt: grade + penalty + pass/fail, returned as an updated Attempt.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

from assessment_engine.assessment.models import (
    AssessmentConfig,
    Attempt,
    GradeReport,
    Question,
    QuestionFeedback,
    QuestionKind,
    as_utc,
)

logger = logging.getLogger(__name__)


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer ``round(100 * numerator / denominator)`` with halves rounded up."""
    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


def _normalize_text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return str(value).strip().lower()


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def evaluate_answer(question: Question, answer: Any) -> Optional[bool]:
    """Return correctness of ``answer``, or None when the kind needs a human grader.

    Malformed answers are simply wrong; this never raises for learner input.
    """
    kind = question.kind
    if kind is QuestionKind.MULTIPLE_CHOICE:
        return _is_index(answer) and answer == question.correct_answer
    if kind is QuestionKind.SHORT_ANSWER:
        expected = _normalize_text(question.correct_answer)
        if expected is None:
            return None
        return _normalize_text(answer) == expected
    if kind is QuestionKind.ESSAY:
        return None
    if kind is QuestionKind.FILE_UPLOAD:
        return None
    raise AssertionError(f"Unhandled question kind: {kind!r}")


def grade(attempt: Attempt, config: AssessmentConfig) -> GradeReport:
    """Score ``attempt`` against the question set of ``config``."""
    feedback: List[QuestionFeedback] = []
    earned = 0
    possible = 0
    for question in config.questions:
        user_answer = attempt.answers.get(question.id)
        is_correct = evaluate_answer(question, user_answer)
        points_earned = question.points if is_correct is True else 0
        earned += points_earned
        possible += question.points
        feedback.append(
            QuestionFeedback(
                question_id=question.id,
                is_correct=is_correct,
                user_answer=user_answer,
                correct_answer=question.correct_answer,
                explanation=question.explanation,
                points_earned=points_earned,
                points_possible=question.points,
            )
        )
    return GradeReport(
        raw_score_percent=round_half_up(earned, possible),
        points_earned=earned,
        points_possible=possible,
        feedback=feedback,
    )


def is_late(completed_at: datetime, config: AssessmentConfig) -> bool:
    return config.due_date is not None and as_utc(completed_at) > config.due_date


def days_late(completed_at: datetime, due_date: datetime) -> int:
    """
    Calendar days (UTC) between the deadline and the submission, at least one.

    This is not ``ceil(elapsed / 24h)``: a deadline at 12:00 followed by a
    submission 35 hours later (23:00 the next day) counts one day, not two.
    Only the UTC date of each timestamp matters.
    """
    delta = as_utc(completed_at).date() - as_utc(due_date).date()
    return max(1, delta.days)


def apply_penalty(raw_score_percent: float, attempt: Attempt, config: AssessmentConfig) -> float:
    """Return the final percentage after the per-day late deduction."""
    if not attempt.is_late or attempt.completed_at is None or config.due_date is None:
        return float(raw_score_percent)
    late_days = days_late(attempt.completed_at, config.due_date)
    penalty = min(config.late_penalty_percent_per_day * late_days, 100.0)
    return max(0.0, raw_score_percent - penalty)


def score_attempt(attempt: Attempt, config: AssessmentConfig) -> Tuple[Attempt, GradeReport]:
    """
    Grade a completed attempt and fill in its score fields.

    ``is_late`` is computed from ``completed_at`` here and then frozen on the
    returned copy. The input attempt is not modified.
    """
    if attempt.completed_at is None:
        raise ValueError("only completed attempts can be scored")
    report = grade(attempt, config)
    late = is_late(attempt.completed_at, config)
    scored = attempt.model_copy(update={"is_late": late})
    final = apply_penalty(report.raw_score_percent, scored, config)
    scored = scored.model_copy(
        update={
            "raw_score_percent": report.raw_score_percent,
            "final_score_percent": final,
            "passed": final >= config.passing_score_percent,
        }
    )
    logger.debug(
        "Scored attempt %s: raw=%s final=%.2f late=%s",
        attempt.id,
        report.raw_score_percent,
        final,
        late,
    )
    return scored, report
