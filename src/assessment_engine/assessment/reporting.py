from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from assessment_engine.assessment.models import (
    AssessmentConfig,
    AssessmentResult,
    Attempt,
    QuestionKind,
    as_utc,
)
from assessment_engine.assessment.policy import is_past_due


class AttemptSummary(BaseModel):
    """Aggregate statistics over a set of attempts, percentages rounded to ints."""

    total_attempts: int = 0
    average_score: int = 0
    pass_rate: int = 0
    completion_rate: int = 0


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))


def summarize_attempts(attempts: Sequence[Attempt]) -> AttemptSummary:
    if not attempts:
        return AttemptSummary()
    completed = [attempt for attempt in attempts if attempt.is_completed]
    if not completed:
        return AttemptSummary(total_attempts=len(attempts))
    scores = [attempt.final_score_percent or 0.0 for attempt in completed]
    passed = sum(1 for attempt in completed if attempt.passed)
    return AttemptSummary(
        total_attempts=len(attempts),
        average_score=_round(sum(scores) / len(completed)),
        pass_rate=_round(100 * passed / len(completed)),
        completion_rate=_round(100 * len(completed) / len(attempts)),
    )


def best_attempt(attempts: Iterable[Attempt]) -> Optional[Attempt]:
    """Highest final score among completed attempts; the earliest listed wins ties."""
    best: Optional[Attempt] = None
    for attempt in attempts:
        if not attempt.is_completed:
            continue
        score = attempt.final_score_percent or 0.0
        if best is None or score > (best.final_score_percent or 0.0):
            best = attempt
    return best


def is_overdue(config: AssessmentConfig, now: datetime) -> bool:
    return is_past_due(config, now)


def time_remaining_label(due_date: datetime, now: datetime) -> str:
    """Human-readable time left before ``due_date``."""
    seconds = int((as_utc(due_date) - as_utc(now)).total_seconds())
    if seconds <= 0:
        return "Overdue"
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days > 0:
        return f"{days}d {hours}h remaining"
    if hours > 0:
        return f"{hours}h {minutes}m remaining"
    return f"{minutes}m remaining"


def format_clock(seconds: int) -> str:
    """Render a countdown value as ``m:ss``."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes}:{secs:02d}"


def _describe_answer(value, options: Optional[List[str]]) -> str:
    if value is None:
        return "_no answer_"
    if options and isinstance(value, int) and not isinstance(value, bool) and 0 <= value < len(options):
        return f"{chr(65 + value)}. {options[value]}"
    return str(value)


def result_to_markdown(result: AssessmentResult, config: AssessmentConfig) -> str:
    """Convert a reviewed result to markdown for download/export."""
    attempt = result.attempt
    title = config.title or config.subject_id
    lines: List[str] = [f"# {title} - Results", ""]
    lines.append(f"**Score:** {attempt.final_score_percent:.0f}%")
    if attempt.is_late:
        lines.append(f"**Raw score:** {attempt.raw_score_percent}% (late submission)")
    lines.append(f"**Status:** {'Passed' if attempt.passed else 'Not passed'}")
    lines.append(f"**Time spent:** {format_clock(attempt.time_spent_seconds)}")
    lines.append("")

    for idx, entry in enumerate(result.feedback):
        question = config.question(entry.question_id)
        options = question.options if question else None
        lines.append(f"## Question {idx + 1}")
        if question is not None:
            lines.append(question.text)
        lines.append("")
        lines.append(f"Your answer: {_describe_answer(entry.user_answer, options)}")
        if entry.is_correct is None:
            status = "awaiting manual grading"
        else:
            status = "correct" if entry.is_correct else "incorrect"
        lines.append(f"Result: {status} ({entry.points_earned}/{entry.points_possible} pts)")
        if entry.correct_answer is not None:
            answer_options = options if question and question.kind is QuestionKind.MULTIPLE_CHOICE else None
            lines.append(f"**Answer: {_describe_answer(entry.correct_answer, answer_options)}**")
        if entry.explanation:
            lines.append(f"**Explanation:** {entry.explanation}")
        lines.append("")
        lines.append("---")
        lines.append("")

    if not result.can_view_answers:
        lines.append("_Correct answers will be available after the deadline, if enabled._")
    return "\n".join(lines)
