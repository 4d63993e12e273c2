from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from assessment_engine.assessment.errors import DenialReason
from assessment_engine.assessment.models import (
    AssessmentConfig,
    Attempt,
    QuestionFeedback,
    as_utc,
)


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of the attempt policy; ``reason`` is set only on denial."""

    allowed: bool
    reason: Optional[DenialReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOWED = PolicyDecision(True)


def count_completed(attempts: Iterable[Attempt]) -> int:
    return sum(1 for attempt in attempts if attempt.is_completed)


def is_past_due(config: AssessmentConfig, now: datetime) -> bool:
    return config.due_date is not None and as_utc(now) > config.due_date


def evaluate_attempt_policy(
    config: AssessmentConfig,
    prior_attempts: Sequence[Attempt],
    now: datetime,
    prerequisite_satisfied: bool = True,
) -> PolicyDecision:
    """
    Decide whether a learner may begin another attempt.

    Rules are checked in order: lateness (only when late submission is
    disabled), then the attempt cap, then the prerequisite gate when the
    subject asks for one. Only completed prior attempts count toward the cap.
    Having already passed does not block a retake.
    """
    if is_past_due(config, now) and not config.allow_late_submission:
        return PolicyDecision(False, DenialReason.PAST_DUE)
    if config.attempt_limit.exhausted_by(count_completed(prior_attempts)):
        return PolicyDecision(False, DenialReason.MAX_ATTEMPTS_REACHED)
    if config.requires_prerequisite and not prerequisite_satisfied:
        return PolicyDecision(False, DenialReason.PREREQUISITE_UNMET)
    return ALLOWED


def can_start_or_resubmit(
    config: AssessmentConfig,
    prior_attempts: Sequence[Attempt],
    now: datetime,
    prerequisite_satisfied: bool = True,
) -> bool:
    return evaluate_attempt_policy(config, prior_attempts, now, prerequisite_satisfied).allowed


def can_view_answers(config: AssessmentConfig, now: datetime) -> bool:
    """Answer keys and explanations are disclosed only after the deadline, if enabled."""
    return config.show_answers_after_deadline and is_past_due(config, now)


def gate_feedback(feedback: Iterable[QuestionFeedback], visible: bool) -> List[QuestionFeedback]:
    """Strip answer keys and explanations from every entry unless ``visible``."""
    if visible:
        return list(feedback)
    return [entry.redacted() for entry in feedback]
