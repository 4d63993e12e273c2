from __future__ import annotations

from enum import Enum
from typing import Iterable, List


class DenialReason(str, Enum):
    """Why the attempt policy refused a new attempt."""

    PAST_DUE = "past_due"
    MAX_ATTEMPTS_REACHED = "max_attempts_reached"
    PREREQUISITE_UNMET = "prerequisite_unmet"


class AssessmentError(Exception):
    """Base class for every error raised by the assessment engine."""


class AttemptNotPermitted(AssessmentError):
    """Policy denied starting (or retaking) an attempt."""

    def __init__(self, reason: DenialReason):
        self.reason = reason
        super().__init__(f"Attempt not permitted: {reason.value}")


class InvalidStateTransition(AssessmentError):
    """An operation was invoked from a session state that does not allow it."""

    def __init__(self, action: str, state: str):
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} while session is {state}")


class IncompleteSubmission(AssessmentError):
    """Manual submit attempted with required questions still unanswered."""

    def __init__(self, missing_question_ids: Iterable[str]):
        self.missing_question_ids: List[str] = list(missing_question_ids)
        super().__init__(
            "Required questions unanswered: " + ", ".join(self.missing_question_ids)
        )


class PersistenceFailure(AssessmentError):
    """The storage collaborator failed to save a completed attempt."""

    def __init__(self, attempt_id: str):
        self.attempt_id = attempt_id
        super().__init__(f"Failed to persist attempt {attempt_id}")


class UnknownQuestion(AssessmentError):
    """An answer referenced a question id outside the configured question set."""

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Unknown question id: {question_id}")
