from .answers import AnswerStore
from .errors import (
    AssessmentError,
    AttemptNotPermitted,
    DenialReason,
    IncompleteSubmission,
    InvalidStateTransition,
    PersistenceFailure,
    UnknownQuestion,
)
from .grading import apply_penalty, grade, score_attempt
from .models import (
    AssessmentConfig,
    AssessmentKind,
    AssessmentResult,
    Attempt,
    AttemptLimit,
    Question,
    QuestionFeedback,
    QuestionKind,
    TimeLimit,
)
from .policy import can_start_or_resubmit, can_view_answers, evaluate_attempt_policy
from .session import AssessmentSession, SessionState
from .timer import AsyncioScheduler, CountdownScheduler, ManualScheduler

__all__ = [
    "AnswerStore",
    "AssessmentConfig",
    "AssessmentError",
    "AssessmentKind",
    "AssessmentResult",
    "AssessmentSession",
    "AsyncioScheduler",
    "Attempt",
    "AttemptLimit",
    "AttemptNotPermitted",
    "CountdownScheduler",
    "DenialReason",
    "IncompleteSubmission",
    "InvalidStateTransition",
    "ManualScheduler",
    "PersistenceFailure",
    "Question",
    "QuestionFeedback",
    "QuestionKind",
    "SessionState",
    "TimeLimit",
    "UnknownQuestion",
    "apply_penalty",
    "can_start_or_resubmit",
    "can_view_answers",
    "evaluate_attempt_policy",
    "grade",
    "score_attempt",
]
