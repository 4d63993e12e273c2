from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator, validator


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons never mix naive and aware values."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class QuestionKind(str, Enum):
    """Gradable prompt variants."""

    MULTIPLE_CHOICE = "multiple_choice"
    SHORT_ANSWER = "short_answer"
    ESSAY = "essay"
    FILE_UPLOAD = "file_upload"


class AssessmentKind(str, Enum):
    QUIZ = "quiz"
    ASSIGNMENT = "assignment"


class Question(BaseModel):
    """Immutable definition of a single gradable prompt."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    kind: QuestionKind
    options: Optional[List[str]] = None  # multiple_choice only
    correct_answer: Optional[Union[int, str]] = None  # option index or expected text
    points: int = Field(1, ge=1)
    explanation: Optional[str] = None
    required: bool = True

    @validator("kind", pre=True)
    def normalize_kind(cls, value: Any) -> Any:
        """Accept the hyphenated spellings used by stored documents."""
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value

    @validator("text")
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question text must not be empty")
        return value

    @model_validator(mode="after")
    def check_kind_fields(self) -> "Question":
        if self.kind is QuestionKind.MULTIPLE_CHOICE:
            options = self.options or []
            if len(options) < 2 or any(not option.strip() for option in options):
                raise ValueError("multiple_choice requires at least two non-empty options")
            answer = self.correct_answer
            if isinstance(answer, bool) or not isinstance(answer, int):
                raise ValueError("multiple_choice correct_answer must be an option index")
            if not 0 <= answer < len(options):
                raise ValueError("multiple_choice correct_answer is out of range")
        elif self.kind is QuestionKind.FILE_UPLOAD and self.correct_answer is not None:
            raise ValueError("file_upload questions cannot carry a correct_answer")
        return self


@dataclass(frozen=True)
class AttemptLimit:
    """Maximum number of attempts; ``maximum=None`` means unlimited."""

    maximum: Optional[int] = None

    @classmethod
    def unlimited(cls) -> "AttemptLimit":
        return cls(None)

    @classmethod
    def limited(cls, maximum: int) -> "AttemptLimit":
        if maximum < 1:
            raise ValueError("attempt limit must be at least 1")
        return cls(maximum)

    @classmethod
    def from_sentinel(cls, value: int) -> "AttemptLimit":
        """Convert the stored ``-1 = unlimited`` convention."""
        return cls.unlimited() if value == -1 else cls.limited(value)

    @property
    def is_unlimited(self) -> bool:
        return self.maximum is None

    def exhausted_by(self, attempt_count: int) -> bool:
        return self.maximum is not None and attempt_count >= self.maximum


@dataclass(frozen=True)
class TimeLimit:
    """Per-attempt time budget; ``seconds=None`` means untimed."""

    seconds: Optional[int] = None

    @classmethod
    def unlimited(cls) -> "TimeLimit":
        return cls(None)

    @classmethod
    def from_minutes(cls, minutes: int) -> "TimeLimit":
        """Convert the stored ``0 = unlimited`` convention."""
        return cls.unlimited() if minutes <= 0 else cls(minutes * 60)

    @property
    def is_unlimited(self) -> bool:
        return self.seconds is None


class AssessmentConfig(BaseModel):
    """Question set plus the policy knobs shared by quizzes and assignments."""

    subject_id: str
    title: str = ""
    kind: AssessmentKind = AssessmentKind.QUIZ
    questions: List[Question]
    time_limit_minutes: int = Field(0, ge=0)
    passing_score_percent: float = Field(70, ge=0, le=100)
    max_attempts: int = -1
    allow_late_submission: bool = False
    late_penalty_percent_per_day: float = Field(0, ge=0)
    show_answers_after_deadline: bool = False
    due_date: Optional[datetime] = None
    requires_prerequisite: bool = False

    @validator("questions")
    def validate_questions(cls, value: List[Question]) -> List[Question]:
        if not value:
            raise ValueError("assessment must include at least one question")
        ids = [question.id for question in value]
        if len(set(ids)) != len(ids):
            raise ValueError("question ids must be unique")
        return value

    @validator("max_attempts")
    def validate_max_attempts(cls, value: int) -> int:
        if value != -1 and value < 1:
            raise ValueError("max_attempts must be -1 (unlimited) or at least 1")
        return value

    @validator("due_date")
    def normalize_due_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @property
    def attempt_limit(self) -> AttemptLimit:
        return AttemptLimit.from_sentinel(self.max_attempts)

    @property
    def time_limit(self) -> TimeLimit:
        return TimeLimit.from_minutes(self.time_limit_minutes)

    @property
    def total_points(self) -> int:
        return sum(question.points for question in self.questions)

    def question(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def required_questions(self) -> List[Question]:
        """Questions that must be answered before a manual submit.

        Quizzes treat every question as required.
        """
        if self.kind is AssessmentKind.QUIZ:
            return list(self.questions)
        return [question for question in self.questions if question.required]


class Attempt(BaseModel):
    """One learner's pass through a question set, from start to submission."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    subject_id: str
    user_id: str
    answers: Dict[str, Any] = Field(default_factory=dict)
    started_at: datetime
    completed_at: Optional[datetime] = None
    raw_score_percent: Optional[int] = None
    final_score_percent: Optional[float] = None
    passed: Optional[bool] = None
    is_late: bool = False
    time_spent_seconds: int = Field(0, ge=0)
    auto_submitted: bool = False

    @validator("started_at", "completed_at")
    def normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def check_completion_order(self) -> "Attempt":
        if self.completed_at is not None and self.completed_at < self.started_at:
            raise ValueError("completed_at must not precede started_at")
        return self

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


class QuestionFeedback(BaseModel):
    """Per-question grading outcome."""

    question_id: str
    is_correct: Optional[bool] = None  # None => awaiting manual grading
    user_answer: Any = None
    correct_answer: Optional[Union[int, str]] = None
    explanation: Optional[str] = None
    points_earned: int = 0
    points_possible: int

    def redacted(self) -> "QuestionFeedback":
        """Copy with the answer key and explanation removed."""
        return self.model_copy(update={"correct_answer": None, "explanation": None})


class GradeReport(BaseModel):
    """Raw grading output before any late penalty."""

    raw_score_percent: int
    points_earned: int
    points_possible: int
    feedback: List[QuestionFeedback]


class AssessmentResult(BaseModel):
    """Reviewed attempt as handed back to the caller for display."""

    attempt: Attempt
    feedback: List[QuestionFeedback]
    can_view_answers: bool
