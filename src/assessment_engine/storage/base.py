from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from assessment_engine.assessment.models import AssessmentConfig, Attempt


class AssessmentBackend(ABC):
    """Persistence and gating collaborator the session engine depends on."""

    @abstractmethod
    def load_question_set(self, subject_id: str) -> AssessmentConfig:
        """Return the question set and policy configuration for a subject."""

    @abstractmethod
    def load_prior_attempts(self, user_id: str, subject_id: str) -> List[Attempt]:
        """Return the learner's stored attempts for a subject, newest first."""

    @abstractmethod
    def persist_attempt(self, attempt: Attempt) -> None:
        """Store a completed attempt; saving the same attempt id twice must be harmless."""

    def is_prerequisite_satisfied(self, user_id: str, subject_id: str) -> bool:
        """Report whether the learner may attempt a subject that requires a prerequisite."""
        return True
