from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from assessment_engine.assessment.models import AssessmentConfig, Attempt
from assessment_engine.assessment.prerequisites import (
    DEFAULT_VIDEO_COMPLETION_PERCENT,
    VideoProgress,
    video_prerequisite_satisfied,
)
from assessment_engine.storage.base import AssessmentBackend


class InMemoryBackend(AssessmentBackend):
    """Dictionary-backed collaborator, handy for tests and embedding in other apps."""

    def __init__(
        self,
        question_sets: Optional[Iterable[AssessmentConfig]] = None,
        attempts: Optional[Iterable[Attempt]] = None,
        video_completion_percent: float = DEFAULT_VIDEO_COMPLETION_PERCENT,
    ):
        self.question_sets: Dict[str, AssessmentConfig] = {
            config.subject_id: config for config in question_sets or []
        }
        self.attempts: Dict[str, Attempt] = {attempt.id: attempt for attempt in attempts or []}
        self.video_progress: Dict[Tuple[str, str], VideoProgress] = {}
        self.video_completion_percent = video_completion_percent
        self.persist_calls = 0

    def add_question_set(self, config: AssessmentConfig) -> None:
        self.question_sets[config.subject_id] = config

    def record_video_progress(self, progress: VideoProgress) -> None:
        self.video_progress[(progress.user_id, progress.subject_id)] = progress

    def load_question_set(self, subject_id: str) -> AssessmentConfig:
        try:
            return self.question_sets[subject_id]
        except KeyError:
            raise KeyError(f"Unknown subject: {subject_id}") from None

    def load_prior_attempts(self, user_id: str, subject_id: str) -> List[Attempt]:
        matches = [
            attempt
            for attempt in self.attempts.values()
            if attempt.user_id == user_id and attempt.subject_id == subject_id
        ]
        return sorted(matches, key=lambda attempt: attempt.started_at, reverse=True)

    def persist_attempt(self, attempt: Attempt) -> None:
        self.persist_calls += 1
        self.attempts[attempt.id] = attempt.model_copy(deep=True)

    def is_prerequisite_satisfied(self, user_id: str, subject_id: str) -> bool:
        return video_prerequisite_satisfied(
            self.video_progress.get((user_id, subject_id)),
            self.video_completion_percent,
        )
