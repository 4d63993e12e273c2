from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from assessment_engine.assessment.models import AssessmentConfig, Attempt
from assessment_engine.assessment.prerequisites import (
    DEFAULT_VIDEO_COMPLETION_PERCENT,
    VideoProgress,
    video_prerequisite_satisfied,
)
from assessment_engine.config.loader import read_yaml
from assessment_engine.storage.base import AssessmentBackend
from assessment_engine.storage.jsonl_store import JsonlStore

logger = logging.getLogger(__name__)


class FileBackend(AssessmentBackend):
    """
    Local-disk collaborator: YAML question sets plus JSONL attempt and video logs.

    Question sets live in ``question_sets_dir/<subject_id>.yaml``. The file's
    ``subject_id`` defaults to the file stem. Attempts are upserted by id, so
    persisting the same attempt twice leaves a single record.
    """

    def __init__(
        self,
        question_sets_dir: Path,
        attempts_path: Path,
        video_progress_path: Path,
        video_completion_percent: float = DEFAULT_VIDEO_COMPLETION_PERCENT,
    ):
        self.question_sets_dir = question_sets_dir
        self.attempts = JsonlStore(attempts_path, Attempt, key=lambda attempt: attempt.id)
        self.video_progress = JsonlStore(
            video_progress_path,
            VideoProgress,
            key=lambda progress: (progress.user_id, progress.subject_id),
        )
        self.video_completion_percent = video_completion_percent

    def question_set_path(self, subject_id: str) -> Path:
        return self.question_sets_dir / f"{subject_id}.yaml"

    def load_question_set(self, subject_id: str) -> AssessmentConfig:
        data = read_yaml(self.question_set_path(subject_id))
        data.setdefault("subject_id", subject_id)
        try:
            return AssessmentConfig.model_validate(data)
        except ValidationError as exc:
            logger.error("Question set %s failed validation: %s", subject_id, exc)
            raise ValueError(f"Invalid question set {subject_id}: {exc}") from exc

    def load_prior_attempts(self, user_id: str, subject_id: str) -> List[Attempt]:
        matches = [
            attempt
            for attempt in self.attempts.load()
            if attempt.user_id == user_id and attempt.subject_id == subject_id
        ]
        return sorted(matches, key=lambda attempt: attempt.started_at, reverse=True)

    def persist_attempt(self, attempt: Attempt) -> None:
        self.attempts.upsert([attempt])

    def record_video_progress(self, progress: VideoProgress) -> None:
        self.video_progress.upsert([progress])

    def is_prerequisite_satisfied(self, user_id: str, subject_id: str) -> bool:
        progress = next(
            (
                record
                for record in self.video_progress.load()
                if record.user_id == user_id and record.subject_id == subject_id
            ),
            None,
        )
        return video_prerequisite_satisfied(progress, self.video_completion_percent)
