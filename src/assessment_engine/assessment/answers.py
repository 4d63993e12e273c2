from __future__ import annotations

from typing import Any, Dict, List

from assessment_engine.assessment.errors import UnknownQuestion
from assessment_engine.assessment.models import AssessmentConfig


def is_answered(value: Any) -> bool:
    """Return True when a stored answer counts as given."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict, set)):
        return bool(value)
    return True


class AnswerStore:
    """Mutable question id -> answer mapping for one in-progress attempt.

    Only ids from the configured question set are accepted, and empty values
    clear the entry instead of being stored.
    """

    def __init__(self, config: AssessmentConfig):
        self.config = config
        self._question_ids = {question.id for question in config.questions}
        self._answers: Dict[str, Any] = {}

    def set_answer(self, question_id: str, value: Any) -> None:
        """Replace any prior answer for ``question_id``."""
        if question_id not in self._question_ids:
            raise UnknownQuestion(question_id)
        if is_answered(value):
            self._answers[question_id] = value
        else:
            self._answers.pop(question_id, None)

    def get(self, question_id: str) -> Any:
        return self._answers.get(question_id)

    def clear(self) -> None:
        self._answers.clear()

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the current answers, safe to hand to an Attempt."""
        return dict(self._answers)

    def answered_count(self) -> int:
        return sum(1 for value in self._answers.values() if is_answered(value))

    def required_answered_count(self) -> int:
        return sum(
            1
            for question in self.config.questions
            if question.required and is_answered(self._answers.get(question.id))
        )

    def missing_required(self) -> List[str]:
        return [
            question.id
            for question in self.config.required_questions()
            if not is_answered(self._answers.get(question.id))
        ]

    def is_complete(self) -> bool:
        return not self.missing_required()

    def __len__(self) -> int:
        return len(self._answers)
