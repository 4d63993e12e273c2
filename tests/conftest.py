"""Shared fixtures: sample question sets, a simulated clock and an in-memory backend."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from assessment_engine.assessment.models import AssessmentConfig, Question
from assessment_engine.assessment.timer import ManualScheduler
from assessment_engine.storage.memory import InMemoryBackend

T0 = datetime(2024, 1, 8, 9, 0, tzinfo=timezone.utc)
DUE = datetime(2024, 1, 10, 0, 0, tzinfo=timezone.utc)


def make_quiz(**overrides) -> AssessmentConfig:
    """Two multiple-choice questions worth 2 and 3 points, passing score 70."""
    data = dict(
        subject_id="physics-quiz",
        title="Physics Basics",
        kind="quiz",
        questions=[
            Question(
                id="q1",
                text="What is the unit of force?",
                kind="multiple_choice",
                options=["Joule", "Newton", "Watt"],
                correct_answer=1,
                points=2,
                explanation="Force is measured in Newtons (N).",
            ),
            Question(
                id="q2",
                text="What is acceleration?",
                kind="multiple_choice",
                options=["Rate of change of velocity", "Rate of change of position"],
                correct_answer=0,
                points=3,
                explanation="Acceleration is the rate of change of velocity.",
            ),
        ],
        passing_score_percent=70,
    )
    data.update(overrides)
    return AssessmentConfig(**data)


def make_assignment(**overrides) -> AssessmentConfig:
    """Assignment mixing auto-graded and manually graded questions."""
    data = dict(
        subject_id="week1-assignment",
        title="Week 1 Assignment",
        kind="assignment",
        questions=[
            Question(
                id="mc",
                text="Which law is the law of inertia?",
                kind="multiple_choice",
                options=["First", "Second", "Third"],
                correct_answer=0,
                points=4,
                explanation="Newton's first law.",
            ),
            Question(
                id="short",
                text="Name the SI unit of energy.",
                kind="short_answer",
                correct_answer="Joule",
                points=4,
                explanation="Energy is measured in joules.",
            ),
            Question(
                id="essay",
                text="Explain momentum in your own words.",
                kind="essay",
                points=2,
                required=False,
            ),
        ],
        due_date=DUE,
        allow_late_submission=True,
        late_penalty_percent_per_day=10,
        max_attempts=3,
        show_answers_after_deadline=True,
    )
    data.update(overrides)
    return AssessmentConfig(**data)


@pytest.fixture
def scheduler():
    """Simulated clock and timer queue starting at T0."""
    return ManualScheduler(T0)


@pytest.fixture
def quiz():
    return make_quiz()


@pytest.fixture
def assignment():
    return make_assignment()


@pytest.fixture
def backend(quiz, assignment):
    """In-memory collaborator preloaded with both sample subjects."""
    return InMemoryBackend(question_sets=[quiz, assignment])
