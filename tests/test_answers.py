"""Tests for the answer store counters and completeness rules."""

from __future__ import annotations

import pytest

from assessment_engine.assessment.answers import AnswerStore, is_answered
from assessment_engine.assessment.errors import UnknownQuestion


@pytest.mark.parametrize("value", [None, "", "   ", [], {}])
def test_empty_values_do_not_count(value):
    assert not is_answered(value)


@pytest.mark.parametrize("value", [0, "a", ["file.pdf"], False])
def test_given_values_count(value):
    assert is_answered(value)


def test_set_answer_replaces_and_clears(quiz):
    store = AnswerStore(quiz)
    store.set_answer("q1", 0)
    store.set_answer("q1", 1)
    assert store.get("q1") == 1
    assert store.answered_count() == 1

    store.set_answer("q1", "")
    assert store.get("q1") is None
    assert store.answered_count() == 0


def test_unknown_question_is_rejected(quiz):
    store = AnswerStore(quiz)
    with pytest.raises(UnknownQuestion):
        store.set_answer("not-a-question", 1)
    assert store.snapshot() == {}


def test_quiz_complete_only_when_all_answered(quiz):
    store = AnswerStore(quiz)
    store.set_answer("q1", 1)
    assert not store.is_complete()
    assert store.missing_required() == ["q2"]
    store.set_answer("q2", 0)
    assert store.is_complete()


def test_assignment_completeness_ignores_optional_questions(assignment):
    store = AnswerStore(assignment)
    store.set_answer("mc", 0)
    store.set_answer("short", "joule")
    assert store.required_answered_count() == 2
    assert store.is_complete()

    store.set_answer("essay", "Momentum is mass times velocity.")
    assert store.answered_count() == 3
    assert store.required_answered_count() == 2


def test_snapshot_is_a_copy(quiz):
    store = AnswerStore(quiz)
    store.set_answer("q1", 1)
    snapshot = store.snapshot()
    snapshot["q2"] = 0
    assert store.get("q2") is None
