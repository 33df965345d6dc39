from __future__ import annotations

import logging
import random

import pytest

from conftest import make_question
from quizzy.core.errors import EmptyPoolError
from quizzy.core.models import Question
from quizzy.core.services.question_pool import QuestionPool


def test_sample_returns_distinct_questions_from_pool():
    pool = QuestionPool([make_question(f"id-{i}") for i in range(8)], rng=random.Random(7))
    ids = {q.id for q in pool.questions()}

    for _ in range(100):
        sampled = pool.sample(5)
        assert len(sampled) == 5
        assert len({q.id for q in sampled}) == 5
        assert {q.id for q in sampled} <= ids


def test_sample_larger_than_pool_returns_everything():
    pool = QuestionPool([make_question(f"id-{i}") for i in range(3)])

    sampled = pool.sample(5)

    assert sorted(q.id for q in sampled) == ["id-0", "id-1", "id-2"]


def test_sample_from_empty_pool_raises():
    with pytest.raises(EmptyPoolError):
        QuestionPool().sample(5)


def test_sample_rejects_non_positive_length():
    pool = QuestionPool([make_question("a"), make_question("b")])
    with pytest.raises(ValueError):
        pool.sample(0)


def test_sample_is_not_biased_towards_insertion_order():
    pool = QuestionPool([make_question(f"id-{i}") for i in range(8)], rng=random.Random(1))

    first_picks = {pool.sample(1)[0].id for _ in range(200)}

    assert first_picks == {f"id-{i}" for i in range(8)}


def test_seeded_pools_sample_identically():
    questions = [make_question(f"id-{i}") for i in range(8)]
    first = QuestionPool(questions)
    second = QuestionPool(questions)
    first.set_seed(42)
    second.set_seed(42)

    assert [q.id for q in first.sample(5)] == [q.id for q in second.sample(5)]


@pytest.mark.parametrize(
    "question",
    [
        Question(id="blank", prompt="   ", options=("a", "b"), correct_index=0),
        Question(id="one-option", prompt="Q", options=("only",), correct_index=0),
        Question(id="out-of-range", prompt="Q", options=("a", "b"), correct_index=2),
        Question(id="negative", prompt="Q", options=("a", "b"), correct_index=-1),
        Question(id="duplicates", prompt="Q", options=("a", "a"), correct_index=0),
        Question(id="empty-option", prompt="Q", options=("a", " "), correct_index=0),
        Question(id="bool-index", prompt="Q", options=("a", "b"), correct_index=True),
    ],
    ids=lambda q: q.id,
)
def test_invalid_questions_are_filtered_at_load(question, caplog):
    with caplog.at_level(logging.WARNING):
        pool = QuestionPool([question, make_question("good")])

    assert [q.id for q in pool.questions()] == ["good"]
    assert "Skipping invalid question" in caplog.text


def test_pool_of_only_invalid_questions_cannot_start_quiz():
    pool = QuestionPool([Question(id="bad", prompt="Q", options=("a",), correct_index=0)])

    assert pool.size == 0
    with pytest.raises(EmptyPoolError):
        pool.sample(5)


def test_missing_ids_are_assigned_and_duplicates_rejected():
    pool = QuestionPool([make_question(None), make_question(None), make_question("x"), make_question("x")])

    ids = [q.id for q in pool.questions()]
    assert ids == ["q-1", "q-2", "x"]


def test_load_normalises_whitespace():
    pool = QuestionPool([Question(id=None, prompt="  What?  ", options=(" yes ", "no"), correct_index=1)])

    question = pool.questions()[0]
    assert question.prompt == "What?"
    assert question.options == ("yes", "no")


def test_generated_ids_skip_ids_supplied_by_source(caplog):
    with caplog.at_level(logging.WARNING):
        pool = QuestionPool([make_question(None), make_question("q-1"), make_question("q-2"), make_question(None)])

    ids = [q.id for q in pool.questions()]
    assert pool.size == 4
    assert ids == ["q-3", "q-1", "q-2", "q-4"]
    assert "Duplicate" not in caplog.text
