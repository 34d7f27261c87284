"""Tests for random question selection."""

import random

import pytest

from catprep.exceptions import InsufficientContentException
from catprep.models.question import DifficultyFilter
from catprep.services.selector import QuestionSelector


async def test_sample_size_is_capped_by_request(db, catalog):
    questions = await QuestionSelector(db).select(
        catalog.subject_id, [catalog.arithmetic_id], DifficultyFilter.MIXED, 3
    )

    ids = [q.id for q in questions]
    assert len(ids) == 3
    assert len(set(ids)) == 3
    assert set(ids) <= set(catalog.arithmetic_ids)


async def test_sample_size_is_capped_by_matching_set(db, catalog):
    questions = await QuestionSelector(db).select(
        catalog.subject_id, [catalog.arithmetic_id, catalog.algebra_id], DifficultyFilter.MIXED, 50
    )

    assert sorted(q.id for q in questions) == sorted(catalog.arithmetic_ids + catalog.algebra_ids)


async def test_difficulty_filter(db, catalog):
    questions = await QuestionSelector(db).select(
        catalog.subject_id, [catalog.arithmetic_id], DifficultyFilter.EASY, 10
    )

    assert len(questions) == 2
    assert all(q.difficulty.value == "easy" for q in questions)


async def test_topics_outside_subject_do_not_match(db, catalog):
    with pytest.raises(InsufficientContentException):
        await QuestionSelector(db).select(
            catalog.subject_id, [catalog.reading_id], DifficultyFilter.MIXED, 5
        )


async def test_empty_match_fails(db, catalog):
    with pytest.raises(InsufficientContentException):
        await QuestionSelector(db).select(
            catalog.subject_id, [catalog.algebra_id], DifficultyFilter.HARD, 5
        )


async def test_seeded_rng_gives_repeatable_order(db, catalog):
    topics = [catalog.arithmetic_id, catalog.algebra_id]
    first = await QuestionSelector(db, random.Random(7)).select(catalog.subject_id, topics, count=4)
    second = await QuestionSelector(db, random.Random(7)).select(catalog.subject_id, topics, count=4)

    assert [q.id for q in first] == [q.id for q in second]


async def test_selection_keeps_answers(db, catalog):
    questions = await QuestionSelector(db).select(
        catalog.subject_id, [catalog.algebra_id], DifficultyFilter.MEDIUM, 2
    )

    by_text = {q.text: q for q in questions}
    assert by_text["Algebra 1"].correct_answer == "a"
    assert len(by_text["Algebra 2"].options) == 4
