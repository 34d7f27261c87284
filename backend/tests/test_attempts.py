"""Tests for the attempt store."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from catprep.db.models import TestAttemptDB as AttemptRow
from catprep.exceptions import (
    AuthorizationException,
    ConflictException,
    InsufficientContentException,
    NotFoundException,
)
from catprep.models.attempt import AnswerUpdate, AttemptStatus, ProgressUpdate, QuestionStatus
from catprep.services.attempts import AttemptService
from catprep.services.progress import ProgressService
from catprep.services.question_bank import QuestionBankService
from catprep.services.scoring import ScoringService


async def start(db, user, config):
    return await AttemptService(db).start(user.id, config)


async def test_create_initializes_every_question(db, student, make_config):
    attempt = await start(db, student, make_config())

    assert attempt.status == AttemptStatus.IN_PROGRESS
    assert attempt.user_id == student.id
    assert attempt.completed_at is None
    assert attempt.score is None
    assert attempt.last_question_index == 0
    assert len(attempt.questions) == 3
    assert [q.position for q in attempt.questions] == [0, 1, 2]
    for row in attempt.questions:
        assert row.status == QuestionStatus.UNATTEMPTED
        assert row.selected_option is None
        assert row.time_taken == 0
        assert row.time_remaining is None


async def test_create_keeps_given_order(db, student, catalog, make_config):
    bank = QuestionBankService(db)
    questions = await bank.get_questions_by_ids(catalog.arithmetic_ids)
    ordered = [questions[qid] for qid in reversed(catalog.arithmetic_ids)]

    attempt = await AttemptService(db).create(student.id, make_config(question_count=4), ordered)
    fetched = await AttemptService(db).get(attempt.id, student.id)

    assert [q.question_id for q in fetched.questions] == list(reversed(catalog.arithmetic_ids))


async def test_start_without_content_creates_nothing(db, student, catalog, make_config):
    config = make_config(topic_ids=[catalog.algebra_id], difficulty="hard")

    with pytest.raises(InsufficientContentException):
        await start(db, student, config)

    assert await db.scalar(select(func.count()).select_from(AttemptRow)) == 0


async def test_start_with_unknown_subject(db, student, make_config):
    with pytest.raises(NotFoundException):
        await start(db, student, make_config(subject_id="missing"))


async def test_get_checks_ownership(db, student, other_student, make_config):
    attempt = await start(db, student, make_config())
    service = AttemptService(db)

    with pytest.raises(AuthorizationException):
        await service.get(attempt.id, other_student.id)
    with pytest.raises(NotFoundException):
        await service.get("no-such-attempt", student.id)


async def test_answers_hidden_until_completed(db, student, make_config):
    attempt = await start(db, student, make_config())
    service = AttemptService(db)

    in_progress = await service.get(attempt.id, student.id)
    for row in in_progress.questions:
        assert row.question is not None
        assert row.question.correct_answer is None
        assert row.question.solution is None
        assert row.is_correct is None

    await ScoringService(db).submit(attempt.id, student.id, [])
    completed = await service.get(attempt.id, student.id)
    for row in completed.questions:
        assert row.question.correct_answer in {"a", "b", "c", "d"}
        assert row.question.solution
        assert row.is_correct is False


async def test_retake_copies_config_and_sequence(db, student, make_config):
    source = await start(db, student, make_config(timer_mode="per_question", time_limit=2))
    await ProgressService(db).save_progress(
        source.id,
        student.id,
        ProgressUpdate(
            answers=[
                AnswerUpdate(
                    question_id=source.questions[0].question_id,
                    selected_option="a",
                    time_taken=12,
                    time_remaining=0,
                )
            ],
            current_index=2,
        ),
    )

    retake = await AttemptService(db).retake(source.id, student.id)

    assert retake.id != source.id
    assert retake.config == source.config
    assert [q.question_id for q in retake.questions] == [q.question_id for q in source.questions]
    assert retake.last_question_index == 0
    for row in retake.questions:
        assert row.status == QuestionStatus.UNATTEMPTED
        assert row.selected_option is None
        assert row.time_taken == 0
        assert row.time_remaining is None


async def test_retake_requires_owner(db, student, other_student, make_config):
    source = await start(db, student, make_config())

    with pytest.raises(AuthorizationException):
        await AttemptService(db).retake(source.id, other_student.id)
    with pytest.raises(NotFoundException):
        await AttemptService(db).retake("missing", student.id)


async def test_history_newest_first(db, student, other_student, make_config):
    service = AttemptService(db)
    first = await start(db, student, make_config())
    second = await start(db, student, make_config(question_count=2))
    await start(db, other_student, make_config())
    row = await db.get(AttemptRow, first.id)
    row.started_at = row.started_at - timedelta(hours=1)
    await db.commit()

    history = await service.history(student.id)

    assert [h.id for h in history] == [second.id, first.id]
    assert history[0].subject_name == "Quantitative Aptitude"
    assert history[0].total_questions == 2


async def test_abort_is_one_way(db, student, make_config):
    attempt = await start(db, student, make_config())
    service = AttemptService(db)

    aborted = await service.abort(attempt.id, student.id)
    assert aborted.status == AttemptStatus.ABORTED

    with pytest.raises(ConflictException):
        await service.abort(attempt.id, student.id)
    with pytest.raises(ConflictException):
        await ScoringService(db).submit(attempt.id, student.id, [])


async def test_delete_attempt(db, student, other_student, make_config):
    attempt = await start(db, student, make_config())
    service = AttemptService(db)

    with pytest.raises(AuthorizationException):
        await service.delete(attempt.id, other_student.id)

    await service.delete(attempt.id, student.id)
    with pytest.raises(NotFoundException):
        await service.get(attempt.id, student.id)


async def test_effective_time_remaining(db, student, make_config):
    attempt = await start(db, student, make_config(time_limit=1))
    service = AttemptService(db)
    started = attempt.started_at

    fresh = await service.get(attempt.id, student.id, now=started + timedelta(seconds=25))
    assert fresh.effective_time_remaining == 35

    await ProgressService(db).save_progress(
        attempt.id, student.id, ProgressUpdate(session_time_remaining=50)
    )
    resumed = await service.get(attempt.id, student.id, now=started + timedelta(seconds=40))
    assert resumed.effective_time_remaining == 50


async def test_deleted_question_stays_in_history(db, student, catalog, make_config):
    attempt = await start(db, student, make_config(question_count=4))
    removed = attempt.questions[1].question_id

    await QuestionBankService(db).delete_question(removed)
    fetched = await AttemptService(db).get(attempt.id, student.id)

    assert len(fetched.questions) == 4
    assert fetched.questions[1].question_id == removed
    assert fetched.questions[1].question is None
