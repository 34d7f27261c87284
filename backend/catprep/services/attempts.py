"""Attempt store: creating, reading, retaking and closing test attempts."""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.db.models import AttemptQuestionDB, SubjectDB, TestAttemptDB
from catprep.exceptions import (
    AuthorizationException,
    ConflictException,
    InsufficientContentException,
    NotFoundException,
)
from catprep.models.attempt import (
    AttemptConfig,
    AttemptQuestion,
    AttemptStatus,
    AttemptSummary,
    QuestionStatus,
    Score,
    TestAttempt,
    TimerMode,
)
from catprep.models.question import DifficultyFilter, Question

from .question_bank import QuestionBankService, to_public
from .selector import QuestionSelector
from .timer import overall_time_remaining, per_question_time_remaining

logger = logging.getLogger(__name__)


def config_from_db(db_attempt: TestAttemptDB) -> AttemptConfig:
    # Stored snapshots were validated on the way in.
    return AttemptConfig.model_construct(
        subject_id=db_attempt.subject_id,
        topic_ids=db_attempt.get_topic_ids(),
        difficulty=DifficultyFilter(db_attempt.difficulty),
        question_count=db_attempt.question_count,
        timer_mode=TimerMode(db_attempt.timer_mode),
        time_limit=db_attempt.time_limit,
    )


def score_from_db(db_attempt: TestAttemptDB) -> Score | None:
    if db_attempt.score_total is None:
        return None
    return Score(
        total=db_attempt.score_total,
        correct=db_attempt.score_correct,
        incorrect=db_attempt.score_incorrect,
        skipped=db_attempt.score_skipped,
    )


def attempt_question_from_db(row: AttemptQuestionDB) -> AttemptQuestion:
    return AttemptQuestion(
        position=row.position,
        question_id=row.question_id,
        status=row.status,
        selected_option=row.selected_option,
        is_correct=row.is_correct,
        time_taken=row.time_taken,
        time_remaining=row.time_remaining,
    )


def new_attempt_questions(question_ids: list[str]) -> list[AttemptQuestionDB]:
    """Fresh per-question state, in exam order."""
    return [
        AttemptQuestionDB(
            position=position,
            question_id=question_id,
            status=QuestionStatus.UNATTEMPTED.value,
            selected_option=None,
            is_correct=False,
            time_taken=0,
            time_remaining=None,
        )
        for position, question_id in enumerate(question_ids)
    ]


class AttemptService:
    """Persisted lifecycle of test attempts.

    Status only ever moves from in_progress to completed or aborted; every
    write to an attempt goes through :meth:`update_if_in_progress` so that a
    finished attempt cannot be changed afterwards.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.question_bank = QuestionBankService(db)

    async def start(
        self,
        user_id: str,
        config: AttemptConfig,
        selector: QuestionSelector | None = None,
    ) -> TestAttempt:
        """Select questions for ``config`` and create the attempt."""
        if await self.db.get(SubjectDB, config.subject_id) is None:
            raise NotFoundException("Subject")
        selector = selector or QuestionSelector(self.db)
        questions = await selector.select(
            config.subject_id, config.topic_ids, config.difficulty, config.question_count
        )
        return await self.create(user_id, config, questions)

    async def create(
        self, user_id: str, config: AttemptConfig, questions: list[Question]
    ) -> TestAttempt:
        """Persist a new attempt over ``questions`` in the given order."""
        if not questions:
            raise InsufficientContentException()

        db_attempt = self._new_attempt(user_id, config, [q.id for q in questions])
        self.db.add(db_attempt)
        await self.db.commit()
        logger.info(
            f"Created attempt {db_attempt.id} for user {user_id} "
            f"({len(questions)} questions, {config.timer_mode.value})"
        )
        return self.project(db_attempt, {q.id: q for q in questions})

    async def retake(self, attempt_id: str, requester_id: str) -> TestAttempt:
        """New attempt with the same configuration and question order."""
        source = await self.get_owned(attempt_id, requester_id)
        question_ids = [row.question_id for row in source.questions]

        db_attempt = self._new_attempt(requester_id, config_from_db(source), question_ids)
        self.db.add(db_attempt)
        await self.db.commit()
        logger.info(f"Attempt {attempt_id} retaken as {db_attempt.id}")

        questions = await self.question_bank.get_questions_by_ids(question_ids)
        return self.project(db_attempt, questions)

    async def get_owned(self, attempt_id: str, requester_id: str) -> TestAttemptDB:
        db_attempt = await self.db.get(TestAttemptDB, attempt_id)
        if db_attempt is None:
            raise NotFoundException("Attempt")
        if db_attempt.user_id != requester_id:
            raise AuthorizationException("You do not own this attempt")
        return db_attempt

    async def get(
        self, attempt_id: str, requester_id: str, now: datetime | None = None
    ) -> TestAttempt:
        """Read an attempt; answers and solutions stay hidden until it is completed."""
        db_attempt = await self.get_owned(attempt_id, requester_id)
        questions = await self.question_bank.get_questions_by_ids(
            [row.question_id for row in db_attempt.questions]
        )
        return self.project(db_attempt, questions, now)

    async def history(self, user_id: str) -> list[AttemptSummary]:
        """A user's attempts, newest first."""
        result = await self.db.execute(
            select(TestAttemptDB)
            .where(TestAttemptDB.user_id == user_id)
            .order_by(TestAttemptDB.started_at.desc())
        )
        attempts = result.scalars().all()

        subject_ids = {a.subject_id for a in attempts}
        names = {}
        if subject_ids:
            rows = await self.db.execute(
                select(SubjectDB.id, SubjectDB.name).where(SubjectDB.id.in_(subject_ids))
            )
            names = dict(rows.all())

        return [
            AttemptSummary(
                id=a.id,
                subject_id=a.subject_id,
                subject_name=names.get(a.subject_id),
                status=a.status,
                config=config_from_db(a),
                total_questions=len(a.questions),
                score=score_from_db(a),
                started_at=a.started_at,
                completed_at=a.completed_at,
            )
            for a in attempts
        ]

    async def abort(self, attempt_id: str, requester_id: str) -> TestAttempt:
        db_attempt = await self.get_owned(attempt_id, requester_id)
        await self.update_if_in_progress(db_attempt, status=AttemptStatus.ABORTED.value)
        await self.db.commit()
        logger.info(f"Attempt {attempt_id} aborted")
        return await self.get(attempt_id, requester_id)

    async def delete(self, attempt_id: str, requester_id: str) -> None:
        db_attempt = await self.get_owned(attempt_id, requester_id)
        await self.db.delete(db_attempt)
        await self.db.commit()
        logger.info(f"Attempt {attempt_id} deleted by {requester_id}")

    async def update_if_in_progress(self, db_attempt: TestAttemptDB, **values) -> None:
        """Write attempt columns only while the attempt is still in progress.

        The status check and the write are one statement, so two requests
        racing to finish the same attempt cannot both succeed.
        """
        if db_attempt.status != AttemptStatus.IN_PROGRESS.value:
            raise ConflictException(f"Attempt is already {db_attempt.status}")

        values = values or {"status": AttemptStatus.IN_PROGRESS.value}
        result = await self.db.execute(
            update(TestAttemptDB)
            .where(TestAttemptDB.id == db_attempt.id)
            .where(TestAttemptDB.status == AttemptStatus.IN_PROGRESS.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise ConflictException("Attempt is no longer in progress")
        for key, value in values.items():
            setattr(db_attempt, key, value)

    def project(
        self,
        db_attempt: TestAttemptDB,
        questions: dict[str, Question],
        now: datetime | None = None,
    ) -> TestAttempt:
        """Client view of an attempt."""
        status = AttemptStatus(db_attempt.status)
        reveal = status == AttemptStatus.COMPLETED
        config = config_from_db(db_attempt)

        rows = []
        for row in db_attempt.questions:
            view = attempt_question_from_db(row)
            question = questions.get(row.question_id)
            if question is None:
                logger.warning(
                    f"Attempt {db_attempt.id} references missing question {row.question_id}"
                )
            else:
                view.question = to_public(question, reveal=reveal)
            if not reveal:
                view.is_correct = None
            rows.append(view)

        effective = None
        if status == AttemptStatus.IN_PROGRESS and rows:
            if config.timer_mode == TimerMode.OVERALL:
                effective = overall_time_remaining(
                    db_attempt.started_at, config.time_limit, db_attempt.time_remaining, now
                )
            else:
                index = min(db_attempt.last_question_index, len(rows) - 1)
                effective = per_question_time_remaining(
                    config.time_limit, rows[index].time_remaining
                )

        return TestAttempt(
            id=db_attempt.id,
            user_id=db_attempt.user_id,
            status=status,
            config=config,
            questions=rows,
            score=score_from_db(db_attempt),
            started_at=db_attempt.started_at,
            completed_at=db_attempt.completed_at,
            time_remaining=db_attempt.time_remaining,
            last_question_index=db_attempt.last_question_index,
            effective_time_remaining=effective,
        )

    def _new_attempt(
        self, user_id: str, config: AttemptConfig, question_ids: list[str]
    ) -> TestAttemptDB:
        db_attempt = TestAttemptDB(
            user_id=user_id,
            status=AttemptStatus.IN_PROGRESS.value,
            subject_id=config.subject_id,
            difficulty=config.difficulty.value,
            question_count=config.question_count,
            timer_mode=config.timer_mode.value,
            time_limit=config.time_limit,
            started_at=datetime.utcnow(),
            time_remaining=None,
            last_question_index=0,
        )
        db_attempt.set_topic_ids(config.topic_ids)
        db_attempt.questions = new_attempt_questions(question_ids)
        return db_attempt
