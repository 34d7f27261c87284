"""Question bank service for managing and retrieving questions."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.db.models import AttemptQuestionDB, QuestionDB, SubjectDB, TestAttemptDB, TopicDB
from catprep.exceptions import ConflictException, NotFoundException, ValidationException
from catprep.models.attempt import AttemptStatus
from catprep.models.question import (
    AnswerCheck,
    AnswerResult,
    BulkImportResult,
    Option,
    Question,
    QuestionCreate,
    QuestionImport,
    QuestionPublic,
)

logger = logging.getLogger(__name__)


def question_from_db(db_question: QuestionDB) -> Question:
    return Question(
        id=db_question.id,
        text=db_question.text,
        options=[Option(**option) for option in db_question.get_options()],
        correct_answer=db_question.correct_answer,
        solution=db_question.solution or "",
        difficulty=db_question.difficulty,
        subject_id=db_question.subject_id,
        topic_id=db_question.topic_id,
        tags=db_question.get_tags(),
        created_at=db_question.created_at,
    )


def to_public(question: Question, reveal: bool = False) -> QuestionPublic:
    """Project a question for a test taker; answer and solution only when revealed."""
    return QuestionPublic(
        id=question.id,
        text=question.text,
        options=question.options,
        difficulty=question.difficulty,
        subject_id=question.subject_id,
        topic_id=question.topic_id,
        correct_answer=question.correct_answer if reveal else None,
        solution=question.solution if reveal else None,
    )


class QuestionBankService:
    """Service for managing the question bank."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_question(self, question_id: str) -> Question | None:
        """Get a single question by ID."""
        db_question = await self.db.get(QuestionDB, question_id)
        if not db_question:
            return None
        return question_from_db(db_question)

    async def get_questions_by_ids(self, question_ids: list[str]) -> dict[str, Question]:
        """Load many questions at once. Missing ids are simply absent from the result."""
        if not question_ids:
            return {}
        result = await self.db.execute(
            select(QuestionDB).where(QuestionDB.id.in_(set(question_ids)))
        )
        return {q.id: question_from_db(q) for q in result.scalars().all()}

    async def list_questions(self) -> list[Question]:
        """All questions, newest first."""
        result = await self.db.execute(
            select(QuestionDB).order_by(QuestionDB.created_at.desc())
        )
        return [question_from_db(q) for q in result.scalars().all()]

    async def count_questions(self) -> int:
        return await self.db.scalar(select(func.count()).select_from(QuestionDB)) or 0

    async def create_question(self, question: QuestionCreate) -> Question:
        """Create a new question under an existing subject and topic."""
        topic = await self.db.get(TopicDB, question.topic_id)
        if topic is None:
            raise NotFoundException("Topic")
        if topic.subject_id != question.subject_id:
            raise ValidationException("Topic does not belong to the given subject")

        db_question = self._new_question(question, question.subject_id, question.topic_id)
        self.db.add(db_question)
        await self.db.commit()
        return question_from_db(db_question)

    async def delete_question(self, question_id: str) -> None:
        """Remove a question. Attempts that used it keep a dangling reference."""
        db_question = await self.db.get(QuestionDB, question_id)
        if db_question is None:
            raise NotFoundException("Question")
        await self.db.delete(db_question)
        await self.db.commit()
        logger.info(f"Deleted question {question_id}")

    async def check_answer(
        self, answer_check: AnswerCheck, requester_id: str | None = None
    ) -> AnswerResult:
        """Check a single selection outside of a test attempt.

        Refused while the question is part of one of the requester's open
        attempts, so the answer cannot be looked up mid-test.
        """
        question = await self.get_question(answer_check.question_id)
        if not question:
            raise NotFoundException("Question")
        if requester_id is not None and await self._in_open_attempt(question.id, requester_id):
            logger.warning(
                f"Refused answer check for question {question.id} in an open attempt of {requester_id}"
            )
            raise ConflictException("Question is part of a test in progress")

        return AnswerResult(
            is_correct=answer_check.selected_option == question.correct_answer,
            correct_answer=question.correct_answer,
            solution=question.solution,
        )

    async def _in_open_attempt(self, question_id: str, user_id: str) -> bool:
        found = await self.db.scalar(
            select(AttemptQuestionDB.id)
            .join(TestAttemptDB, AttemptQuestionDB.attempt_id == TestAttemptDB.id)
            .where(AttemptQuestionDB.question_id == question_id)
            .where(TestAttemptDB.user_id == user_id)
            .where(TestAttemptDB.status == AttemptStatus.IN_PROGRESS.value)
            .limit(1)
        )
        return found is not None

    async def import_questions(self, rows: list[QuestionImport]) -> BulkImportResult:
        """Import questions that name their subject and topic.

        Unknown subjects reject the whole batch. Topics are matched without
        regard to case and created at the root of the subject when missing.
        """
        subjects: dict[str, SubjectDB] = {}
        errors = []
        for index, row in enumerate(rows):
            name = row.subject.strip()
            if name in subjects:
                continue
            subject = await self.db.scalar(select(SubjectDB).where(SubjectDB.name == name))
            if subject is None:
                errors.append({"row": index, "message": f"Subject '{name}' not found"})
            else:
                subjects[name] = subject
        if errors:
            raise ValidationException("Bulk import rejected", {"errors": errors})

        topics: dict[tuple[str, str], TopicDB] = {}
        created_topics = 0
        for row in rows:
            subject = subjects[row.subject.strip()]
            topic_name = row.topic.strip()
            key = (subject.id, topic_name.lower())
            topic = topics.get(key)
            if topic is None:
                topic = await self.db.scalar(
                    select(TopicDB)
                    .where(TopicDB.subject_id == subject.id)
                    .where(func.lower(TopicDB.name) == topic_name.lower())
                    .limit(1)
                )
            if topic is None:
                topic = TopicDB(name=topic_name, subject_id=subject.id, level=0)
                self.db.add(topic)
                await self.db.flush()
                created_topics += 1
            topics[key] = topic
            self.db.add(self._new_question(row, subject.id, topic.id))

        await self.db.commit()
        logger.info(f"Imported {len(rows)} questions ({created_topics} new topics)")
        return BulkImportResult(imported=len(rows), created_topics=created_topics)

    def _new_question(self, question, subject_id: str, topic_id: str) -> QuestionDB:
        db_question = QuestionDB(
            text=question.text,
            correct_answer=question.correct_answer,
            solution=question.solution,
            difficulty=question.difficulty.value,
            subject_id=subject_id,
            topic_id=topic_id,
        )
        db_question.set_options([option.model_dump() for option in question.options])
        db_question.set_tags(question.tags)
        return db_question
