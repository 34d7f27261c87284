"""Random question selection for new tests."""

import logging
import random

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.db.models import QuestionDB
from catprep.exceptions import InsufficientContentException
from catprep.models.question import DifficultyFilter, Question

from .question_bank import question_from_db

logger = logging.getLogger(__name__)


class QuestionSelector:
    """Draws a uniform random sample of matching questions.

    Read only: selection never writes to the catalog.
    """

    def __init__(self, db: AsyncSession, rng: random.Random | None = None):
        self.db = db
        self.rng = rng or random.Random()

    async def select(
        self,
        subject_id: str,
        topic_ids: list[str],
        difficulty: DifficultyFilter = DifficultyFilter.MIXED,
        count: int = 10,
    ) -> list[Question]:
        """Return up to ``count`` distinct questions in random order."""
        if not topic_ids:
            raise ValueError("topic_ids must not be empty")
        if count < 1:
            raise ValueError("count must be positive")

        query = (
            select(QuestionDB.id)
            .where(QuestionDB.subject_id == subject_id)
            .where(QuestionDB.topic_id.in_(set(topic_ids)))
            .order_by(QuestionDB.id)
        )
        if difficulty != DifficultyFilter.MIXED:
            query = query.where(QuestionDB.difficulty == difficulty.value)

        matching = list((await self.db.scalars(query)).all())
        if not matching:
            raise InsufficientContentException()

        chosen = self.rng.sample(matching, min(count, len(matching)))
        logger.debug(
            f"Selected {len(chosen)} of {len(matching)} questions for subject {subject_id}"
        )

        result = await self.db.execute(select(QuestionDB).where(QuestionDB.id.in_(chosen)))
        by_id = {q.id: q for q in result.scalars().all()}
        return [question_from_db(by_id[question_id]) for question_id in chosen]
