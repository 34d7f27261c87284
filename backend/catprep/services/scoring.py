"""Final scoring of a test attempt."""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from catprep.models.attempt import (
    AnswerUpdate,
    AttemptQuestion,
    AttemptStatus,
    QuestionStatus,
    Score,
    TimerMode,
)
from catprep.models.question import Question

from .attempts import AttemptService, attempt_question_from_db
from .timer import is_question_locked

logger = logging.getLogger(__name__)

MARKS_CORRECT = 3
MARKS_INCORRECT = -1
MARKS_UNATTEMPTED = 0


def total_marks(correct: int, incorrect: int, unattempted: int = 0) -> int:
    return (
        MARKS_CORRECT * correct
        + MARKS_INCORRECT * incorrect
        + MARKS_UNATTEMPTED * unattempted
    )


def grade(
    sequence: list[AttemptQuestion],
    questions: dict[str, Question],
    answers: list[AnswerUpdate],
    timer_mode: TimerMode,
) -> tuple[list[AttemptQuestion], Score]:
    """Mark every question of the attempt exactly once.

    The submitted answers are matched by question id, so their order does
    not matter. A question with no entry keeps its last saved selection. A
    locked question always keeps its saved selection. Questions that no
    longer exist in the catalog are left out of the score.
    """
    submitted = {answer.question_id: answer for answer in answers}
    graded = []
    correct = incorrect = skipped = 0

    for row in sequence:
        question = questions.get(row.question_id)
        if question is None:
            logger.warning(f"Question {row.question_id} no longer exists; left out of the score")
            graded.append(row.model_copy(update={"is_correct": False}))
            continue

        selected = row.selected_option
        time_taken = row.time_taken
        time_remaining = row.time_remaining
        answer = submitted.get(row.question_id)
        if answer is not None and not is_question_locked(timer_mode, row.time_remaining):
            selected = answer.selected_option
            time_taken = answer.time_taken
            if answer.has_time_remaining:
                time_remaining = answer.time_remaining

        if selected is None:
            skipped += 1
            is_correct = False
            status = QuestionStatus.UNATTEMPTED
        else:
            is_correct = selected == question.correct_answer
            status = QuestionStatus.ATTEMPTED
            if is_correct:
                correct += 1
            else:
                incorrect += 1

        graded.append(
            row.model_copy(
                update={
                    "status": status,
                    "selected_option": selected,
                    "is_correct": is_correct,
                    "time_taken": time_taken,
                    "time_remaining": time_remaining,
                }
            )
        )

    score = Score(
        total=total_marks(correct, incorrect, skipped),
        correct=correct,
        incorrect=incorrect,
        skipped=skipped,
    )
    return graded, score


class ScoringService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.attempts = AttemptService(db)

    async def submit(
        self, attempt_id: str, requester_id: str, answers: list[AnswerUpdate]
    ) -> Score:
        """Score and close an attempt. Only the first submit succeeds."""
        db_attempt = await self.attempts.get_owned(attempt_id, requester_id)
        rows = list(db_attempt.questions)
        questions = await self.attempts.question_bank.get_questions_by_ids(
            [row.question_id for row in rows]
        )

        graded, score = grade(
            [attempt_question_from_db(row) for row in rows],
            questions,
            answers,
            TimerMode(db_attempt.timer_mode),
        )

        # Status is checked (and flipped) before any row is touched.
        await self.attempts.update_if_in_progress(
            db_attempt,
            status=AttemptStatus.COMPLETED.value,
            completed_at=datetime.utcnow(),
            score_total=score.total,
            score_correct=score.correct,
            score_incorrect=score.incorrect,
            score_skipped=score.skipped,
        )
        for row, result in zip(rows, graded):
            row.status = result.status.value
            row.selected_option = result.selected_option
            row.is_correct = bool(result.is_correct)
            row.time_taken = result.time_taken
            row.time_remaining = result.time_remaining
        await self.db.commit()

        logger.info(
            f"Attempt {attempt_id} submitted: {score.total} "
            f"({score.correct} correct, {score.incorrect} incorrect, {score.skipped} skipped)"
        )
        return score
