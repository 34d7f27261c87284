"""Incremental saves of an attempt in progress."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from catprep.exceptions import AttemptExpiredException, ConflictException
from catprep.models.attempt import AttemptStatus, ProgressUpdate, TimerMode

from .attempts import AttemptService
from .timer import is_question_locked, overall_time_remaining

logger = logging.getLogger(__name__)


class ProgressService:
    """Applies client saves to an attempt.

    Saves may repeat, overlap or arrive stale. Each answer is applied to
    the question with the same id, last write wins, so sending the same
    payload twice leaves the attempt as sending it once. The question
    order is never touched.

    Once an overall countdown has run out no save is accepted; the only
    way forward is the final submit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.attempts = AttemptService(db)

    async def save_progress(
        self, attempt_id: str, requester_id: str, progress: ProgressUpdate
    ) -> None:
        db_attempt = await self.attempts.get_owned(attempt_id, requester_id)
        if db_attempt.status != AttemptStatus.IN_PROGRESS.value:
            raise ConflictException(f"Attempt is already {db_attempt.status}")
        timer_mode = TimerMode(db_attempt.timer_mode)
        if timer_mode == TimerMode.OVERALL and self._overall_expired(db_attempt):
            logger.warning(f"Rejected save for expired attempt {attempt_id}")
            raise AttemptExpiredException()
        rows = {row.question_id: row for row in db_attempt.questions}

        for answer in progress.answers:
            row = rows.get(answer.question_id)
            if row is None:
                logger.debug(
                    f"Ignoring save for question {answer.question_id} not in attempt {attempt_id}"
                )
                continue
            if is_question_locked(timer_mode, row.time_remaining):
                logger.warning(
                    f"Ignoring save for locked question {answer.question_id} in attempt {attempt_id}"
                )
                continue
            row.selected_option = answer.selected_option
            row.status = answer.resolved_status().value
            row.time_taken = answer.time_taken
            if answer.has_time_remaining:
                row.time_remaining = answer.time_remaining

        values = {}
        # The session countdown only exists in overall mode.
        if progress.session_time_remaining is not None and timer_mode == TimerMode.OVERALL:
            values["time_remaining"] = progress.session_time_remaining
        if progress.current_index is not None and rows:
            values["last_question_index"] = min(progress.current_index, len(rows) - 1)

        await self.attempts.update_if_in_progress(db_attempt, **values)
        await self.db.commit()

    @staticmethod
    def _overall_expired(db_attempt) -> bool:
        remaining = overall_time_remaining(
            db_attempt.started_at, db_attempt.time_limit, db_attempt.time_remaining
        )
        return remaining == 0
