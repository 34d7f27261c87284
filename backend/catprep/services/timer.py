"""Countdown and locking rules for an attempt that is being taken.

The running state lives in an :class:`AttemptSession` owned by whoever
displays the attempt. Every function here is pure: it takes a session and
returns a new one, leaving the argument untouched.

Two modes are supported:

* ``overall``: one countdown for the whole attempt. When it reaches zero
  the attempt must be submitted and no further edits are accepted.
* ``per_question``: each question has its own countdown of the full limit,
  and only the displayed question's countdown runs. Leaving a question
  stores what was left of its countdown on it. A question whose countdown
  reached exactly zero is locked: it cannot be answered or shown again.
  When the displayed question runs out the session moves on to the next
  open question, or asks for submission after the last one.

Callers persist the :class:`ProgressUpdate` returned by :func:`navigate`
straight away, call :func:`snapshot` every ``SAVE_INTERVAL_SECONDS``, when
the page is hidden or unloaded, and after an ``auto_advance`` tick, and
send :func:`submission` on ``auto_submit``.
"""

from datetime import datetime

from catprep.exceptions import (
    AttemptExpiredException,
    ConflictException,
    LockedQuestionException,
    ValidationException,
)
from catprep.models.attempt import (
    AnswerUpdate,
    AttemptStatus,
    ProgressUpdate,
    QuestionStatus,
    TestAttempt,
    TimerMode,
)
from catprep.models.session import AttemptSession, QuestionClock, TimerEvent

SAVE_INTERVAL_SECONDS = 30


def overall_time_remaining(
    started_at: datetime,
    time_limit: int,
    snapshot: int | None = None,
    now: datetime | None = None,
) -> int:
    """Seconds left on an overall countdown.

    A persisted snapshot wins over the wall clock so that a reload picks up
    exactly where the client last reported.
    """
    if snapshot is not None:
        return max(0, snapshot)
    now = now or datetime.utcnow()
    elapsed = (now - started_at).total_seconds()
    return max(0, int(time_limit * 60 - elapsed))


def per_question_time_remaining(time_limit: int, snapshot: int | None = None) -> int:
    """Seconds left on one question's countdown; a fresh question gets the full limit."""
    if snapshot is None:
        return time_limit * 60
    return max(0, snapshot)


def is_question_locked(timer_mode: TimerMode, time_remaining: int | None) -> bool:
    """A question locks once its own countdown is exactly zero."""
    return timer_mode == TimerMode.PER_QUESTION and time_remaining == 0


def is_locked(session: AttemptSession, index: int) -> bool:
    return is_question_locked(session.timer_mode, session.questions[index].time_remaining)


def _next_open_index(session: AttemptSession, questions: list[QuestionClock], start: int) -> int | None:
    for index in range(start, len(questions)):
        if not is_question_locked(session.timer_mode, questions[index].time_remaining):
            return index
    return None


def restore_session(attempt: TestAttempt, now: datetime | None = None) -> AttemptSession:
    """Rebuild the running session from a fetched attempt."""
    if attempt.status != AttemptStatus.IN_PROGRESS:
        raise ConflictException("Attempt is no longer in progress")
    if not attempt.questions:
        raise ValidationException("Attempt has no questions")

    config = attempt.config
    questions = [
        QuestionClock(
            question_id=q.question_id,
            status=q.status,
            selected_option=q.selected_option,
            time_taken=q.time_taken,
            time_remaining=q.time_remaining,
        )
        for q in attempt.questions
    ]
    index = min(max(attempt.last_question_index, 0), len(questions) - 1)
    session = AttemptSession(
        attempt_id=attempt.id,
        timer_mode=config.timer_mode,
        time_limit=config.time_limit,
        questions=questions,
        current_index=index,
        time_left=0,
    )

    if config.timer_mode == TimerMode.OVERALL:
        time_left = overall_time_remaining(
            attempt.started_at, config.time_limit, attempt.time_remaining, now
        )
        return session.model_copy(update={"time_left": time_left, "expired": time_left == 0})

    # The cursor may still point at a question that ran out before the
    # advance was saved.
    open_index = _next_open_index(session, questions, index)
    if open_index is None:
        return session.model_copy(update={"expired": True})
    return session.model_copy(
        update={
            "current_index": open_index,
            "time_left": per_question_time_remaining(
                config.time_limit, questions[open_index].time_remaining
            ),
        }
    )


def can_navigate(session: AttemptSession, index: int) -> bool:
    """Whether the user may switch to question ``index`` now."""
    if session.expired or not 0 <= index < len(session.questions):
        return False
    if session.timer_mode == TimerMode.OVERALL or index == session.current_index:
        return True
    if is_locked(session, index):
        return False
    # Going back may not cross a question that already timed out.
    return not any(is_locked(session, i) for i in range(index + 1, session.current_index))


def navigate(session: AttemptSession, index: int) -> tuple[AttemptSession, ProgressUpdate]:
    """Switch to question ``index``.

    Returns the new session and the save that records the switch. In
    per_question mode the question being left keeps what remained of its
    countdown and the target resumes from its own value.
    """
    if session.expired:
        raise AttemptExpiredException()
    if not 0 <= index < len(session.questions):
        raise ValidationException(f"Question index {index} is out of range")
    if not can_navigate(session, index):
        raise LockedQuestionException(
            index
            if is_locked(session, index)
            else next(i for i in range(index + 1, session.current_index) if is_locked(session, i))
        )

    if session.timer_mode == TimerMode.OVERALL:
        moved = session.model_copy(update={"current_index": index})
        return moved, ProgressUpdate(
            session_time_remaining=session.time_left, current_index=index
        )

    questions = list(session.questions)
    left = questions[session.current_index].model_copy(
        update={"time_remaining": session.time_left}
    )
    questions[session.current_index] = left
    moved = session.model_copy(
        update={
            "questions": questions,
            "current_index": index,
            "time_left": per_question_time_remaining(
                session.time_limit, questions[index].time_remaining
            ),
        }
    )
    return moved, ProgressUpdate(answers=[_answer(left)], current_index=index)


def _editable(session: AttemptSession) -> None:
    if session.expired:
        raise AttemptExpiredException()
    if is_locked(session, session.current_index):
        raise LockedQuestionException(session.current_index)


def _replace_current(session: AttemptSession, **changes) -> AttemptSession:
    questions = list(session.questions)
    questions[session.current_index] = session.current.model_copy(update=changes)
    return session.model_copy(update={"questions": questions})


def select_option(session: AttemptSession, option_id: str | None) -> AttemptSession:
    """Choose an option on the displayed question.

    Choosing the option that is already selected clears the selection.
    """
    _editable(session)
    current = session.current
    if option_id is None or option_id == current.selected_option:
        selected = None
    else:
        selected = option_id

    if current.status == QuestionStatus.MARKED_FOR_REVIEW:
        status = current.status
    elif selected is None:
        status = QuestionStatus.UNATTEMPTED
    else:
        status = QuestionStatus.ATTEMPTED
    return _replace_current(session, selected_option=selected, status=status)


def mark_for_review(session: AttemptSession, flag: bool = True) -> AttemptSession:
    _editable(session)
    current = session.current
    if flag:
        status = QuestionStatus.MARKED_FOR_REVIEW
    elif current.selected_option is not None:
        status = QuestionStatus.ATTEMPTED
    else:
        status = QuestionStatus.UNATTEMPTED
    return _replace_current(session, status=status)


def tick(session: AttemptSession, seconds: int = 1) -> tuple[AttemptSession, TimerEvent]:
    """Advance the running countdown by ``seconds``."""
    if seconds < 0:
        raise ValueError("seconds must not be negative")
    if session.expired:
        return session, TimerEvent.NONE

    elapsed = min(seconds, session.time_left)
    session = _replace_current(session, time_taken=session.current.time_taken + elapsed)
    time_left = session.time_left - elapsed
    if time_left > 0:
        return session.model_copy(update={"time_left": time_left}), TimerEvent.NONE

    if session.timer_mode == TimerMode.OVERALL:
        return session.model_copy(update={"time_left": 0, "expired": True}), TimerEvent.AUTO_SUBMIT

    session = _replace_current(session, time_remaining=0)
    next_index = _next_open_index(session, session.questions, session.current_index + 1)
    if next_index is None:
        return session.model_copy(update={"time_left": 0, "expired": True}), TimerEvent.AUTO_SUBMIT

    advanced = session.model_copy(
        update={
            "current_index": next_index,
            "time_left": per_question_time_remaining(
                session.time_limit, session.questions[next_index].time_remaining
            ),
        }
    )
    return advanced, TimerEvent.AUTO_ADVANCE


def _answer(clock: QuestionClock, time_remaining: int | None = None) -> AnswerUpdate:
    fields = {
        "question_id": clock.question_id,
        "selected_option": clock.selected_option,
        "status": clock.status,
        "time_taken": clock.time_taken,
    }
    remaining = clock.time_remaining if time_remaining is None else time_remaining
    if remaining is not None:
        fields["time_remaining"] = remaining
    return AnswerUpdate(**fields)


def _answers(session: AttemptSession) -> list[AnswerUpdate]:
    answers = []
    for index, clock in enumerate(session.questions):
        live = (
            session.time_left
            if session.timer_mode == TimerMode.PER_QUESTION
            and index == session.current_index
            and not session.expired
            else None
        )
        answers.append(_answer(clock, live))
    return answers


def snapshot(session: AttemptSession) -> ProgressUpdate:
    """Full save of the running session."""
    return ProgressUpdate(
        answers=_answers(session),
        session_time_remaining=(
            session.time_left if session.timer_mode == TimerMode.OVERALL else None
        ),
        current_index=session.current_index,
    )


def submission(session: AttemptSession) -> list[AnswerUpdate]:
    """Answers to send with the final submit."""
    return _answers(session)
