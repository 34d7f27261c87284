"""In-memory state of an attempt while it is being taken."""

from enum import Enum

from pydantic import BaseModel, Field

from .attempt import QuestionStatus, TimerMode


class TimerEvent(str, Enum):
    """What the caller must do after a tick."""

    NONE = "none"
    AUTO_ADVANCE = "auto_advance"
    AUTO_SUBMIT = "auto_submit"


class QuestionClock(BaseModel):
    """Answer and countdown state of one question in the running session."""

    question_id: str
    status: QuestionStatus = QuestionStatus.UNATTEMPTED
    selected_option: str | None = None
    time_taken: int = 0
    time_remaining: int | None = None


class AttemptSession(BaseModel):
    """Everything the countdown needs, owned by whoever displays the attempt.

    ``time_left`` is the running countdown in seconds: the whole attempt in
    overall mode, the displayed question in per_question mode. The
    displayed question's own ``time_remaining`` is only written when the
    user leaves it or it runs out.
    """

    attempt_id: str
    timer_mode: TimerMode
    time_limit: int = Field(ge=1, description="Minutes")
    questions: list[QuestionClock] = Field(min_length=1)
    current_index: int = 0
    time_left: int = Field(ge=0)
    expired: bool = False

    @property
    def limit_seconds(self) -> int:
        return self.time_limit * 60

    @property
    def current(self) -> QuestionClock:
        return self.questions[self.current_index]

    @property
    def is_last(self) -> bool:
        return self.current_index == len(self.questions) - 1
