"""Test attempt models: configuration, per-question state, saves and scores."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from catprep.config import settings

from .question import DifficultyFilter, QuestionPublic


class TimerMode(str, Enum):
    """How the countdown is applied to an attempt."""

    OVERALL = "overall"
    PER_QUESTION = "per_question"


class AttemptStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABORTED = "aborted"


class QuestionStatus(str, Enum):
    UNATTEMPTED = "unattempted"
    ATTEMPTED = "attempted"
    SKIPPED = "skipped"
    MARKED_FOR_REVIEW = "marked_for_review"


class AttemptConfig(BaseModel):
    """Snapshot of what the user asked for when starting a test.

    ``time_limit`` is in minutes: the whole attempt in overall mode, each
    question in per_question mode. When omitted it falls back to the
    configured default for the chosen mode.
    """

    subject_id: str
    topic_ids: list[str] = Field(min_length=1)
    difficulty: DifficultyFilter = DifficultyFilter.MIXED
    question_count: int = Field(default_factory=lambda: settings.default_question_count, ge=1)
    timer_mode: TimerMode = TimerMode.OVERALL
    time_limit: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def apply_defaults_and_bounds(self):
        # Topic ids form a set; keep first-seen order for display.
        self.topic_ids = list(dict.fromkeys(self.topic_ids))
        if self.time_limit is None:
            self.time_limit = (
                settings.default_overall_minutes
                if self.timer_mode == TimerMode.OVERALL
                else settings.default_per_question_minutes
            )
        if self.question_count > settings.max_question_count:
            raise ValueError(f"question_count must be at most {settings.max_question_count}")
        if self.time_limit > settings.max_time_limit_minutes:
            raise ValueError(f"time_limit must be at most {settings.max_time_limit_minutes}")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "subject_id": "<subject id>",
                "topic_ids": ["<topic id>"],
                "difficulty": "mixed",
                "question_count": 10,
                "timer_mode": "per_question",
                "time_limit": 2,
            }
        }


class AnswerUpdate(BaseModel):
    """One question's answer and timer state, as sent by the client.

    The same shape is used for incremental saves and the final submit.
    ``time_remaining`` is only applied when the client actually sends it.
    """

    question_id: str
    selected_option: str | None = None
    status: QuestionStatus | None = None
    time_taken: int = Field(default=0, ge=0)
    time_remaining: int | None = Field(default=None, ge=0)

    @property
    def has_time_remaining(self) -> bool:
        return "time_remaining" in self.model_fields_set

    def resolved_status(self) -> QuestionStatus:
        if self.status is not None:
            return self.status
        if self.selected_option is not None:
            return QuestionStatus.ATTEMPTED
        return QuestionStatus.UNATTEMPTED


class ProgressUpdate(BaseModel):
    """Payload of a progress save."""

    answers: list[AnswerUpdate] = Field(default_factory=list)
    session_time_remaining: int | None = Field(default=None, ge=0)
    current_index: int | None = Field(default=None, ge=0)


class SubmitRequest(BaseModel):
    answers: list[AnswerUpdate] = Field(default_factory=list)


class Score(BaseModel):
    """Final marks: +3 per correct, -1 per incorrect, 0 for no selection."""

    total: int
    correct: int
    incorrect: int
    skipped: int


class AttemptQuestion(BaseModel):
    """Per-question state inside an attempt, with the question when visible."""

    position: int
    question_id: str
    status: QuestionStatus = QuestionStatus.UNATTEMPTED
    selected_option: str | None = None
    is_correct: bool | None = None
    time_taken: int = 0
    time_remaining: int | None = None
    question: QuestionPublic | None = None


class TestAttempt(BaseModel):
    """Client-facing projection of an attempt."""

    id: str
    user_id: str
    status: AttemptStatus
    config: AttemptConfig
    questions: list[AttemptQuestion]
    score: Score | None = None
    started_at: datetime
    completed_at: datetime | None = None
    time_remaining: int | None = None
    last_question_index: int = 0
    effective_time_remaining: int | None = Field(
        default=None, description="Seconds left on the running countdown when resuming"
    )


class AttemptSummary(BaseModel):
    """Row in a user's test history."""

    id: str
    subject_id: str
    subject_name: str | None = None
    status: AttemptStatus
    config: AttemptConfig
    total_questions: int
    score: Score | None = None
    started_at: datetime
    completed_at: datetime | None = None
