"""Pydantic models for the CAT Prep application."""

from .attempt import (
    AnswerUpdate,
    AttemptConfig,
    AttemptQuestion,
    AttemptStatus,
    AttemptSummary,
    ProgressUpdate,
    QuestionStatus,
    Score,
    SubmitRequest,
    TestAttempt,
    TimerMode,
)
from .catalog import Subject, SubjectCreate, SubjectStatus, Topic, TopicCreate
from .question import (
    AnswerCheck,
    AnswerResult,
    Difficulty,
    DifficultyFilter,
    Option,
    Question,
    QuestionCreate,
    QuestionImport,
    QuestionPublic,
)
from .session import AttemptSession, QuestionClock, TimerEvent
from .user import Identity, Token, User, UserRegister, UserRole

__all__ = [
    "AnswerUpdate",
    "AttemptConfig",
    "AttemptQuestion",
    "AttemptStatus",
    "AttemptSummary",
    "ProgressUpdate",
    "QuestionStatus",
    "Score",
    "SubmitRequest",
    "TestAttempt",
    "TimerMode",
    "Subject",
    "SubjectCreate",
    "SubjectStatus",
    "Topic",
    "TopicCreate",
    "AnswerCheck",
    "AnswerResult",
    "Difficulty",
    "DifficultyFilter",
    "Option",
    "Question",
    "QuestionCreate",
    "QuestionImport",
    "QuestionPublic",
    "AttemptSession",
    "QuestionClock",
    "TimerEvent",
    "Identity",
    "Token",
    "User",
    "UserRegister",
    "UserRole",
]
