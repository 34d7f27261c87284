"""Database layer for the CAT Prep application."""

from .database import get_db, init_db, async_session
from .models import (
    Base,
    AttemptQuestionDB,
    QuestionDB,
    SubjectDB,
    TestAttemptDB,
    TopicDB,
    UserDB,
)

__all__ = [
    "get_db",
    "init_db",
    "async_session",
    "Base",
    "AttemptQuestionDB",
    "QuestionDB",
    "SubjectDB",
    "TestAttemptDB",
    "TopicDB",
    "UserDB",
]
