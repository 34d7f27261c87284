"""SQLAlchemy database models."""

import json
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid4())


class UserDB(Base):
    """User database model."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="student")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    attempts: Mapped[list["TestAttemptDB"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class SubjectDB(Base):
    """Subject catalog entry."""

    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(20), default="active")
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=0)

    topics: Mapped[list["TopicDB"]] = relationship(back_populates="subject")


class TopicDB(Base):
    """Topic catalog entry, optionally nested under a parent topic."""

    __tablename__ = "topics"
    __table_args__ = (
        UniqueConstraint("name", "subject_id", "parent_topic_id", name="uq_topic_scope"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    subject_id: Mapped[str] = mapped_column(ForeignKey("subjects.id"), nullable=False, index=True)
    parent_topic_id: Mapped[str | None] = mapped_column(
        ForeignKey("topics.id"), nullable=True
    )
    level: Mapped[int] = mapped_column(Integer, default=0)

    subject: Mapped["SubjectDB"] = relationship(back_populates="topics")


class QuestionDB(Base):
    """Question database model."""

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[str] = mapped_column(Text, nullable=False)  # JSON array of {id, text}
    correct_answer: Mapped[str] = mapped_column(String(50), nullable=False)
    solution: Mapped[str] = mapped_column(Text, default="")
    difficulty: Mapped[str] = mapped_column(String(10), default="medium", index=True)
    subject_id: Mapped[str] = mapped_column(ForeignKey("subjects.id"), nullable=False, index=True)
    topic_id: Mapped[str] = mapped_column(ForeignKey("topics.id"), nullable=False, index=True)
    tags: Mapped[str] = mapped_column(Text, default="[]")  # JSON array
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def get_options(self) -> list[dict]:
        return json.loads(self.options)

    def set_options(self, options: list[dict]) -> None:
        self.options = json.dumps(options)

    def get_tags(self) -> list[str]:
        return json.loads(self.tags)

    def set_tags(self, tags: list[str]) -> None:
        self.tags = json.dumps(tags)


class TestAttemptDB(Base):
    """One user's run through a test, from creation to completion."""

    __tablename__ = "test_attempts"
    __table_args__ = (Index("ix_test_attempts_user_status", "user_id", "status"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="in_progress")

    # Configuration snapshot, never updated after creation
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    topic_ids: Mapped[str] = mapped_column(Text, nullable=False)  # JSON array
    difficulty: Mapped[str] = mapped_column(String(10), default="mixed")
    question_count: Mapped[int] = mapped_column(Integer, nullable=False)
    timer_mode: Mapped[str] = mapped_column(String(20), default="overall")
    time_limit: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes

    # Populated on completion
    score_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_correct: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_incorrect: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_skipped: Mapped[int | None] = mapped_column(Integer, nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    time_remaining: Mapped[int | None] = mapped_column(Integer, nullable=True)  # seconds
    last_question_index: Mapped[int] = mapped_column(Integer, default=0)

    user: Mapped["UserDB"] = relationship(back_populates="attempts")
    questions: Mapped[list["AttemptQuestionDB"]] = relationship(
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="AttemptQuestionDB.position",
        lazy="selectin",
    )

    def get_topic_ids(self) -> list[str]:
        return json.loads(self.topic_ids)

    def set_topic_ids(self, topic_ids: list[str]) -> None:
        self.topic_ids = json.dumps(topic_ids)


class AttemptQuestionDB(Base):
    """Per-question answer and timer state inside an attempt."""

    __tablename__ = "attempt_questions"
    __table_args__ = (UniqueConstraint("attempt_id", "position", name="uq_attempt_position"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("test_attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    # No foreign key: history survives deletion of the catalog question.
    question_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="unattempted")
    selected_option: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    time_taken: Mapped[int] = mapped_column(Integer, default=0)  # seconds
    time_remaining: Mapped[int | None] = mapped_column(Integer, nullable=True)  # seconds

    attempt: Mapped["TestAttemptDB"] = relationship(back_populates="questions")
