"""Question-related Pydantic models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class Difficulty(str, Enum):
    """Difficulty level stored on a question."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class DifficultyFilter(str, Enum):
    """Difficulty requested when building a test. MIXED matches every level."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    MIXED = "mixed"


class Option(BaseModel):
    """One answer choice. The id is opaque; order is display order only."""

    id: str = Field(min_length=1, max_length=50)
    text: str


class QuestionBase(BaseModel):
    text: str = Field(min_length=1)
    options: list[Option] = Field(min_length=2)
    correct_answer: str
    solution: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_answer_is_an_option(self):
        ids = [option.id for option in self.options]
        if len(set(ids)) != len(ids):
            raise ValueError("option ids must be unique")
        if self.correct_answer not in ids:
            raise ValueError("correct_answer must be the id of one of the options")
        return self


class QuestionCreate(QuestionBase):
    """Model for creating a new question."""

    subject_id: str
    topic_id: str

    class Config:
        json_schema_extra = {
            "example": {
                "text": "A train covers 180 km in 3 hours. What is its speed?",
                "options": [
                    {"id": "a", "text": "50 km/h"},
                    {"id": "b", "text": "60 km/h"},
                    {"id": "c", "text": "70 km/h"},
                    {"id": "d", "text": "90 km/h"},
                ],
                "correct_answer": "b",
                "solution": "Speed = distance / time = 180 / 3 = 60 km/h.",
                "difficulty": "easy",
                "subject_id": "<subject id>",
                "topic_id": "<topic id>",
            }
        }


class QuestionImport(QuestionBase):
    """Bulk import row; subject and topic are given by name."""

    subject: str = Field(min_length=1)
    topic: str = Field(min_length=1)


class Question(QuestionBase):
    """A complete question with all metadata."""

    id: str
    subject_id: str
    topic_id: str
    created_at: datetime | None = None


class QuestionPublic(BaseModel):
    """A question as shown to a test taker before the answer is revealed."""

    id: str
    text: str
    options: list[Option]
    difficulty: Difficulty
    subject_id: str
    topic_id: str
    correct_answer: str | None = None
    solution: str | None = None


class GenerateRequest(BaseModel):
    """Preview a random selection without creating an attempt."""

    subject_id: str
    topic_ids: list[str] = Field(min_length=1)
    difficulty: DifficultyFilter = DifficultyFilter.MIXED
    count: int = Field(default=10, ge=1, le=100)


class AnswerCheck(BaseModel):
    question_id: str
    selected_option: str


class AnswerResult(BaseModel):
    is_correct: bool
    correct_answer: str
    solution: str


class BulkImportResult(BaseModel):
    imported: int
    created_topics: int = 0
