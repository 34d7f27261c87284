"""Subject and topic models."""

from enum import Enum

from pydantic import BaseModel, Field


class SubjectStatus(str, Enum):
    ACTIVE = "active"
    COMING_SOON = "coming_soon"
    DISABLED = "disabled"


class SubjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    status: SubjectStatus = SubjectStatus.ACTIVE
    icon: str | None = None
    order: int = 0


class Subject(SubjectCreate):
    id: str


class TopicCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    parent_topic_id: str | None = None


class Topic(BaseModel):
    id: str
    name: str
    subject_id: str
    parent_topic_id: str | None = None
    level: int = 0
