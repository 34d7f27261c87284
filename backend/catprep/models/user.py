"""User-related Pydantic models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class UserRole(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


def normalize_email(value: str) -> str:
    return value.strip().lower()


class UserRegister(BaseModel):
    """Model for creating a new account."""

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def clean_email(cls, value: str) -> str:
        value = normalize_email(value)
        if "@" not in value:
            raise ValueError("invalid email address")
        return value


class UserImport(BaseModel):
    """Bulk import row. Rows with a blank email are skipped."""

    name: str = ""
    email: str = ""
    password: str = Field(min_length=6)
    role: UserRole = UserRole.STUDENT


class User(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    created_at: datetime | None = None


class Identity(BaseModel):
    """Authenticated caller, as resolved from a bearer token."""

    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class BulkUserResult(BaseModel):
    imported: int
    skipped: int


class AdminStats(BaseModel):
    users: int
    questions: int
    active_tests: int
