"""
Pytest configuration and fixtures for CAT Prep tests.
"""
import os
from types import SimpleNamespace

# Cheap hashing and no startup seeding for tests; must precede catprep imports.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SKIP_SEEDING", "true")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from catprep.db import get_db
from catprep.db.models import Base, QuestionDB, SubjectDB, TopicDB, UserDB
from catprep.main import app
from catprep.models.attempt import AttemptConfig
from catprep.utils.auth import create_access_token, get_password_hash

PASSWORD = "secret123"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


def make_options():
    return [
        {"id": "a", "text": "Option A"},
        {"id": "b", "text": "Option B"},
        {"id": "c", "text": "Option C"},
        {"id": "d", "text": "Option D"},
    ]


async def add_question(db, subject_id, topic_id, text, correct="a", difficulty="medium"):
    question = QuestionDB(
        text=text,
        correct_answer=correct,
        solution=f"Because {correct}.",
        difficulty=difficulty,
        subject_id=subject_id,
        topic_id=topic_id,
    )
    question.set_options(make_options())
    question.set_tags([])
    db.add(question)
    await db.flush()
    return question.id


@pytest_asyncio.fixture
async def catalog(db):
    """Two subjects; the first has two topics with six questions between them."""
    quant = SubjectDB(name="Quantitative Aptitude", status="active", order=1)
    varc = SubjectDB(name="VARC", status="coming_soon", order=2)
    db.add_all([quant, varc])
    await db.flush()

    arithmetic = TopicDB(name="Arithmetic", subject_id=quant.id, level=0)
    algebra = TopicDB(name="Algebra", subject_id=quant.id, level=0)
    reading = TopicDB(name="Reading", subject_id=varc.id, level=0)
    db.add_all([arithmetic, algebra, reading])
    await db.flush()

    arithmetic_ids = [
        await add_question(db, quant.id, arithmetic.id, "Arithmetic 1", "a", "easy"),
        await add_question(db, quant.id, arithmetic.id, "Arithmetic 2", "b", "easy"),
        await add_question(db, quant.id, arithmetic.id, "Arithmetic 3", "c", "medium"),
        await add_question(db, quant.id, arithmetic.id, "Arithmetic 4", "d", "hard"),
    ]
    algebra_ids = [
        await add_question(db, quant.id, algebra.id, "Algebra 1", "a", "medium"),
        await add_question(db, quant.id, algebra.id, "Algebra 2", "b", "medium"),
    ]
    await db.commit()

    return SimpleNamespace(
        subject_id=quant.id,
        empty_subject_id=varc.id,
        arithmetic_id=arithmetic.id,
        algebra_id=algebra.id,
        reading_id=reading.id,
        arithmetic_ids=arithmetic_ids,
        algebra_ids=algebra_ids,
    )


async def add_user(db, email, role="student"):
    user = UserDB(
        name=email.split("@")[0].title(),
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        role=role,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def student(db):
    return await add_user(db, "student@example.com")


@pytest_asyncio.fixture
async def other_student(db):
    return await add_user(db, "other@example.com")


@pytest_asyncio.fixture
async def admin(db):
    return await add_user(db, "admin@example.com", role="admin")


def headers_for(user):
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_config(catalog):
    def _make(**overrides):
        values = {
            "subject_id": catalog.subject_id,
            "topic_ids": [catalog.arithmetic_id],
            "difficulty": "mixed",
            "question_count": 3,
            "timer_mode": "overall",
            "time_limit": 1,
        }
        values.update(overrides)
        return AttemptConfig(**values)

    return _make


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def student_headers(student):
    return headers_for(student)


@pytest.fixture
def other_headers(other_student):
    return headers_for(other_student)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)
