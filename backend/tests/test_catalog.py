"""Tests for subjects, topics, the question bank, users and seeding."""

from pathlib import Path

import pytest
from sqlalchemy import func, select

from catprep.db.models import QuestionDB, SubjectDB, TopicDB
from catprep.exceptions import (
    AuthenticationException,
    ConflictException,
    NotFoundException,
    ValidationException,
)
from catprep.models.catalog import SubjectCreate, TopicCreate
from catprep.models.question import Option, QuestionCreate, QuestionImport
from catprep.models.user import UserImport, UserRegister
from catprep.seed import seed_catalog
from catprep.services.attempts import AttemptService
from catprep.services.catalog import CatalogService
from catprep.services.question_bank import QuestionBankService
from catprep.services.users import UserService

SEED_FILE = Path(__file__).resolve().parents[1] / "data" / "seed.json"


def options():
    return [Option(id=o, text=o.upper()) for o in "abcd"]


class TestCatalog:
    async def test_duplicate_subject(self, db, catalog):
        with pytest.raises(ConflictException):
            await CatalogService(db).create_subject(SubjectCreate(name="VARC"))

    async def test_topic_levels(self, db, catalog):
        service = CatalogService(db)

        child = await service.create_topic(
            catalog.subject_id, TopicCreate(name="Percentages", parent_topic_id=catalog.arithmetic_id)
        )
        grandchild = await service.create_topic(
            catalog.subject_id, TopicCreate(name="Successive", parent_topic_id=child.id)
        )

        assert child.level == 1
        assert grandchild.level == 2
        assert grandchild.parent_topic_id == child.id

    async def test_root_topic_names_are_unique(self, db, catalog):
        with pytest.raises(ConflictException):
            await CatalogService(db).create_topic(catalog.subject_id, TopicCreate(name="Algebra"))

    async def test_same_name_under_different_parents(self, db, catalog):
        service = CatalogService(db)

        await service.create_topic(
            catalog.subject_id, TopicCreate(name="Basics", parent_topic_id=catalog.arithmetic_id)
        )
        await service.create_topic(
            catalog.subject_id, TopicCreate(name="Basics", parent_topic_id=catalog.algebra_id)
        )
        with pytest.raises(ConflictException):
            await service.create_topic(
                catalog.subject_id, TopicCreate(name="Basics", parent_topic_id=catalog.algebra_id)
            )

    async def test_parent_from_another_subject(self, db, catalog):
        with pytest.raises(ValidationException):
            await CatalogService(db).create_topic(
                catalog.subject_id, TopicCreate(name="Inference", parent_topic_id=catalog.reading_id)
            )

    async def test_unknown_subject_or_parent(self, db, catalog):
        service = CatalogService(db)

        with pytest.raises(NotFoundException):
            await service.list_topics("missing")
        with pytest.raises(NotFoundException):
            await service.create_topic(
                catalog.subject_id, TopicCreate(name="Orphan", parent_topic_id="missing")
            )


class TestQuestionBank:
    async def test_create_question(self, db, catalog):
        question = await QuestionBankService(db).create_question(
            QuestionCreate(
                text="What is 10% of 50?",
                options=options(),
                correct_answer="b",
                subject_id=catalog.subject_id,
                topic_id=catalog.algebra_id,
            )
        )

        assert question.id
        assert [o.id for o in question.options] == ["a", "b", "c", "d"]
        assert await QuestionBankService(db).count_questions() == 7

    async def test_topic_must_belong_to_subject(self, db, catalog):
        with pytest.raises(ValidationException):
            await QuestionBankService(db).create_question(
                QuestionCreate(
                    text="Misfiled",
                    options=options(),
                    correct_answer="a",
                    subject_id=catalog.subject_id,
                    topic_id=catalog.reading_id,
                )
            )

    def test_answer_must_be_an_option(self):
        with pytest.raises(ValueError):
            QuestionCreate(
                text="Broken",
                options=options(),
                correct_answer="e",
                subject_id="s",
                topic_id="t",
            )
        with pytest.raises(ValueError):
            QuestionCreate(
                text="Repeated ids",
                options=[Option(id="a", text="A"), Option(id="a", text="B")],
                correct_answer="a",
                subject_id="s",
                topic_id="t",
            )

    async def test_import_reuses_topics_case_insensitively(self, db, catalog):
        rows = [
            QuestionImport(
                subject="Quantitative Aptitude",
                topic=topic,
                text=f"Imported {i}",
                options=options(),
                correct_answer="a",
            )
            for i, topic in enumerate(["ALGEBRA", "Mensuration", "mensuration"])
        ]

        result = await QuestionBankService(db).import_questions(rows)

        assert result.imported == 3
        assert result.created_topics == 1
        algebra_count = await db.scalar(
            select(func.count()).select_from(QuestionDB).where(QuestionDB.topic_id == catalog.algebra_id)
        )
        assert algebra_count == 3

    async def test_import_with_unknown_subject_adds_nothing(self, db, catalog):
        rows = [
            QuestionImport(
                subject="Physics", topic="Optics", text="Lens", options=options(), correct_answer="a"
            )
        ]

        with pytest.raises(ValidationException) as excinfo:
            await QuestionBankService(db).import_questions(rows)

        assert excinfo.value.details["errors"][0]["row"] == 0
        assert await QuestionBankService(db).count_questions() == 6

    async def test_delete_unknown_question(self, db, catalog):
        with pytest.raises(NotFoundException):
            await QuestionBankService(db).delete_question("missing")


class TestUsers:
    async def test_register_normalizes_email(self, db):
        service = UserService(db)

        user = await service.register(
            UserRegister(name="Ravi", email="  Ravi@Example.COM", password="secret99")
        )

        assert user.email == "ravi@example.com"
        assert (await service.authenticate("RAVI@example.com", "secret99")).id == user.id
        with pytest.raises(AuthenticationException):
            await service.authenticate("ravi@example.com", "wrong-pass")

    def test_register_rejects_address_without_at(self):
        with pytest.raises(ValueError):
            UserRegister(name="Nobody", email="not-an-email", password="secret99")

    async def test_import_skips_duplicates_within_batch(self, db):
        rows = [
            UserImport(name="One", email="one@example.com", password="secret99"),
            UserImport(name="", email="ONE@example.com", password="secret99"),
            UserImport(name="", email="two@example.com", password="secret99"),
        ]

        result = await UserService(db).import_users(rows)

        assert (result.imported, result.skipped) == (2, 1)
        two = await UserService(db).get_by_email("two@example.com")
        assert two.name == "two"

    async def test_ensure_admin_is_idempotent(self, db):
        service = UserService(db)

        await service.ensure_admin("root@example.com", "secret99", "Root")
        await service.ensure_admin("root@example.com", "other-pass", "Root")

        admin = await service.get_by_email("root@example.com")
        assert admin.role == "admin"
        assert (await service.authenticate("root@example.com", "secret99")).id == admin.id

    async def test_delete_user_removes_attempts(self, db, student, make_config):
        await AttemptService(db).start(student.id, make_config())

        await UserService(db).delete_user(student.id)

        assert await AttemptService(db).history(student.id) == []
        with pytest.raises(NotFoundException):
            await UserService(db).delete_user(student.id)

    async def test_stats(self, db, student, admin, make_config):
        await AttemptService(db).start(student.id, make_config())

        stats = await UserService(db).stats()

        assert (stats.users, stats.questions, stats.active_tests) == (1, 6, 1)


class TestSeed:
    async def test_seed_loads_catalog(self, db):
        loaded = await seed_catalog(db, SEED_FILE)

        assert loaded == 11
        subjects = await CatalogService(db).list_subjects()
        assert [s.name for s in subjects] == ["Quantitative Aptitude", "VARC", "LRDI"]
        topics = await CatalogService(db).list_topics(subjects[0].id)
        assert {t.name for t in topics if t.level == 0} == {"Arithmetic", "Algebra", "Geometry"}
        assert all(t.parent_topic_id for t in topics if t.level == 1)
        # Questions name existing subtopics, so no extra topics appear.
        assert await db.scalar(select(func.count()).select_from(TopicDB)) == 10

    async def test_seed_skips_populated_catalog(self, db, catalog):
        assert await seed_catalog(db, SEED_FILE) == 0
        assert await db.scalar(select(func.count()).select_from(SubjectDB)) == 2

    async def test_missing_seed_file(self, db, tmp_path):
        assert await seed_catalog(db, tmp_path / "absent.json") == 0
