"""Subjects and topics."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.db.models import SubjectDB, TopicDB
from catprep.exceptions import ConflictException, NotFoundException, ValidationException
from catprep.models.catalog import Subject, SubjectCreate, Topic, TopicCreate

logger = logging.getLogger(__name__)


def subject_from_db(db_subject: SubjectDB) -> Subject:
    return Subject(
        id=db_subject.id,
        name=db_subject.name,
        status=db_subject.status,
        icon=db_subject.icon,
        order=db_subject.order,
    )


def topic_from_db(db_topic: TopicDB) -> Topic:
    return Topic(
        id=db_topic.id,
        name=db_topic.name,
        subject_id=db_topic.subject_id,
        parent_topic_id=db_topic.parent_topic_id,
        level=db_topic.level,
    )


class CatalogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_subjects(self) -> list[Subject]:
        result = await self.db.execute(
            select(SubjectDB).order_by(SubjectDB.order, SubjectDB.name)
        )
        return [subject_from_db(s) for s in result.scalars().all()]

    async def get_subject(self, subject_id: str) -> Subject:
        db_subject = await self.db.get(SubjectDB, subject_id)
        if db_subject is None:
            raise NotFoundException("Subject")
        return subject_from_db(db_subject)

    async def create_subject(self, subject: SubjectCreate) -> Subject:
        existing = await self.db.scalar(select(SubjectDB).where(SubjectDB.name == subject.name))
        if existing is not None:
            raise ConflictException(f"Subject '{subject.name}' already exists")

        db_subject = SubjectDB(
            name=subject.name,
            status=subject.status.value,
            icon=subject.icon,
            order=subject.order,
        )
        self.db.add(db_subject)
        await self.db.commit()
        logger.info(f"Created subject {subject.name}")
        return subject_from_db(db_subject)

    async def list_topics(self, subject_id: str) -> list[Topic]:
        """Topics of a subject, flat and sorted by name; parents give the hierarchy."""
        await self.get_subject(subject_id)
        result = await self.db.execute(
            select(TopicDB).where(TopicDB.subject_id == subject_id).order_by(TopicDB.name)
        )
        return [topic_from_db(t) for t in result.scalars().all()]

    async def create_topic(self, subject_id: str, topic: TopicCreate) -> Topic:
        """Add a topic. Names are unique among siblings of the same parent."""
        await self.get_subject(subject_id)

        level = 0
        if topic.parent_topic_id is not None:
            parent = await self.db.get(TopicDB, topic.parent_topic_id)
            if parent is None:
                raise NotFoundException("Parent topic")
            if parent.subject_id != subject_id:
                raise ValidationException("Parent topic belongs to another subject")
            level = parent.level + 1

        # NULL parents are never equal in a unique index, so check here too.
        query = (
            select(TopicDB)
            .where(TopicDB.subject_id == subject_id)
            .where(TopicDB.name == topic.name)
        )
        if topic.parent_topic_id is None:
            query = query.where(TopicDB.parent_topic_id.is_(None))
        else:
            query = query.where(TopicDB.parent_topic_id == topic.parent_topic_id)
        if await self.db.scalar(query) is not None:
            raise ConflictException(f"Topic '{topic.name}' already exists here")

        db_topic = TopicDB(
            name=topic.name,
            subject_id=subject_id,
            parent_topic_id=topic.parent_topic_id,
            level=level,
        )
        self.db.add(db_topic)
        await self.db.commit()
        return topic_from_db(db_topic)
