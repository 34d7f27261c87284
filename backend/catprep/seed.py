"""Load subjects, topics and questions from a JSON catalog file."""

import json
import logging
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.db.models import SubjectDB
from catprep.models.catalog import SubjectCreate, TopicCreate
from catprep.models.question import QuestionImport
from catprep.services.catalog import CatalogService
from catprep.services.question_bank import QuestionBankService

logger = logging.getLogger(__name__)


async def seed_catalog(db: AsyncSession, path: Path) -> int:
    """Seed an empty catalog from ``path``. Returns the number of questions loaded.

    The file holds ``subjects`` (each with ``topics``, each optionally with
    ``subtopics``) and ``questions`` naming their subject and topic.
    """
    count = await db.scalar(select(func.count()).select_from(SubjectDB))
    if count:
        logger.info(f"Catalog already has {count} subjects. Skipping seed.")
        return 0
    if not path.exists():
        logger.warning(f"Seed file not found: {path}")
        return 0

    data = json.loads(path.read_text(encoding="utf-8"))
    catalog = CatalogService(db)
    for subject_data in data.get("subjects", []):
        topics = subject_data.pop("topics", [])
        subject = await catalog.create_subject(SubjectCreate(**subject_data))
        for topic_data in topics:
            parent = await catalog.create_topic(subject.id, TopicCreate(name=topic_data["name"]))
            for name in topic_data.get("subtopics", []):
                await catalog.create_topic(
                    subject.id, TopicCreate(name=name, parent_topic_id=parent.id)
                )

    rows = [QuestionImport(**q) for q in data.get("questions", [])]
    if rows:
        await QuestionBankService(db).import_questions(rows)
    logger.info(f"Seeded catalog from {path.name} ({len(rows)} questions)")
    return len(rows)
