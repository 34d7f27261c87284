"""Subject and topic API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.api.auth import AdminIdentity, CurrentIdentity
from catprep.db import get_db
from catprep.models.catalog import Subject, SubjectCreate, Topic, TopicCreate
from catprep.services.catalog import CatalogService

router = APIRouter(prefix="/api/subjects", tags=["subjects"])


@router.get("", response_model=list[Subject])
async def list_subjects(identity: CurrentIdentity, db: AsyncSession = Depends(get_db)):
    return await CatalogService(db).list_subjects()


@router.post("", response_model=Subject, status_code=201)
async def create_subject(
    subject: SubjectCreate,
    admin: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    return await CatalogService(db).create_subject(subject)


@router.get("/{subject_id}/topics", response_model=list[Topic])
async def list_topics(
    subject_id: str,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Topics of a subject sorted by name."""
    return await CatalogService(db).list_topics(subject_id)


@router.post("/{subject_id}/topics", response_model=Topic, status_code=201)
async def create_topic(
    subject_id: str,
    topic: TopicCreate,
    admin: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    return await CatalogService(db).create_topic(subject_id, topic)
