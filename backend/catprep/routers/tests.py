"""Test attempt API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.api.auth import CurrentIdentity
from catprep.db import get_db
from catprep.models.attempt import (
    AttemptConfig,
    AttemptSummary,
    ProgressUpdate,
    Score,
    SubmitRequest,
    TestAttempt,
)
from catprep.services.attempts import AttemptService
from catprep.services.progress import ProgressService
from catprep.services.scoring import ScoringService

router = APIRouter(prefix="/api/tests", tags=["tests"])


@router.post("/start", response_model=TestAttempt, status_code=201)
async def start_test(
    config: AttemptConfig,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Draw questions and start a new attempt."""
    return await AttemptService(db).start(identity.user_id, config)


@router.get("/history", response_model=list[AttemptSummary])
async def get_history(identity: CurrentIdentity, db: AsyncSession = Depends(get_db)):
    """The caller's attempts, newest first."""
    return await AttemptService(db).history(identity.user_id)


@router.get("/{attempt_id}", response_model=TestAttempt)
async def get_attempt(
    attempt_id: str,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Get an attempt. Answers are hidden until it is submitted."""
    return await AttemptService(db).get(attempt_id, identity.user_id)


@router.post("/{attempt_id}/progress")
async def save_progress(
    attempt_id: str,
    progress: ProgressUpdate,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Save answers and timers of an attempt in progress."""
    await ProgressService(db).save_progress(attempt_id, identity.user_id, progress)
    return {"message": "Progress saved"}


@router.post("/{attempt_id}/submit", response_model=Score)
async def submit_test(
    attempt_id: str,
    request: SubmitRequest,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Score the attempt and close it."""
    return await ScoringService(db).submit(attempt_id, identity.user_id, request.answers)


@router.post("/{attempt_id}/retake", response_model=TestAttempt, status_code=201)
async def retake_test(
    attempt_id: str,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Start again with the same questions in the same order."""
    return await AttemptService(db).retake(attempt_id, identity.user_id)


@router.post("/{attempt_id}/abort", response_model=TestAttempt)
async def abort_test(
    attempt_id: str,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    return await AttemptService(db).abort(attempt_id, identity.user_id)


@router.delete("/{attempt_id}")
async def delete_attempt(
    attempt_id: str,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    await AttemptService(db).delete(attempt_id, identity.user_id)
    return {"message": "Attempt deleted"}
