"""Administrator dashboard endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.api.auth import AdminIdentity
from catprep.db import get_db
from catprep.models.user import AdminStats
from catprep.services.users import UserService

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStats)
async def get_stats(admin: AdminIdentity, db: AsyncSession = Depends(get_db)):
    """Student, question and open attempt counts."""
    return await UserService(db).stats()
