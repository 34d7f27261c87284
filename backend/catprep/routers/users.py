"""User administration endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.api.auth import AdminIdentity
from catprep.db import get_db
from catprep.exceptions import ConflictException
from catprep.models.user import BulkUserResult, User, UserImport
from catprep.services.users import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=list[User])
async def list_users(admin: AdminIdentity, db: AsyncSession = Depends(get_db)):
    return await UserService(db).list_users()


@router.delete("/{user_id}")
async def delete_user(user_id: str, admin: AdminIdentity, db: AsyncSession = Depends(get_db)):
    if user_id == admin.user_id:
        raise ConflictException("Administrators cannot delete their own account")
    await UserService(db).delete_user(user_id)
    return {"message": "User deleted"}


@router.post("/bulk", response_model=BulkUserResult)
async def bulk_import_users(
    rows: list[UserImport],
    admin: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).import_users(rows)
