"""Accounts: registration, login, administration."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from catprep.db.models import QuestionDB, TestAttemptDB, UserDB
from catprep.exceptions import AuthenticationException, ConflictException, NotFoundException
from catprep.models.attempt import AttemptStatus
from catprep.models.user import (
    AdminStats,
    BulkUserResult,
    User,
    UserImport,
    UserRegister,
    UserRole,
    normalize_email,
)
from catprep.utils.auth import get_password_hash, verify_password

logger = logging.getLogger(__name__)


def user_from_db(db_user: UserDB) -> User:
    return User(
        id=db_user.id,
        name=db_user.name,
        email=db_user.email,
        role=db_user.role,
        created_at=db_user.created_at,
    )


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> UserDB | None:
        return await self.db.scalar(select(UserDB).where(UserDB.email == normalize_email(email)))

    async def register(self, user: UserRegister, role: UserRole = UserRole.STUDENT) -> UserDB:
        if await self.get_by_email(user.email) is not None:
            raise ConflictException("Email already registered")

        db_user = UserDB(
            name=user.name,
            email=user.email,
            hashed_password=get_password_hash(user.password),
            role=role.value,
        )
        self.db.add(db_user)
        await self.db.commit()
        logger.info(f"Registered {role.value} user {db_user.id}")
        return db_user

    async def authenticate(self, email: str, password: str) -> UserDB:
        db_user = await self.get_by_email(email)
        if db_user is None or not verify_password(password, db_user.hashed_password):
            raise AuthenticationException("Incorrect email or password")
        return db_user

    async def ensure_admin(self, email: str, password: str, name: str) -> None:
        """Create the bootstrap administrator unless that email already exists."""
        if await self.get_by_email(email) is not None:
            return
        await self.register(
            UserRegister(name=name, email=email, password=password), role=UserRole.ADMIN
        )

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(UserDB).order_by(UserDB.created_at.desc()))
        return [user_from_db(u) for u in result.scalars().all()]

    async def delete_user(self, user_id: str) -> None:
        """Remove a user together with their attempts."""
        db_user = await self.db.scalar(
            select(UserDB).options(selectinload(UserDB.attempts)).where(UserDB.id == user_id)
        )
        if db_user is None:
            raise NotFoundException("User")
        await self.db.delete(db_user)
        await self.db.commit()
        logger.info(f"Deleted user {user_id}")

    async def import_users(self, rows: list[UserImport]) -> BulkUserResult:
        """Create accounts in bulk, skipping blank and already registered emails."""
        seen = set()
        imported = skipped = 0
        for row in rows:
            email = normalize_email(row.email)
            if not email or email in seen or await self.get_by_email(email) is not None:
                skipped += 1
                continue
            seen.add(email)
            self.db.add(
                UserDB(
                    name=row.name.strip() or email.split("@")[0],
                    email=email,
                    hashed_password=get_password_hash(row.password),
                    role=row.role.value,
                )
            )
            imported += 1
        await self.db.commit()
        logger.info(f"Bulk user import: {imported} created, {skipped} skipped")
        return BulkUserResult(imported=imported, skipped=skipped)

    async def stats(self) -> AdminStats:
        students = await self.db.scalar(
            select(func.count()).select_from(UserDB).where(UserDB.role == UserRole.STUDENT.value)
        )
        questions = await self.db.scalar(select(func.count()).select_from(QuestionDB))
        active = await self.db.scalar(
            select(func.count())
            .select_from(TestAttemptDB)
            .where(TestAttemptDB.status == AttemptStatus.IN_PROGRESS.value)
        )
        return AdminStats(users=students or 0, questions=questions or 0, active_tests=active or 0)
