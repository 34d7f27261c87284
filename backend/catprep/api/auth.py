from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.db.database import get_db
from catprep.db.models import UserDB
from catprep.exceptions import AuthenticationException, AuthorizationException
from catprep.models.user import Identity, Token, User, UserRegister
from catprep.services.users import UserService, user_from_db
from catprep.utils.auth import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    JWTError,
    create_access_token,
    decode_access_token,
)

router = APIRouter(prefix="/auth", tags=["auth"])
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def issue_token(user: UserDB) -> Token:
    access_token = create_access_token(
        data={"sub": user.id, "role": user.role},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return Token(access_token=access_token)


# --- Dependencies ---
async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: AsyncSession = Depends(get_db),
) -> UserDB:
    if not token:
        raise AuthenticationException("Not authenticated")
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise AuthenticationException()
    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationException()

    user = await db.get(UserDB, user_id)
    if user is None:
        raise AuthenticationException()
    return user


async def get_current_identity(
    user: Annotated[UserDB, Depends(get_current_user)],
) -> Identity:
    return Identity(user_id=user.id, role=user.role)


async def require_admin(
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> Identity:
    if not identity.is_admin:
        raise AuthorizationException("Administrator access required")
    return identity


# --- Endpoints ---

@router.post("/register", response_model=Token, status_code=201)
async def register(user: UserRegister, db: AsyncSession = Depends(get_db)):
    new_user = await UserService(db).register(user)
    return issue_token(new_user)


@router.post("/login", response_model=Token)
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: AsyncSession = Depends(get_db),
):
    # OAuth2 form uses 'username', we treat it as the email
    user = await UserService(db).authenticate(form_data.username, form_data.password)
    return issue_token(user)


@router.get("/me", response_model=User)
async def read_users_me(current_user: Annotated[UserDB, Depends(get_current_user)]):
    return user_from_db(current_user)


AdminIdentity = Annotated[Identity, Depends(require_admin)]
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
