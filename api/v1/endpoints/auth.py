from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
import logging
from fastapi.security import OAuth2PasswordRequestForm
from motor.motor_asyncio import AsyncIOMotorDatabase

from db.database import get_database
from models.user import User
from schemas.auth import Token, UserCreate, UserDisplay
from services.security import authenticate, create_access_token, create_user, get_current_user


router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def _display(user: User) -> UserDisplay:
    return UserDisplay(user_id=str(user.id), name=user.name, email=user.email)


@router.post("/auth/signup", response_model=UserDisplay, status_code=status.HTTP_201_CREATED)
async def signup(payload: UserCreate, db: AsyncIOMotorDatabase = Depends(get_database)) -> UserDisplay:
    user = await create_user(db, name=payload.name, email=str(payload.email), password=payload.password)
    return _display(user)


@router.post("/auth/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> Token:
    username = (form_data.username or "").strip()
    user = await authenticate(db, username, form_data.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")

    logger.info("auth.login_success", extra={"user_id": str(user.id)})
    return Token(access_token=create_access_token(user))


@router.get("/users/me", response_model=UserDisplay)
async def read_users_me(current_user: User = Depends(get_current_user)) -> UserDisplay:
    return _display(current_user)
