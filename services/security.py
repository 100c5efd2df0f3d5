from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
import re

import logging
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from motor.motor_asyncio import AsyncIOMotorDatabase
from passlib.context import CryptContext

from core.config import settings
from db.database import get_database
from models.user import User


password_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return password_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return password_context.hash(password)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Signed JWT whose ``sub`` is the user id; that id scopes every owned record."""
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def get_user_by_email(db: AsyncIOMotorDatabase, email: str) -> Optional[User]:
    # Emails are stored lowercased but older rows may not be; match case-insensitively
    pattern = {"$regex": f"^{re.escape(str(email))}$", "$options": "i"}
    doc = await db[USERS_COLLECTION].find_one({"email": pattern})
    return User(**doc) if doc else None


async def get_user_by_id(db: AsyncIOMotorDatabase, user_id: str) -> Optional[User]:
    try:
        oid = ObjectId(user_id)
    except (InvalidId, TypeError):
        return None
    doc = await db[USERS_COLLECTION].find_one({"_id": oid})
    return User(**doc) if doc else None


async def authenticate(db: AsyncIOMotorDatabase, email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(db, email)
    if user is None:
        logger.warning("auth.user_not_found", extra={"email": email})
        return None
    if not verify_password(password, user.hashed_password):
        logger.warning("auth.invalid_password", extra={"email": email})
        return None
    return user


async def create_user(db: AsyncIOMotorDatabase, *, name: str, email: str, password: str) -> User:
    if await get_user_by_email(db, email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    doc = {"name": name, "email": email.lower(), "hashed_password": get_password_hash(password)}
    result = await db[USERS_COLLECTION].insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info("auth.user_created", extra={"user_id": str(result.inserted_id)})
    return User(**doc)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> User:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        logger.warning("auth.jwt_error")
        raise unauthorized

    user_id = claims.get("sub")
    user = await get_user_by_id(db, user_id) if user_id else None
    if user is None:
        logger.error("auth.user_not_found_for_token", extra={"user_id": user_id})
        raise unauthorized
    return user


async def get_owner_id(user: User = Depends(get_current_user)) -> str:
    """Every owned record is scoped by the authenticated user's id."""
    return str(user.id)
