from __future__ import annotations

from typing import Optional

from pydantic import Field

from .base import MongoModel, PyObjectId


class User(MongoModel):
    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    name: str
    email: str
    hashed_password: str
