from __future__ import annotations

from datetime import datetime
from typing import Any, FrozenSet, Optional

from pydantic import Field, field_validator

from .base import MongoModel, OwnedRecord, as_utc


class Appointment(OwnedRecord):
    client_id: str
    professional_id: str
    service_id: str
    client_name: str = ""
    service_name: str = ""
    price: int = Field(default=0, ge=0)  # minor currency units
    start: datetime
    end: datetime
    attended: bool = False

    @field_validator("start", "end", "created_at", "updated_at", mode="after")
    @classmethod
    def _normalize_utc(cls, value: Any) -> Any:
        return as_utc(value)


class AppointmentCandidate(MongoModel):
    """A not-yet-validated appointment payload.

    ``start`` and ``end`` are kept loosely typed (datetime, ISO string or None)
    so the scheduler can report unparsable values itself. ``pinned`` lists the
    derived fields (``end``, ``price``) the caller set explicitly and that
    service defaults must not overwrite.
    """

    id: Optional[str] = None
    client_id: Optional[str] = None
    professional_id: Optional[str] = None
    service_id: Optional[str] = None
    client_name: Optional[str] = None
    service_name: Optional[str] = None
    price: Optional[int] = None
    start: Any = None
    end: Any = None
    attended: bool = False
    pinned: FrozenSet[str] = frozenset()
