from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, PositiveInt, StringConstraints, field_validator
from pydantic_core import PydanticCustomError
from typing_extensions import Annotated

from models.appointment import AppointmentCandidate
from models.base import as_utc


RecordId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

INTERVAL_MESSAGE = "End time must be after start time"


def _check_interval(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is not None and end is not None and as_utc(end) <= as_utc(start):
        raise PydanticCustomError("interval", INTERVAL_MESSAGE)


class AppointmentCreate(BaseModel):
    client_id: RecordId
    professional_id: RecordId
    service_id: RecordId
    start: datetime
    # Left empty, end and price are derived from the selected service
    end: Optional[datetime] = Field(default=None)
    price: Optional[PositiveInt] = None
    attended: bool = False

    @field_validator("end")
    @classmethod
    def _end_after_start(cls, value: Optional[datetime], info) -> Optional[datetime]:
        _check_interval(info.data.get("start"), value)
        return value

    def to_candidate(self) -> AppointmentCandidate:
        pinned = {name for name in ("end", "price") if getattr(self, name) is not None}
        return AppointmentCandidate(
            client_id=self.client_id,
            professional_id=self.professional_id,
            service_id=self.service_id,
            start=self.start,
            end=self.end,
            price=self.price,
            attended=self.attended,
            pinned=frozenset(pinned),
        )


class AppointmentUpdate(BaseModel):
    client_id: Optional[RecordId] = None
    professional_id: Optional[RecordId] = None
    service_id: Optional[RecordId] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    price: Optional[PositiveInt] = None
    attended: Optional[bool] = None

    @field_validator("end")
    @classmethod
    def _end_after_start(cls, value: Optional[datetime], info) -> Optional[datetime]:
        _check_interval(info.data.get("start"), value)
        return value

    @field_validator("client_id", "professional_id", "service_id", "start", "price", "attended", mode="before")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise PydanticCustomError("not_null", "This field cannot be empty")
        return value

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
