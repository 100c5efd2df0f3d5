from __future__ import annotations

import re
from datetime import date
from typing import Any, ClassVar, FrozenSet, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    EmailStr,
    Field,
    HttpUrl,
    NonNegativeInt,
    PositiveInt,
    StringConstraints,
    field_validator,
)
from pydantic_core import PydanticCustomError
from typing_extensions import Annotated

from models.catalog import EntryKind, EntryRecurrence


_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
OptionalEmail = Annotated[Optional[EmailStr], BeforeValidator(_blank_to_none)]


class PartialUpdate(BaseModel):
    """Base for PATCH payloads: every field optional, but required fields may not be nulled."""

    not_null: ClassVar[FrozenSet[str]] = frozenset()

    @field_validator("*", mode="before")
    @classmethod
    def _reject_null(cls, value: Any, info) -> Any:
        if value is None and info.field_name in cls.not_null:
            raise PydanticCustomError("not_null", "This field cannot be empty")
        return value

    def changes(self) -> dict:
        return self.model_dump(mode="json", exclude_unset=True)


# Clients

class ClientCreate(BaseModel):
    name: NonEmptyStr
    phone: Optional[str] = None
    email: OptionalEmail = None
    notes: Optional[str] = None


class ClientUpdate(PartialUpdate):
    not_null: ClassVar[FrozenSet[str]] = frozenset({"name"})

    name: Optional[NonEmptyStr] = None
    phone: Optional[str] = None
    email: OptionalEmail = None
    notes: Optional[str] = None


# Professionals

class ProfessionalCreate(BaseModel):
    name: NonEmptyStr


class ProfessionalUpdate(PartialUpdate):
    not_null: ClassVar[FrozenSet[str]] = frozenset({"name"})

    name: Optional[NonEmptyStr] = None


# Services

class ServiceCreate(BaseModel):
    name: NonEmptyStr
    description: Optional[str] = None
    price: PositiveInt  # minor currency units
    duration: PositiveInt  # minutes


class ServiceUpdate(PartialUpdate):
    not_null: ClassVar[FrozenSet[str]] = frozenset({"name", "price", "duration"})

    name: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    price: Optional[PositiveInt] = None
    duration: Optional[PositiveInt] = None


# Products

class ProductCreate(BaseModel):
    name: NonEmptyStr
    description: Optional[str] = None
    price: PositiveInt
    quantity: NonNegativeInt = 0
    image_url: Optional[Union[HttpUrl, Literal[""]]] = None


class ProductUpdate(PartialUpdate):
    not_null: ClassVar[FrozenSet[str]] = frozenset({"name", "price", "quantity"})

    name: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    price: Optional[PositiveInt] = None
    quantity: Optional[NonNegativeInt] = None
    image_url: Optional[Union[HttpUrl, Literal[""]]] = None


# Financial entries

class FinancialEntryCreate(BaseModel):
    description: NonEmptyStr
    amount: PositiveInt
    type: EntryKind
    entry_type: EntryRecurrence = EntryRecurrence.one_off
    entry_date: date
    appointment_id: Optional[str] = None


class FinancialEntryUpdate(PartialUpdate):
    not_null: ClassVar[FrozenSet[str]] = frozenset({"description", "amount", "type", "entry_type", "entry_date"})

    description: Optional[NonEmptyStr] = None
    amount: Optional[PositiveInt] = None
    type: Optional[EntryKind] = None
    entry_type: Optional[EntryRecurrence] = None
    entry_date: Optional[date] = None


# Business hours

class BusinessHoursDay(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: Optional[str] = None
    end_time: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _check_format(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value is not None and not _HHMM.match(str(value)):
            raise PydanticCustomError("time_format", "Use the HH:MM format")
        return value

    @field_validator("end_time")
    @classmethod
    def _check_range(cls, value: Optional[str], info) -> Optional[str]:
        if "start_time" not in info.data:
            return value
        start = info.data["start_time"]
        if (start is None) != (value is None):
            raise PydanticCustomError("time_pair", "Set both opening and closing time, or neither")
        # zero-padded HH:MM compares correctly as text
        if start is not None and value <= start:
            raise PydanticCustomError("time_range", "Closing time must be after opening time")
        return value


class BusinessHoursUpdate(BaseModel):
    days: List[BusinessHoursDay]

    @field_validator("days")
    @classmethod
    def _unique_days(cls, days: List[BusinessHoursDay]) -> List[BusinessHoursDay]:
        seen = [d.day_of_week for d in days]
        if len(seen) != len(set(seen)):
            raise PydanticCustomError("duplicate_day", "Each day of the week may appear only once")
        return days
