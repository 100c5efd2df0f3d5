from __future__ import annotations

from enum import Enum
from typing import Optional

from .base import MongoModel, OwnedRecord


class Client(OwnedRecord):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None


class Professional(OwnedRecord):
    name: str


class Service(OwnedRecord):
    name: str
    description: Optional[str] = None
    price: Optional[int] = None  # minor currency units
    duration: Optional[int] = None  # minutes


class Product(OwnedRecord):
    name: str
    description: Optional[str] = None
    price: int
    quantity: int = 0
    image_url: Optional[str] = None


class EntryKind(str, Enum):
    income = "income"
    expense = "expense"


class EntryRecurrence(str, Enum):
    one_off = "one-off"
    recurring = "recurring"


class FinancialEntry(OwnedRecord):
    description: str
    amount: int
    type: EntryKind
    entry_type: EntryRecurrence
    entry_date: str  # YYYY-MM-DD
    appointment_id: Optional[str] = None


class BusinessHours(MongoModel):
    day_of_week: int
    start_time: Optional[str] = None
    end_time: Optional[str] = None
