"""
Appointment scheduling rules.

Pure functions only: no database access, no mutation of inputs. The booking
service fetches the snapshot of existing appointments and the owner's
reference ids, then calls:

- derive_defaults(candidate, service): fill end/price from the selected service
- validate(candidate, existing, exclude_id, references=...): decide if the
  candidate may be written

Intervals are half-open [start, end): an appointment ending at 11:00 and
another starting at 11:00 for the same professional do not collide.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Iterable, Optional

from core.errors import (
    FieldError,
    InvalidInterval,
    SchedulingConflict,
    UnresolvedReference,
    ValidationError,
)
from models.appointment import Appointment, AppointmentCandidate
from models.base import as_utc
from models.catalog import Service


REFERENCE_FIELDS = ("client_id", "professional_id", "service_id")


class RejectionKind(str, Enum):
    INVALID_INTERVAL = "invalid_interval"
    VALIDATION_ERROR = "validation_error"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    SCHEDULING_CONFLICT = "scheduling_conflict"


@dataclass(frozen=True)
class ReferenceIndex:
    """Ids of the owner's clients, professionals and services."""

    client_ids: frozenset[str] = frozenset()
    professional_ids: frozenset[str] = frozenset()
    service_ids: frozenset[str] = frozenset()

    def resolves(self, field: str, value: Optional[str]) -> bool:
        if not value:
            return False
        pool = {
            "client_id": self.client_ids,
            "professional_id": self.professional_ids,
            "service_id": self.service_ids,
        }[field]
        return value in pool


@dataclass(frozen=True)
class Verdict:
    kind: Optional[RejectionKind] = None
    message: str = ""
    field: Optional[str] = None
    conflicting_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind is None

    @classmethod
    def accept(cls) -> "Verdict":
        return cls()

    def raise_if_rejected(self) -> None:
        if self.kind is None:
            return
        if self.kind is RejectionKind.INVALID_INTERVAL:
            raise InvalidInterval(self.message, self.field or "end")
        if self.kind is RejectionKind.UNRESOLVED_REFERENCE:
            raise UnresolvedReference(self.field or "", self.message)
        if self.kind is RejectionKind.SCHEDULING_CONFLICT:
            raise SchedulingConflict(self.conflicting_id)
        raise ValidationError([FieldError(self.field or "", self.message)])


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Return a UTC-aware datetime, or None when the value is not a timestamp."""
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str) and value.strip():
        try:
            return as_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def intervals_overlap(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    return s1 < e2 and s2 < e1


def derive_defaults(candidate: AppointmentCandidate, service: Optional[Service]) -> AppointmentCandidate:
    """Fill ``end``, ``price`` and ``service_name`` from the selected service.

    ``end`` becomes ``start + service.duration`` minutes and ``price`` the
    service price, each unless listed in ``candidate.pinned``. Without a
    service the candidate comes back unchanged. Calling it again with the same
    service and start yields the same values.
    """
    if service is None:
        return candidate

    updates: dict[str, Any] = {"service_name": service.name}
    start = parse_timestamp(candidate.start)
    if service.duration and start is not None and "end" not in candidate.pinned:
        updates["end"] = start + timedelta(minutes=service.duration)
    if service.price is not None and "price" not in candidate.pinned:
        updates["price"] = service.price
    return candidate.model_copy(update=updates)


def find_conflict(
    professional_id: str,
    start: datetime,
    end: datetime,
    existing: Iterable[Appointment],
    exclude_id: Optional[str] = None,
) -> Optional[Appointment]:
    for appt in existing:
        if appt.professional_id != professional_id:
            continue
        if exclude_id is not None and appt.id == exclude_id:
            continue
        if intervals_overlap(start, end, appt.start, appt.end):
            return appt
    return None


def validate(
    candidate: AppointmentCandidate,
    existing: Iterable[Appointment],
    exclude_id: Optional[str] = None,
    *,
    references: ReferenceIndex,
) -> Verdict:
    start = parse_timestamp(candidate.start)
    end = parse_timestamp(candidate.end)
    if start is None:
        return Verdict(RejectionKind.INVALID_INTERVAL, "Invalid start date", field="start")
    if end is None:
        return Verdict(RejectionKind.INVALID_INTERVAL, "Invalid end date", field="end")
    if end <= start:
        return Verdict(RejectionKind.INVALID_INTERVAL, "End time must be after start time", field="end")

    if candidate.price is None or candidate.price <= 0:
        return Verdict(RejectionKind.VALIDATION_ERROR, "Price must be a positive value", field="price")

    for field in REFERENCE_FIELDS:
        value = getattr(candidate, field)
        if not references.resolves(field, value):
            return Verdict(RejectionKind.UNRESOLVED_REFERENCE, str(value), field=field)

    clash = find_conflict(candidate.professional_id, start, end, existing, exclude_id)
    if clash is not None:
        return Verdict(
            RejectionKind.SCHEDULING_CONFLICT,
            "The professional already has an appointment in this time range",
            conflicting_id=clash.id,
        )
    return Verdict.accept()
