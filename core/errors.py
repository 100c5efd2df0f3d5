from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class SalonFlowError(Exception):
    """Base class for every error surfaced to API callers.

    Subclasses carry a stable ``kind`` string and the HTTP status used by the
    exception handlers registered in ``main.py``.
    """

    kind = "error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message}


class ValidationError(SalonFlowError):
    kind = "validation_error"
    status_code = 422

    def __init__(self, errors: List[FieldError], message: str = "Invalid data") -> None:
        super().__init__(message)
        self.errors = list(errors)

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["errors"] = [e.as_dict() for e in self.errors]
        return payload


class InvalidInterval(SalonFlowError):
    kind = "invalid_interval"
    status_code = 422

    def __init__(self, message: str = "End time must be after start time", field: str = "end") -> None:
        super().__init__(message)
        self.field = field

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["field"] = self.field
        return payload


class UnresolvedReference(SalonFlowError):
    kind = "unresolved_reference"
    status_code = 422

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(f"{field} {value!s} does not match any of your records")
        self.field = field
        self.value = value

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["field"] = self.field
        return payload


class SchedulingConflict(SalonFlowError):
    kind = "scheduling_conflict"
    status_code = 409

    def __init__(self, conflicting_id: Optional[str]) -> None:
        super().__init__("The professional already has an appointment in this time range")
        self.conflicting_id = conflicting_id

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["conflicting_appointment_id"] = self.conflicting_id
        return payload


class NotFound(SalonFlowError):
    kind = "not_found"
    status_code = 404

    def __init__(self, collection: str, record_id: Any) -> None:
        super().__init__(f"{collection} record not found")
        self.collection = collection
        self.record_id = record_id


class TransportError(SalonFlowError):
    kind = "transport_error"
    status_code = 503

    def __init__(self, message: str = "Storage is temporarily unavailable") -> None:
        super().__init__(message)
