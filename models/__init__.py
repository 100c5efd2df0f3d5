from .appointment import Appointment, AppointmentCandidate
from .catalog import (
    BusinessHours,
    Client,
    EntryKind,
    EntryRecurrence,
    FinancialEntry,
    Product,
    Professional,
    Service,
)
from .user import User

__all__ = [
    "Appointment",
    "AppointmentCandidate",
    "BusinessHours",
    "Client",
    "EntryKind",
    "EntryRecurrence",
    "FinancialEntry",
    "Product",
    "Professional",
    "Service",
    "User",
]
