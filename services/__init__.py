from __future__ import annotations

# Re-export key service classes for convenient imports
from .booking import BookingService

__all__ = ["BookingService"]
