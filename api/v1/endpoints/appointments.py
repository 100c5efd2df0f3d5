from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

import logging
from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from db.database import get_database
from schemas.appointments import AppointmentCreate, AppointmentUpdate
from services.booking import BookingService
from services.scheduler import parse_timestamp
from services.security import get_owner_id


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


def get_booking_service(db: AsyncIOMotorDatabase = Depends(get_database)) -> BookingService:
    return BookingService(db)


@router.get("")
async def list_appointments(
    start: datetime | None = None,
    end: datetime | None = None,
    professional_id: str | None = None,
    owner_id: str = Depends(get_owner_id),
    booking: BookingService = Depends(get_booking_service),
) -> Dict[str, Any]:
    appts = await booking.list(owner_id, start=start, end=end, professional_id=professional_id)
    return {"appointments": [a.model_dump(mode="json") for a in appts]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreate,
    owner_id: str = Depends(get_owner_id),
    booking: BookingService = Depends(get_booking_service),
) -> Dict[str, Any]:
    logger.info("appointments.create.request", extra={"owner_id": owner_id, "start": str(payload.start)})
    appt = await booking.commit(owner_id, payload.to_candidate())
    return appt.model_dump(mode="json")


@router.post("/preview")
async def preview_appointment(
    payload: AppointmentCreate,
    appointment_id: str | None = None,
    owner_id: str = Depends(get_owner_id),
    booking: BookingService = Depends(get_booking_service),
) -> Dict[str, Any]:
    # appointment_id is set when previewing an edit, so it does not collide with itself
    candidate = payload.to_candidate().model_copy(update={"id": appointment_id})
    candidate, verdict = await booking.preview(owner_id, candidate)
    end = parse_timestamp(candidate.end)
    return {
        "ok": verdict.ok,
        "reason": verdict.kind.value if verdict.kind else None,
        "field": verdict.field,
        "message": verdict.message or None,
        "conflicting_appointment_id": verdict.conflicting_id,
        "end": end.isoformat() if end else None,
        "price": candidate.price,
        "service_name": candidate.service_name,
        "client_name": candidate.client_name,
    }


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: str,
    owner_id: str = Depends(get_owner_id),
    booking: BookingService = Depends(get_booking_service),
) -> Dict[str, Any]:
    appt = await booking.get(owner_id, appointment_id)
    return appt.model_dump(mode="json")


@router.patch("/{appointment_id}")
async def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    owner_id: str = Depends(get_owner_id),
    booking: BookingService = Depends(get_booking_service),
) -> Dict[str, Any]:
    appt = await booking.update(owner_id, appointment_id, payload.changes())
    return appt.model_dump(mode="json")


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    owner_id: str = Depends(get_owner_id),
    booking: BookingService = Depends(get_booking_service),
) -> Dict[str, str]:
    await booking.cancel(owner_id, appointment_id)
    return {"message": "Appointment deleted."}
