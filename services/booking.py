from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from weakref import WeakValueDictionary

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from core.errors import NotFound
from models.appointment import Appointment, AppointmentCandidate
from models.catalog import Client, Service
from repositories.base import OwnedRepository
from services.scheduler import ReferenceIndex, RejectionKind, Verdict, derive_defaults, parse_timestamp, validate


logger = logging.getLogger(__name__)

# One lock per (owner, professional): the snapshot read, the overlap check and
# the write happen under it so two requests in this process cannot both book
# the same slot. Entries vanish once no request holds or awaits the lock.
_professional_locks: WeakValueDictionary[Tuple[str, str], asyncio.Lock] = WeakValueDictionary()


def professional_lock(owner_id: str, professional_id: str) -> asyncio.Lock:
    key = (owner_id, professional_id)
    lock = _professional_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _professional_locks[key] = lock
    return lock


class BookingService:
    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self.appointments = OwnedRepository(db, "appointments")
        self.clients = OwnedRepository(db, "clients")
        self.professionals = OwnedRepository(db, "professionals")
        self.services = OwnedRepository(db, "services")

    # ---------------- Reads ----------------

    async def list(
        self,
        owner_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        professional_id: Optional[str] = None,
    ) -> List[Appointment]:
        filters: Dict[str, Any] = {}
        if professional_id:
            filters["professional_id"] = professional_id
        docs = await self.appointments.list(owner_id, filters, sort=[("start", ASCENDING)])
        appts = [Appointment(**d) for d in docs]
        # Window filter in Python: stored timestamps may come back naive or aware
        if start is not None:
            appts = [a for a in appts if a.end > parse_timestamp(start)]
        if end is not None:
            appts = [a for a in appts if a.start < parse_timestamp(end)]
        return appts

    async def get(self, owner_id: str, appointment_id: str) -> Appointment:
        return Appointment(**await self.appointments.get(owner_id, appointment_id))

    # ---------------- Helpers ----------------

    async def _find(self, repo: OwnedRepository, owner_id: str, record_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not record_id:
            return None
        try:
            return await repo.get(owner_id, record_id)
        except NotFound:
            return None

    async def _snapshot(self, owner_id: str, professional_id: str) -> List[Appointment]:
        docs = await self.appointments.list(owner_id, {"professional_id": professional_id})
        return [Appointment(**d) for d in docs]

    async def _prepare(
        self, owner_id: str, candidate: AppointmentCandidate, exclude_id: Optional[str], derive: bool
    ) -> Tuple[AppointmentCandidate, Verdict]:
        client = await self._find(self.clients, owner_id, candidate.client_id)
        service = await self._find(self.services, owner_id, candidate.service_id)
        professional = await self._find(self.professionals, owner_id, candidate.professional_id)

        if derive:
            # end and price come from the service; an unknown one is rejected ahead of the interval check
            if service is None:
                return candidate, Verdict(RejectionKind.UNRESOLVED_REFERENCE, str(candidate.service_id), field="service_id")
            candidate = derive_defaults(candidate, Service(**service))
        if client is not None:
            candidate = candidate.model_copy(update={"client_name": Client(**client).name})

        references = ReferenceIndex(
            client_ids=frozenset([client["id"]]) if client else frozenset(),
            professional_ids=frozenset([professional["id"]]) if professional else frozenset(),
            service_ids=frozenset([service["id"]]) if service else frozenset(),
        )
        existing = await self._snapshot(owner_id, candidate.professional_id) if professional else []
        verdict = validate(candidate, existing, exclude_id, references=references)
        return candidate, verdict

    def _log_rejection(self, owner_id: str, verdict: Verdict, appointment_id: Optional[str] = None) -> None:
        logger.info(
            "booking.rejected",
            extra={
                "owner_id": owner_id,
                "appointment_id": appointment_id,
                "reason": verdict.kind.value if verdict.kind else None,
                "field": verdict.field,
                "conflicting_id": verdict.conflicting_id,
            },
        )

    @staticmethod
    def _record(candidate: AppointmentCandidate) -> Dict[str, Any]:
        return {
            "client_id": candidate.client_id,
            "professional_id": candidate.professional_id,
            "service_id": candidate.service_id,
            "client_name": candidate.client_name or "",
            "service_name": candidate.service_name or "",
            "price": candidate.price,
            "start": parse_timestamp(candidate.start),
            "end": parse_timestamp(candidate.end),
            "attended": candidate.attended,
        }

    # ---------------- Writes ----------------

    async def preview(self, owner_id: str, candidate: AppointmentCandidate) -> Tuple[AppointmentCandidate, Verdict]:
        """Derive and validate without writing; used by the booking form."""
        return await self._prepare(owner_id, candidate, candidate.id, derive=True)

    async def commit(self, owner_id: str, candidate: AppointmentCandidate) -> Appointment:
        async with professional_lock(owner_id, candidate.professional_id or ""):
            candidate, verdict = await self._prepare(owner_id, candidate, None, derive=True)
            if not verdict.ok:
                self._log_rejection(owner_id, verdict)
                verdict.raise_if_rejected()
            inserted = await self.appointments.insert(owner_id, self._record(candidate))
        logger.info(
            "appointments.create.success",
            extra={"owner_id": owner_id, "appointment_id": inserted["id"], "professional_id": candidate.professional_id},
        )
        return Appointment(**inserted)

    async def update(self, owner_id: str, appointment_id: str, changes: Dict[str, Any]) -> Appointment:
        current = await self.get(owner_id, appointment_id)

        # Only service/start edits re-run the derivation; otherwise keep the stored end and price
        derive = "service_id" in changes or "start" in changes
        pinned = {f for f in ("end", "price") if changes.get(f) is not None}
        if not derive:
            pinned = {"end", "price"}

        merged = {
            "id": current.id,
            "client_id": current.client_id,
            "professional_id": current.professional_id,
            "service_id": current.service_id,
            "client_name": current.client_name,
            "service_name": current.service_name,
            "price": current.price,
            "start": current.start,
            "end": current.end,
            "attended": current.attended,
        }
        merged.update({k: v for k, v in changes.items() if v is not None})
        if "end" in changes and changes["end"] is None:
            # explicit null end: fall back to the service duration
            derive = True
            pinned.discard("end")
        candidate = AppointmentCandidate(**merged, pinned=frozenset(pinned))

        async with professional_lock(owner_id, candidate.professional_id or ""):
            candidate, verdict = await self._prepare(owner_id, candidate, appointment_id, derive=derive)
            if not verdict.ok:
                self._log_rejection(owner_id, verdict, appointment_id)
                verdict.raise_if_rejected()
            updated = await self.appointments.update(owner_id, appointment_id, self._record(candidate))
        logger.info("appointments.update.success", extra={"owner_id": owner_id, "appointment_id": appointment_id})
        return Appointment(**updated)

    async def cancel(self, owner_id: str, appointment_id: str) -> None:
        await self.appointments.delete(owner_id, appointment_id)
        logger.info("appointments.delete.success", extra={"owner_id": owner_id, "appointment_id": appointment_id})
