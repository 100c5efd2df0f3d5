from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from db.database import get_database
from models.catalog import BusinessHours
from repositories.base import OwnedRepository
from schemas.records import BusinessHoursUpdate
from schemas.validation import parse_or_raise
from services.security import get_owner_id


router = APIRouter(prefix="/settings", tags=["settings"])


def _week(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # Days without a stored row are closed
    by_day = {r["day_of_week"]: r for r in rows}
    return [
        BusinessHours(**by_day.get(day, {"day_of_week": day})).model_dump()
        for day in range(7)
    ]


@router.get("/business-hours")
async def get_business_hours(
    owner_id: str = Depends(get_owner_id),
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> Dict[str, Any]:
    repo = OwnedRepository(db, "business_hours")
    rows = await repo.list(owner_id, sort=[("day_of_week", ASCENDING)])
    return {"days": _week(rows)}


@router.put("/business-hours")
async def put_business_hours(
    payload: Dict[str, Any] = Body(...),
    owner_id: str = Depends(get_owner_id),
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> Dict[str, Any]:
    update = parse_or_raise(BusinessHoursUpdate, payload)
    repo = OwnedRepository(db, "business_hours")
    rows = [d.model_dump() for d in update.days]
    # Write the new week first; the old rows go only once it is stored
    new_ids = await repo.insert_many(owner_id, rows)
    await repo.delete_many(owner_id, {"_id": {"$nin": new_ids}})
    return {"days": _week(rows)}
