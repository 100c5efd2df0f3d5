from __future__ import annotations

from typing import Any, Dict, List, Sequence, Type

import logging
from fastapi import APIRouter, Body, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING

from db.database import get_database
from models.catalog import Client, FinancialEntry, Product, Professional, Service
from repositories.base import OwnedRepository
from schemas.records import (
    ClientCreate,
    ClientUpdate,
    FinancialEntryCreate,
    FinancialEntryUpdate,
    PartialUpdate,
    ProductCreate,
    ProductUpdate,
    ProfessionalCreate,
    ProfessionalUpdate,
    ServiceCreate,
    ServiceUpdate,
)
from schemas.validation import parse_or_raise
from services.finance import monthly_summary
from services.security import get_owner_id


logger = logging.getLogger(__name__)


def build_crud_router(
    *,
    path: str,
    collection: str,
    model: Type[BaseModel],
    create_schema: Type[BaseModel],
    update_schema: Type[PartialUpdate],
    sort: Sequence[tuple[str, int]],
) -> APIRouter:
    """Owner-scoped list/get/create/update/delete endpoints for one collection.

    Payloads arrive as plain JSON objects and are validated with
    ``parse_or_raise`` so every entity reports field errors the same way.
    """
    router = APIRouter(prefix=path, tags=[collection])

    def get_repo(db: AsyncIOMotorDatabase = Depends(get_database)) -> OwnedRepository:
        return OwnedRepository(db, collection)

    def render(record: Dict[str, Any]) -> Dict[str, Any]:
        return model(**record).model_dump(mode="json")

    @router.get("")
    async def list_records(
        owner_id: str = Depends(get_owner_id),
        repo: OwnedRepository = Depends(get_repo),
    ) -> List[Dict[str, Any]]:
        return [render(r) for r in await repo.list(owner_id, sort=sort)]

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_record(
        payload: Dict[str, Any] = Body(...),
        owner_id: str = Depends(get_owner_id),
        repo: OwnedRepository = Depends(get_repo),
    ) -> Dict[str, Any]:
        data = parse_or_raise(create_schema, payload).model_dump(mode="json")
        record = await repo.insert(owner_id, data)
        logger.info(f"{collection}.create.success", extra={"owner_id": owner_id, "id": record["id"]})
        return render(record)

    @router.get("/{record_id}")
    async def get_record(
        record_id: str,
        owner_id: str = Depends(get_owner_id),
        repo: OwnedRepository = Depends(get_repo),
    ) -> Dict[str, Any]:
        return render(await repo.get(owner_id, record_id))

    @router.patch("/{record_id}")
    async def update_record(
        record_id: str,
        payload: Dict[str, Any] = Body(...),
        owner_id: str = Depends(get_owner_id),
        repo: OwnedRepository = Depends(get_repo),
    ) -> Dict[str, Any]:
        changes = parse_or_raise(update_schema, payload).changes()
        return render(await repo.update(owner_id, record_id, changes))

    @router.delete("/{record_id}")
    async def delete_record(
        record_id: str,
        owner_id: str = Depends(get_owner_id),
        repo: OwnedRepository = Depends(get_repo),
    ) -> Dict[str, str]:
        await repo.delete(owner_id, record_id)
        logger.info(f"{collection}.delete.success", extra={"owner_id": owner_id, "id": record_id})
        return {"message": "Deleted."}

    return router


# Summary must be registered before the generic "/{record_id}" route
finance_router = APIRouter(prefix="/financial-entries", tags=["financial_entries"])


@finance_router.get("/summary")
async def financial_summary(
    year: int = Query(..., ge=2000),
    month: int = Query(..., ge=1, le=12),
    owner_id: str = Depends(get_owner_id),
    db: AsyncIOMotorDatabase = Depends(get_database),
) -> Dict[str, int]:
    return await monthly_summary(OwnedRepository(db, "financial_entries"), owner_id, year, month)


clients_router = build_crud_router(
    path="/clients", collection="clients", model=Client,
    create_schema=ClientCreate, update_schema=ClientUpdate, sort=[("name", ASCENDING)],
)
professionals_router = build_crud_router(
    path="/professionals", collection="professionals", model=Professional,
    create_schema=ProfessionalCreate, update_schema=ProfessionalUpdate, sort=[("name", ASCENDING)],
)
services_router = build_crud_router(
    path="/services", collection="services", model=Service,
    create_schema=ServiceCreate, update_schema=ServiceUpdate, sort=[("name", ASCENDING)],
)
products_router = build_crud_router(
    path="/products", collection="products", model=Product,
    create_schema=ProductCreate, update_schema=ProductUpdate, sort=[("name", ASCENDING)],
)
financial_entries_router = build_crud_router(
    path="/financial-entries", collection="financial_entries", model=FinancialEntry,
    create_schema=FinancialEntryCreate, update_schema=FinancialEntryUpdate, sort=[("entry_date", DESCENDING)],
)
