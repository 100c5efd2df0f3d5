from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from core.errors import NotFound, TransportError


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def _transport_guard(collection: str, operation: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        logger.exception("repository.transport_error", extra={"collection": collection, "operation": operation})
        raise TransportError() from exc


class OwnedRepository:
    """CRUD over one collection where every document belongs to an owner.

    Every query carries ``owner_id``; a record owned by somebody else is
    indistinguishable from a missing one and raises ``NotFound``. Records are
    returned as plain dicts with the Mongo ``_id`` exposed as a string ``id``.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection: str) -> None:
        self.db = db
        self.collection = collection

    @property
    def _coll(self):
        return self.db[self.collection]

    @staticmethod
    def _to_record(doc: Dict[str, Any]) -> Dict[str, Any]:
        record = {k: v for k, v in doc.items() if k != "_id"}
        record["id"] = str(doc["_id"])
        return record

    def _id_query(self, owner_id: str, record_id: Any) -> Dict[str, Any]:
        try:
            oid = record_id if isinstance(record_id, ObjectId) else ObjectId(str(record_id))
        except (InvalidId, TypeError):
            raise NotFound(self.collection, record_id)
        return {"_id": oid, "owner_id": owner_id}

    async def list(
        self,
        owner_id: str,
        filters: Dict[str, Any] | None = None,
        *,
        sort: Optional[Sequence[tuple[str, int]]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query = {**(filters or {}), "owner_id": owner_id}
        with _transport_guard(self.collection, "list"):
            cursor = self._coll.find(query)
            if sort:
                cursor = cursor.sort(list(sort))
            if limit:
                cursor = cursor.limit(limit)
            return [self._to_record(doc) async for doc in cursor]

    async def get(self, owner_id: str, record_id: Any) -> Dict[str, Any]:
        query = self._id_query(owner_id, record_id)
        with _transport_guard(self.collection, "get"):
            doc = await self._coll.find_one(query)
        if doc is None:
            raise NotFound(self.collection, record_id)
        return self._to_record(doc)

    async def exists(self, owner_id: str, record_id: Any) -> bool:
        try:
            await self.get(owner_id, record_id)
        except NotFound:
            return False
        return True

    async def insert(self, owner_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        doc = {k: v for k, v in record.items() if k not in ("_id", "id")}
        now = utcnow()
        doc.update({"owner_id": owner_id, "created_at": now, "updated_at": now})
        with _transport_guard(self.collection, "insert"):
            result = await self._coll.insert_one(doc)
        doc["_id"] = result.inserted_id
        return self._to_record(doc)

    async def insert_many(self, owner_id: str, records: Sequence[Dict[str, Any]]) -> List[ObjectId]:
        if not records:
            return []
        now = utcnow()
        docs = [
            {**{k: v for k, v in r.items() if k not in ("_id", "id")}, "owner_id": owner_id, "created_at": now, "updated_at": now}
            for r in records
        ]
        with _transport_guard(self.collection, "insert_many"):
            result = await self._coll.insert_many(docs)
        return list(result.inserted_ids)

    async def update(self, owner_id: str, record_id: Any, partial: Dict[str, Any]) -> Dict[str, Any]:
        query = self._id_query(owner_id, record_id)
        # owner_id and identity are never writable through an update
        changes = {k: v for k, v in partial.items() if k not in ("_id", "id", "owner_id", "created_at")}
        changes["updated_at"] = utcnow()
        with _transport_guard(self.collection, "update"):
            doc = await self._coll.find_one_and_update(
                query, {"$set": changes}, return_document=ReturnDocument.AFTER
            )
        if doc is None:
            raise NotFound(self.collection, record_id)
        return self._to_record(doc)

    async def delete(self, owner_id: str, record_id: Any) -> None:
        query = self._id_query(owner_id, record_id)
        with _transport_guard(self.collection, "delete"):
            result = await self._coll.delete_one(query)
        if result.deleted_count == 0:
            raise NotFound(self.collection, record_id)

    async def delete_many(self, owner_id: str, filters: Dict[str, Any] | None = None) -> int:
        query = {**(filters or {}), "owner_id": owner_id}
        with _transport_guard(self.collection, "delete_many"):
            result = await self._coll.delete_many(query)
        return result.deleted_count
