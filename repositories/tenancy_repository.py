"""Data access for the `tenancies` collection."""

from __future__ import annotations

from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from schemas.models.base import parse_object_id
from schemas.models.tenancy import TENANCY_STATUS_ACTIVE, TenancyDoc


class TenancyRepository:
    def __init__(self, collection) -> None:
        self._col = collection

    async def insert(self, tenancy: TenancyDoc) -> TenancyDoc:
        result = await self._col.insert_one(tenancy.to_mongo())
        return tenancy.model_copy(update={"id": result.inserted_id})

    async def get(self, tenancy_id: str) -> Optional[TenancyDoc]:
        oid = parse_object_id(tenancy_id)
        if oid is None:
            return None
        return TenancyDoc.from_mongo(await self._col.find_one({"_id": oid}))

    async def find_active_by_user(self, user_id: str) -> Optional[TenancyDoc]:
        doc = await self._col.find_one(
            {"user_id": user_id, "status": TENANCY_STATUS_ACTIVE},
            sort=[("onboarded_at", DESCENDING)],
        )
        return TenancyDoc.from_mongo(doc)

    async def list_active_page(
        self, after_id: Optional[ObjectId], limit: int
    ) -> list[TenancyDoc]:
        """One page of Active tenancies ordered by _id, starting after *after_id*."""
        query: dict = {"status": TENANCY_STATUS_ACTIVE}
        if after_id is not None:
            query["_id"] = {"$gt": after_id}
        cursor = self._col.find(query).sort("_id", ASCENDING).limit(limit)
        return [TenancyDoc.from_mongo(doc) async for doc in cursor]

    async def delete(self, tenancy_id: str) -> bool:
        """Delete by id. Returns False when nothing was there to delete."""
        oid = parse_object_id(tenancy_id)
        if oid is None:
            return False
        result = await self._col.delete_one({"_id": oid})
        return result.deleted_count == 1

    async def update_rent_payment(
        self, tenancy_id: str, payment_year: int, paid_months: list[str]
    ) -> Optional[TenancyDoc]:
        oid = parse_object_id(tenancy_id)
        if oid is None:
            return None
        doc = await self._col.find_one_and_update(
            {"_id": oid},
            {"$set": {"payment_year": payment_year, "paid_months": paid_months}},
            return_document=ReturnDocument.AFTER,
        )
        return TenancyDoc.from_mongo(doc)
