"""Data access for the `otp_challenges` collection."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from schemas.models.otp import OtpChallengeDoc, OtpPurpose


class OtpChallengeRepository:
    def __init__(self, collection) -> None:
        self._col = collection

    async def insert(self, challenge: OtpChallengeDoc) -> OtpChallengeDoc:
        result = await self._col.insert_one(challenge.to_mongo())
        return challenge.model_copy(update={"id": result.inserted_id})

    async def find_latest_unused(
        self,
        user_id: str,
        code_hash: str,
        purpose: OtpPurpose,
        bound_email: Optional[str] = None,
    ) -> Optional[OtpChallengeDoc]:
        """Newest unused challenge for the subject with a matching code.

        Expired rows are still returned; the caller decides between
        Expired and success so the two outcomes stay distinguishable.
        """
        query: dict = {
            "user_id": user_id,
            "code_hash": code_hash,
            "purpose": purpose.value,
            "used": False,
        }
        if bound_email is not None:
            query["bound_email"] = bound_email
        doc = await self._col.find_one(query, sort=[("created_at", DESCENDING)])
        return OtpChallengeDoc.from_mongo(doc)

    async def has_used_match(
        self,
        user_id: str,
        code_hash: str,
        purpose: OtpPurpose,
        bound_email: Optional[str] = None,
    ) -> bool:
        """True if a matching challenge exists that was already consumed."""
        query: dict = {
            "user_id": user_id,
            "code_hash": code_hash,
            "purpose": purpose.value,
            "used": True,
        }
        if bound_email is not None:
            query["bound_email"] = bound_email
        return await self._col.find_one(query, projection={"_id": 1}) is not None

    async def mark_used(self, challenge_id: ObjectId, used_at: datetime) -> bool:
        """Flip used=false → true. Returns False if another writer won."""
        result = await self._col.update_one(
            {"_id": challenge_id, "used": False},
            {"$set": {"used": True, "used_at": used_at}},
        )
        return result.modified_count == 1

    async def find_sweepable_ids(
        self,
        expired_before: datetime,
        after_id: Optional[ObjectId],
        limit: int,
    ) -> list[ObjectId]:
        """One page of ids that are used, or expired before *expired_before*.

        Pages are ordered by _id so the caller can resume after the last id
        it saw, even if some deletes on the previous page failed.
        """
        query: dict = {
            "$or": [
                {"expires_at": {"$lt": expired_before}},
                {"used": True},
            ]
        }
        if after_id is not None:
            query["_id"] = {"$gt": after_id}
        cursor = (
            self._col.find(query, projection={"_id": 1})
            .sort("_id", ASCENDING)
            .limit(limit)
        )
        return [doc["_id"] async for doc in cursor]

    async def delete(self, challenge_id: ObjectId) -> bool:
        result = await self._col.delete_one({"_id": challenge_id})
        return result.deleted_count == 1
