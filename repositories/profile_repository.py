"""Data access for the `profiles` collection."""

from __future__ import annotations

from typing import Optional

from schemas.models.profile import ProfileDoc


class ProfileRepository:
    def __init__(self, collection) -> None:
        self._col = collection

    async def get(self, profile_id: str) -> Optional[ProfileDoc]:
        return ProfileDoc.from_mongo(await self._col.find_one({"_id": profile_id}))

    async def email_in_use(self, email: str, exclude_user_id: Optional[str] = None) -> bool:
        query: dict = {"email": email}
        if exclude_user_id is not None:
            query["user_id"] = {"$ne": exclude_user_id}
        return await self._col.find_one(query, projection={"_id": 1}) is not None

    async def update_fields(self, profile_id: str, fields: dict) -> bool:
        """$set *fields* on the profile. Returns False if it does not exist."""
        result = await self._col.update_one({"_id": profile_id}, {"$set": fields})
        return result.matched_count == 1

    async def set_email_for_user(self, user_id: str, email: str) -> bool:
        result = await self._col.update_one(
            {"user_id": user_id}, {"$set": {"email": email}}
        )
        return result.matched_count == 1

    async def find_by_user_ids(self, user_ids: list[str]) -> dict[str, ProfileDoc]:
        """Profiles keyed by user_id; users without a profile are absent."""
        if not user_ids:
            return {}
        cursor = self._col.find({"user_id": {"$in": user_ids}})
        profiles = [ProfileDoc.from_mongo(doc) async for doc in cursor]
        return {p.user_id: p for p in profiles if p.user_id}
