"""
Shared base for the OTP challenge, reservation and tenancy documents.

Those collections use generated ObjectIds. Profiles carry the site's own
string id and do not inherit from here.
"""

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return *value* as an ObjectId, or None when it is not a valid id.

    Ids arrive from request bodies as strings; a malformed one is treated
    as "no such document" rather than an error.
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class PyObjectId(ObjectId):
    """ObjectId field type: accepts ObjectId or its hex string, dumps as str."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.to_string_ser_schema(),
        )

    @classmethod
    def _validate(cls, v: Any) -> ObjectId:
        oid = parse_object_id(v)
        if oid is None:
            raise ValueError(f"Invalid ObjectId: {v!r}")
        return oid


class MongoBaseModel(BaseModel):
    """Document with an optional ObjectId `_id`, exposed as `id`."""

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    def to_mongo(self) -> dict:
        """Dump by alias, dropping an unset `_id` so insert_one assigns one."""
        data = self.model_dump(by_alias=True)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional["MongoBaseModel"]:
        # find_one returns None on no match
        if data is None:
            return None
        return cls.model_validate(data)
