"""
Profile document model (the subset this service reads and writes).

Maps to the `profiles` MongoDB collection. Unlike the other collections the
_id is not generated here: it is the profile id handed out by the site,
bound to the identity-store user id. The staying_* fields mirror the
Active tenancy ("current home") and must be empty whenever is_boarded is
False.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# Fields reset by offboarding. Kept in one place so onboarding and
# offboarding can never drift apart.
STAYING_FIELDS = (
    "staying_property_name",
    "staying_room_type",
    "staying_room_tier",
    "staying_rent",
)


class ProfileDoc(BaseModel):
    """Document model for the `profiles` collection."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    is_boarded: bool = False
    staying_property_name: Optional[str] = None
    staying_room_type: Optional[str] = None
    staying_room_tier: Optional[str] = None
    staying_rent: Optional[int] = None

    @property
    def is_offboarded_shape(self) -> bool:
        """True when the profile carries no trace of a current home."""
        return not self.is_boarded and all(
            getattr(self, name) is None for name in STAYING_FIELDS
        )

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional["ProfileDoc"]:
        if data is None:
            return None
        return cls.model_validate(data)


def boarded_profile_fields(
    property_name: str, occupancy_name: str, tier_name: str, rent_amount: int
) -> dict:
    return {
        "is_boarded": True,
        "staying_property_name": property_name,
        "staying_room_type": occupancy_name,
        "staying_room_tier": tier_name,
        "staying_rent": rent_amount,
    }


def offboarded_profile_fields() -> dict:
    fields: dict = {name: None for name in STAYING_FIELDS}
    fields["is_boarded"] = False
    return fields
