"""
Request DTOs for the tenancy endpoints.

OnboardRequest      - POST /tenancy/onboard
OffboardRequest     - POST /tenancy/offboard
RentPaymentRequest  - POST /tenancy/rent-payment
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OnboardRequest(BaseModel):
    """Request body for POST /tenancy/onboard."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    user_id: str = Field(min_length=1)
    profile_id: str = Field(min_length=1)
    property_id: str = Field(min_length=1)
    property_name: str = Field(min_length=1)
    tier_key: str = Field(min_length=1)
    tier_name: str = Field(min_length=1)
    occupancy_name: str = Field(min_length=1)
    rent_amount: float = Field(gt=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)


class OffboardRequest(BaseModel):
    """Request body for POST /tenancy/offboard.

    Without ``tenancyId`` the user's Active tenancy is looked up.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    profile_id: str = Field(min_length=1)
    tenancy_id: Optional[str] = None
    user_id: Optional[str] = None


class RentPaymentRequest(BaseModel):
    """Request body for POST /tenancy/rent-payment."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    tenancy_id: str = Field(min_length=1)
    payment_year: int = Field(ge=2000, le=2100)
    paid_months: list[str] = Field(max_length=12)
