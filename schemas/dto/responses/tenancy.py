"""
Response DTOs for the tenancy endpoints.

OnboardResponse      - POST /tenancy/onboard  (200)
OffboardResponse     - POST /tenancy/offboard  (200)
RentPaymentResponse  - POST /tenancy/rent-payment  (200)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class OnboardResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    tenancy_id: str
    created: bool
    inventory_updated: bool


class OffboardResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    ok: bool = True
    deleted_tenancy_id: Optional[str] = None


class RentPaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    tenancy_id: str
    payment_year: int
    paid_months: list[str]
