"""
Tenancy document model.

Maps to the `tenancies` MongoDB collection. A document exists only while
the tenant is boarded: onboarding inserts it with status Active and
offboarding deletes it. Queried by (user_id, status).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel

TENANCY_STATUS_ACTIVE = "Active"


class TenancyDoc(MongoBaseModel):
    """Document model for the `tenancies` collection."""

    user_id: str
    profile_id: str
    property_id: str
    property_name: str
    occupancy_name: str
    tier_key: str
    tier_name: str
    rent_amount: int = Field(gt=0)
    currency: str = "INR"
    onboarded_at: datetime
    status: str = TENANCY_STATUS_ACTIVE

    # Rent ledger, maintained by the rent-payment endpoint
    payment_year: Optional[int] = None
    paid_months: list[str] = []
