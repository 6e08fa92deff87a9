"""
Reservation document model.

Maps to the `reservations` MongoDB collection. payment_id carries a unique
index: it is the idempotency key for payment confirmation, so one gateway
payment can never produce two reservations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel

RESERVATION_STATUS_NEW = "New"


class ReservationDoc(MongoBaseModel):
    """Document model for the `reservations` collection."""

    user_id: str
    property_id: str
    property_name: Optional[str] = None
    tier_key: str
    tier_name: Optional[str] = None
    occupancy_name: Optional[str] = None
    amount_paid: float = Field(ge=0)
    currency: str = "INR"
    payment_id: str
    order_id: str
    signature: str
    status: str = RESERVATION_STATUS_NEW
    created_at: datetime
