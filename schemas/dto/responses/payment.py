"""
Response DTOs for the payment endpoints.

VerifyPaymentResponse - POST /payments/verify  (200)
OrderResponse         - POST /payments/orders  (200)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class VerifyPaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    reservation_id: str
    already_processed: bool = False
    status: str


class OrderResponse(BaseModel):
    """``amount`` is in minor units (paise)."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    order_id: str
    amount: int
    currency: str
