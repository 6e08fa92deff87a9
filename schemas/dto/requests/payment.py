"""
Request DTOs for the payment endpoints.

ReservationDetails     - nested booking data carried by the verify call
VerifyPaymentRequest   - POST /payments/verify
CreateOrderRequest     - POST /payments/orders

The gateway's checkout callback posts ``razorpay_*`` keys; those are
accepted alongside the camelCase names.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReservationDetails(BaseModel):
    """Booking data persisted on the reservation."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    user_id: str = Field(min_length=1)
    property_id: str = Field(min_length=1)
    property_name: Optional[str] = None
    tier_key: str = Field(
        min_length=1,
        validation_alias=AliasChoices("tierKey", "selectedTierKey", "tier_key"),
    )
    tier_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("tierName", "selectedTierName", "tier_name"),
    )
    occupancy_name: Optional[str] = None
    amount_paid: float = Field(gt=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)


class VerifyPaymentRequest(BaseModel):
    """Request body for POST /payments/verify."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    order_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("orderId", "razorpay_order_id", "order_id"),
    )
    payment_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("paymentId", "razorpay_payment_id", "payment_id"),
    )
    signature: str = Field(
        min_length=1,
        validation_alias=AliasChoices("signature", "razorpay_signature"),
    )
    reservation_details: ReservationDetails


class CreateOrderRequest(BaseModel):
    """Request body for POST /payments/orders."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    amount_in_rupees: float = Field(
        gt=0,
        validation_alias=AliasChoices("amountInRupees", "amount_in_rupees"),
    )
    currency: str = Field(default="INR", min_length=3, max_length=3)
    notes: Optional[dict[str, str]] = Field(
        default=None,
        validation_alias=AliasChoices("notes", "receipt_notes"),
    )
