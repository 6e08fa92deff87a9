"""
Payment endpoints.

POST /payments/orders  - create a gateway order for the reservation fee
POST /payments/verify  - verify the gateway signature and commit a reservation
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_order_service, get_payment_verifier
from schemas.dto.requests.payment import CreateOrderRequest, VerifyPaymentRequest
from schemas.dto.responses.common import ERROR_RESPONSES
from schemas.dto.responses.payment import OrderResponse, VerifyPaymentResponse
from services.payment_service import OrderService, PaymentVerifier

router = APIRouter(prefix="/payments", tags=["payments"], responses=ERROR_RESPONSES)


@router.post("/orders", response_model=OrderResponse)
async def create_order(
    body: CreateOrderRequest,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await service.create_order(
        body.amount_in_rupees, currency=body.currency, notes=body.notes
    )
    return OrderResponse(order_id=order.order_id, amount=order.amount, currency=order.currency)


@router.post("/verify", response_model=VerifyPaymentResponse)
async def verify_payment(
    body: VerifyPaymentRequest,
    verifier: PaymentVerifier = Depends(get_payment_verifier),
) -> VerifyPaymentResponse:
    result = await verifier.verify_and_commit(
        body.order_id, body.payment_id, body.signature, body.reservation_details
    )
    return VerifyPaymentResponse(
        reservation_id=str(result.reservation.id),
        already_processed=not result.created,
        status=result.reservation.status,
    )
