"""Razorpay Orders API implementation of PaymentGateway."""

from typing import Optional

import httpx

from config import PaymentSettings
from errors import ExternalServiceError
from infrastructure.http_client import HttpClient
from infrastructure.payments.protocol import GatewayOrder
from shared.logging import get_logger

log = get_logger(__name__)

_SERVICE = "payment_gateway"


class RazorpayGateway:
    def __init__(self, settings: PaymentSettings, http_client: HttpClient) -> None:
        self._settings = settings
        self._http = http_client

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[dict[str, str]] = None,
    ) -> GatewayOrder:
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        try:
            response = await self._http.post(
                self._settings.payment_orders_url,
                json=payload,
                auth=(self._settings.payment_key_id, self._settings.payment_key_secret),
            )
        except httpx.HTTPError as e:
            log.error(
                "payment_order_request_failed",
                receipt=receipt,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ExternalServiceError(
                "Payment gateway unavailable", service=_SERVICE
            ) from e

        if response.status_code >= 400:
            log.error(
                "payment_order_rejected",
                receipt=receipt,
                status_code=response.status_code,
                response=response.text[:200],
            )
            raise ExternalServiceError(
                "Could not create order",
                service=_SERVICE,
                details={"status": response.status_code},
            )

        data = response.json()
        return GatewayOrder(
            order_id=data["id"],
            amount=int(data["amount"]),
            currency=data["currency"],
        )
