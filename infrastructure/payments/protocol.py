"""PaymentGateway protocol: services depend on this, not the concrete implementation."""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class GatewayOrder:
    order_id: str
    amount: int  # minor units (paise)
    currency: str


class PaymentGateway(Protocol):
    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[dict[str, str]] = None,
    ) -> GatewayOrder: ...
