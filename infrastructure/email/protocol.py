"""NotificationDispatcher protocol: services depend on this, not the concrete implementation.

Every method returns True/False and never raises: callers treat delivery
as fire-and-forget.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol

from schemas.models.otp import OtpPurpose
from schemas.models.reservation import ReservationDoc
from schemas.models.tenancy import TenancyDoc


@dataclass(frozen=True)
class RentReminder:
    """What a rent reminder says, shared by every tenant in one run."""

    stage: str  # "first" (due soon) or "second" (now due)
    month: str
    year: int
    due_date: date
    currency_symbol: str = "₹"
    payment_instructions: str = ""
    contact_email: str = ""
    contact_phone: str = ""


class NotificationDispatcher(Protocol):
    async def send_otp_email(
        self,
        email: str,
        user_name: Optional[str],
        otp_code: str,
        purpose: OtpPurpose,
        ttl_minutes: int,
    ) -> bool: ...

    async def send_receipt_email(
        self, email: str, user_name: Optional[str], reservation: ReservationDoc
    ) -> bool: ...

    async def send_rent_reminder(
        self,
        email: str,
        user_name: Optional[str],
        tenancy: TenancyDoc,
        reminder: RentReminder,
    ) -> bool: ...
