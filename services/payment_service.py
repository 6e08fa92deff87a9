"""
Payment confirmation and order creation.

PaymentVerifier.verify_and_commit turns a gateway callback into exactly one
Reservation:

1. HMAC-SHA256 signature check over ``"<order_id>|<payment_id>"``. A
   mismatch stops here with nothing persisted.
2. Idempotency gate: an existing reservation for the payment_id is
   returned unchanged.
3. Insert with status New. The unique index on payment_id turns a racing
   duplicate insert into DuplicateKeyError, which is resolved by returning
   the winner.
4. Receipt email, best-effort, only for the call that created the record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pymongo.errors import DuplicateKeyError

from errors import InvalidSignatureError, ValidationError
from infrastructure.email.protocol import NotificationDispatcher
from infrastructure.identity.protocol import IdentityProvider
from infrastructure.payments.protocol import GatewayOrder, PaymentGateway
from repositories.reservation_repository import ReservationRepository
from schemas.dto.requests.payment import ReservationDetails
from schemas.models.reservation import RESERVATION_STATUS_NEW, ReservationDoc
from shared.crypto import verify_payment_signature
from shared.datetime_utils import Clock, utc_now
from shared.generators import generate_receipt_id
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class CommitResult:
    reservation: ReservationDoc
    created: bool


class PaymentVerifier:
    def __init__(
        self,
        reservations: ReservationRepository,
        identity: IdentityProvider,
        dispatcher: NotificationDispatcher,
        key_secret: str,
        clock: Clock = utc_now,
    ) -> None:
        self._reservations = reservations
        self._identity = identity
        self._dispatcher = dispatcher
        self._key_secret = key_secret
        self._clock = clock

    async def verify_and_commit(
        self,
        order_id: str,
        payment_id: str,
        signature: str,
        details: ReservationDetails,
    ) -> CommitResult:
        if not verify_payment_signature(order_id, payment_id, signature, self._key_secret):
            log.warning("payment_signature_invalid", order_id=order_id, payment_id=payment_id)
            raise InvalidSignatureError(
                "Invalid payment signature. Payment verification failed."
            )

        existing = await self._reservations.find_by_payment_id(payment_id)
        if existing is not None:
            log.info(
                "reservation_already_processed",
                payment_id=payment_id,
                reservation_id=str(existing.id),
            )
            return CommitResult(reservation=existing, created=False)

        reservation = ReservationDoc(
            user_id=details.user_id,
            property_id=details.property_id,
            property_name=details.property_name,
            tier_key=details.tier_key,
            tier_name=details.tier_name,
            occupancy_name=details.occupancy_name,
            amount_paid=details.amount_paid,
            currency=details.currency.upper(),
            payment_id=payment_id,
            order_id=order_id,
            signature=signature,
            status=RESERVATION_STATUS_NEW,
            created_at=self._clock(),
        )
        try:
            reservation = await self._reservations.insert(reservation)
        except DuplicateKeyError:
            winner = await self._reservations.find_by_payment_id(payment_id)
            if winner is None:
                raise
            log.info(
                "reservation_duplicate_insert_collapsed",
                payment_id=payment_id,
                reservation_id=str(winner.id),
            )
            return CommitResult(reservation=winner, created=False)

        log.info(
            "reservation_created",
            reservation_id=str(reservation.id),
            payment_id=payment_id,
            order_id=order_id,
            user_id=reservation.user_id,
            amount_paid=reservation.amount_paid,
            currency=reservation.currency,
        )
        await self._send_receipt(reservation)
        return CommitResult(reservation=reservation, created=True)

    async def _send_receipt(self, reservation: ReservationDoc) -> bool:
        try:
            user = await self._identity.get_user(reservation.user_id)
            sent = await self._dispatcher.send_receipt_email(
                user.email, user.name, reservation
            )
        except Exception as e:
            sent = False
            log.error(
                "receipt_email_error",
                reservation_id=str(reservation.id),
                user_id=reservation.user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        if not sent:
            log.warning(
                "receipt_not_sent",
                reservation_id=str(reservation.id),
                payment_id=reservation.payment_id,
            )
        return sent


class OrderService:
    """Creates gateway orders for the reservation fee."""

    def __init__(self, gateway: PaymentGateway) -> None:
        self._gateway = gateway

    async def create_order(
        self,
        amount_in_rupees: float,
        currency: str = "INR",
        notes: Optional[dict[str, str]] = None,
    ) -> GatewayOrder:
        if amount_in_rupees <= 0:
            raise ValidationError(
                "Valid amount in rupees is required.", field="amountInRupees"
            )
        amount_minor = int(round(amount_in_rupees * 100))
        merged_notes = {
            **(notes or {}),
            "system_generated": "true",
            "order_type": "reservation_fee",
        }
        receipt = generate_receipt_id()
        order = await self._gateway.create_order(
            amount_minor, currency.upper(), receipt, merged_notes
        )
        log.info(
            "payment_order_created",
            order_id=order.order_id,
            amount=order.amount,
            currency=order.currency,
            receipt=receipt,
        )
        return order
