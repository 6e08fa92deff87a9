"""Unit tests for PaymentVerifier and OrderService."""

import asyncio

import pytest

from errors import InvalidSignatureError, ValidationError
from infrastructure.identity.protocol import IdentityUser
from schemas.dto.requests.payment import ReservationDetails
from services.payment_service import OrderService, PaymentVerifier
from shared.crypto import sign_payment
from tests.fakes import (
    FakeClock,
    FakeDispatcher,
    FakeGateway,
    FakeIdentity,
    InMemoryReservationRepository,
)

SECRET = "rzp_test_secret"


def _details(**overrides) -> ReservationDetails:
    base = dict(
        userId="U1",
        propertyId="prop_1",
        propertyName="Hubode Koramangala",
        selectedTierKey="tier_a",
        selectedTierName="Premium",
        occupancyName="Double",
        amountPaid=2000,
        currency="inr",
    )
    base.update(overrides)
    return ReservationDetails.model_validate(base)


@pytest.fixture
def reservations():
    return InMemoryReservationRepository()


@pytest.fixture
def identity():
    return FakeIdentity(IdentityUser(id="U1", email="u1@example.com", name="Asha"))


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def verifier(reservations, identity, dispatcher):
    return PaymentVerifier(reservations, identity, dispatcher, SECRET, clock=FakeClock())


class TestVerifyAndCommit:
    async def test_creates_reservation_once(self, verifier, reservations, dispatcher):
        sig = sign_payment("order_1", "pay_1", SECRET)

        first = await verifier.verify_and_commit("order_1", "pay_1", sig, _details())
        assert first.created is True
        assert first.reservation.status == "New"
        assert first.reservation.currency == "INR"
        assert first.reservation.tier_key == "tier_a"
        assert len(dispatcher.receipts) == 1

        second = await verifier.verify_and_commit("order_1", "pay_1", sig, _details())
        assert second.created is False
        assert second.reservation.id == first.reservation.id
        assert len(reservations.by_payment_id) == 1
        assert len(dispatcher.receipts) == 1

    async def test_invalid_signature_persists_nothing(
        self, verifier, reservations, dispatcher
    ):
        with pytest.raises(InvalidSignatureError):
            await verifier.verify_and_commit("order_1", "pay_1", "deadbeef", _details())
        assert reservations.by_payment_id == {}
        assert reservations.insert_calls == 0
        assert dispatcher.receipts == []

    async def test_signature_for_other_payment_rejected(self, verifier):
        sig = sign_payment("order_1", "pay_2", SECRET)
        with pytest.raises(InvalidSignatureError):
            await verifier.verify_and_commit("order_1", "pay_1", sig, _details())

    async def test_empty_key_secret_rejects_everything(
        self, reservations, identity, dispatcher
    ):
        verifier = PaymentVerifier(reservations, identity, dispatcher, "")
        with pytest.raises(InvalidSignatureError):
            await verifier.verify_and_commit(
                "order_1", "pay_1", sign_payment("order_1", "pay_1", ""), _details()
            )

    async def test_racing_callbacks_collapse_to_one(
        self, verifier, reservations, dispatcher
    ):
        sig = sign_payment("order_1", "pay_1", SECRET)
        a, b = await asyncio.gather(
            verifier.verify_and_commit("order_1", "pay_1", sig, _details()),
            verifier.verify_and_commit("order_1", "pay_1", sig, _details()),
        )
        assert {a.created, b.created} == {True, False}
        assert a.reservation.id == b.reservation.id
        assert reservations.insert_calls == 2
        assert len(reservations.by_payment_id) == 1
        assert len(dispatcher.receipts) == 1

    async def test_receipt_failure_does_not_fail_commit(self, reservations, identity):
        dispatcher = FakeDispatcher(succeed=False)
        verifier = PaymentVerifier(reservations, identity, dispatcher, SECRET)
        sig = sign_payment("order_1", "pay_1", SECRET)
        result = await verifier.verify_and_commit("order_1", "pay_1", sig, _details())
        assert result.created is True
        assert "pay_1" in reservations.by_payment_id

    async def test_identity_failure_does_not_fail_commit(
        self, verifier, reservations, identity, dispatcher
    ):
        identity.fail_get_user = True
        sig = sign_payment("order_1", "pay_1", SECRET)
        result = await verifier.verify_and_commit("order_1", "pay_1", sig, _details())
        assert result.created is True
        assert dispatcher.receipts == []


class TestOrderService:
    async def test_converts_to_minor_units(self):
        gateway = FakeGateway()
        order = await OrderService(gateway).create_order(999.5)
        assert order.amount == 99950
        assert order.currency == "INR"
        assert gateway.calls[0]["receipt"].startswith("rcpt_")

    async def test_marks_notes_as_system_generated(self):
        gateway = FakeGateway()
        await OrderService(gateway).create_order(500, notes={"propertyId": "prop_1"})
        assert gateway.calls[0]["notes"] == {
            "propertyId": "prop_1",
            "system_generated": "true",
            "order_type": "reservation_fee",
        }

    @pytest.mark.parametrize("amount", [0, -10])
    async def test_rejects_non_positive_amount(self, amount):
        gateway = FakeGateway()
        with pytest.raises(ValidationError):
            await OrderService(gateway).create_order(amount)
        assert gateway.calls == []
