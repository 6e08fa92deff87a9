"""Unit tests for StepUpAuthService: login and email-change flows."""

import pytest

from errors import ConflictError, NotFoundError, ValidationError
from infrastructure.identity.protocol import IdentityUser
from schemas.models.otp import OtpPurpose
from schemas.models.profile import ProfileDoc
from services.auth_service import StepUpAuthService
from services.otp_service import OtpRegistry
from services.session_service import SessionTokenIssuer
from tests.fakes import (
    FakeClock,
    FakeDispatcher,
    FakeIdentity,
    InMemoryOtpRepository,
    InMemoryProfileRepository,
)


@pytest.fixture
def identity():
    return FakeIdentity(
        IdentityUser(id="U1", email="u1@example.com", name="Asha"),
        IdentityUser(id="U2", email="taken@example.com"),
    )


@pytest.fixture
def profiles():
    return InMemoryProfileRepository(
        ProfileDoc(_id="U1", user_id="U1", email="u1@example.com"),
        ProfileDoc(_id="U2", user_id="U2", email="taken@example.com"),
    )


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def service(identity, profiles, dispatcher):
    registry = OtpRegistry(
        InMemoryOtpRepository(), identity, dispatcher, clock=FakeClock()
    )
    return StepUpAuthService(registry, SessionTokenIssuer(identity), identity, profiles)


class TestSendCode:
    async def test_login_by_user_id(self, service, dispatcher):
        issued = await service.send_code(OtpPurpose.LOGIN, user_id="U1")
        assert issued.challenge.user_id == "U1"
        assert dispatcher.otp_sent[-1]["email"] == "u1@example.com"

    async def test_login_by_email_resolves_user(self, service):
        issued = await service.send_code(OtpPurpose.LOGIN, email=" U1@Example.com ")
        assert issued.challenge.user_id == "U1"

    async def test_login_by_unknown_email(self, service):
        with pytest.raises(NotFoundError):
            await service.send_code(OtpPurpose.LOGIN, email="ghost@example.com")

    async def test_subject_required(self, service):
        with pytest.raises(ValidationError):
            await service.send_code(OtpPurpose.LOGIN)

    async def test_email_change_requires_user_id(self, service):
        with pytest.raises(ValidationError):
            await service.send_code(
                OtpPurpose.EMAIL_CHANGE, email="u1@example.com", new_email="n@example.com"
            )

    async def test_email_change_requires_new_email(self, service):
        with pytest.raises(ValidationError):
            await service.send_code(OtpPurpose.EMAIL_CHANGE, user_id="U1")

    async def test_email_change_rejects_malformed_email(self, service):
        with pytest.raises(ValidationError):
            await service.send_code(
                OtpPurpose.EMAIL_CHANGE, user_id="U1", new_email="not-an-email"
            )

    async def test_email_change_rejects_email_in_use(self, service, dispatcher):
        with pytest.raises(ConflictError):
            await service.send_code(
                OtpPurpose.EMAIL_CHANGE, user_id="U1", new_email="Taken@example.com"
            )
        assert dispatcher.otp_sent == []

    async def test_email_change_to_own_email_is_allowed(self, service):
        issued = await service.send_code(
            OtpPurpose.EMAIL_CHANGE, user_id="U1", new_email="u1@example.com"
        )
        assert issued.recipient == "u1@example.com"


class TestVerifyCode:
    async def test_login_returns_session_secret(self, service, dispatcher):
        await service.send_code(OtpPurpose.LOGIN, user_id="U1")
        outcome = await service.verify_code("U1", dispatcher.last_code())
        assert outcome.purpose is OtpPurpose.LOGIN
        assert outcome.session_secret == "secret-1"
        assert outcome.email is None

    async def test_email_change_updates_identity_and_profile(
        self, service, dispatcher, identity, profiles
    ):
        await service.send_code(
            OtpPurpose.EMAIL_CHANGE, user_id="U1", new_email="new@example.com"
        )
        code = dispatcher.last_code(OtpPurpose.EMAIL_CHANGE)
        outcome = await service.verify_code("U1", code, new_email="new@example.com")

        assert outcome.email == "new@example.com"
        assert outcome.session_secret is None
        assert identity.users["U1"].email == "new@example.com"
        assert identity.verified["U1"] is True
        assert profiles.rows["U1"].email == "new@example.com"

    async def test_verification_flag_failure_tolerated(
        self, service, dispatcher, identity
    ):
        await service.send_code(
            OtpPurpose.EMAIL_CHANGE, user_id="U1", new_email="new@example.com"
        )
        identity.fail_verification_flag = True
        outcome = await service.verify_code(
            "U1", dispatcher.last_code(OtpPurpose.EMAIL_CHANGE), new_email="new@example.com"
        )
        assert outcome.email == "new@example.com"
        assert identity.users["U1"].email == "new@example.com"

    async def test_profile_mirror_failure_tolerated(
        self, service, dispatcher, identity, profiles
    ):
        await service.send_code(
            OtpPurpose.EMAIL_CHANGE, user_id="U1", new_email="new@example.com"
        )
        profiles.fail_email_mirror = True
        outcome = await service.verify_code(
            "U1", dispatcher.last_code(OtpPurpose.EMAIL_CHANGE), new_email="new@example.com"
        )
        assert outcome.email == "new@example.com"
        assert profiles.rows["U1"].email == "u1@example.com"

    async def test_identity_rejection_propagates(self, service, dispatcher, identity):
        await service.send_code(
            OtpPurpose.EMAIL_CHANGE, user_id="U1", new_email="new@example.com"
        )
        identity.email_conflict = True
        with pytest.raises(ConflictError):
            await service.verify_code(
                "U1",
                dispatcher.last_code(OtpPurpose.EMAIL_CHANGE),
                new_email="new@example.com",
            )
