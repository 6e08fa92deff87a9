"""
FastAPI dependency providers.

Long-lived clients (MongoDB, Redis, HTTP adapters) are created once in the
app lifespan and stored on app.state. Repositories and services are cheap
wrappers around them and are built per request here, so tests can swap any
layer with app.dependency_overrides.
"""

from __future__ import annotations

from fastapi import Depends, Request

from config import AppSettings
from infrastructure.throttle.otp_throttle import OtpSendThrottle
from repositories.indexes import OTP_CHALLENGES, PROFILES, RESERVATIONS, TENANCIES
from repositories.otp_repository import OtpChallengeRepository
from repositories.profile_repository import ProfileRepository
from repositories.reservation_repository import ReservationRepository
from repositories.tenancy_repository import TenancyRepository
from services.auth_service import StepUpAuthService
from services.otp_service import OtpRegistry
from services.payment_service import OrderService, PaymentVerifier
from services.session_service import SessionTokenIssuer
from services.tenancy_service import TenancySagaCoordinator


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


async def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


async def get_rate_limit_storage(request: Request):
    """Return the OTP throttle storage from app.state (None without Redis)."""
    return request.app.state.rate_limit_storage


def get_identity(request: Request):
    return request.app.state.identity


def get_inventory(request: Request):
    return request.app.state.inventory


def get_dispatcher(request: Request):
    return request.app.state.dispatcher


def get_payment_gateway(request: Request):
    return request.app.state.payment_gateway


# ── Repositories ─────────────────────────────────────────────────────────────


async def get_otp_repository(db=Depends(get_db)) -> OtpChallengeRepository:
    return OtpChallengeRepository(db[OTP_CHALLENGES])


async def get_reservation_repository(db=Depends(get_db)) -> ReservationRepository:
    return ReservationRepository(db[RESERVATIONS])


async def get_tenancy_repository(db=Depends(get_db)) -> TenancyRepository:
    return TenancyRepository(db[TENANCIES])


async def get_profile_repository(db=Depends(get_db)) -> ProfileRepository:
    return ProfileRepository(db[PROFILES])


# ── Services ─────────────────────────────────────────────────────────────────


async def get_otp_registry(
    repository: OtpChallengeRepository = Depends(get_otp_repository),
    identity=Depends(get_identity),
    dispatcher=Depends(get_dispatcher),
    limit_storage=Depends(get_rate_limit_storage),
    settings: AppSettings = Depends(get_settings),
) -> OtpRegistry:
    throttle = OtpSendThrottle(
        limit_storage,
        max_sends=settings.otp.otp_max_sends_per_window,
        window_seconds=settings.otp.otp_send_window_seconds,
    )
    return OtpRegistry(
        repository,
        identity,
        dispatcher,
        throttle=throttle,
        ttl_seconds=settings.otp.otp_ttl_seconds,
    )


async def get_step_up_auth_service(
    registry: OtpRegistry = Depends(get_otp_registry),
    identity=Depends(get_identity),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> StepUpAuthService:
    return StepUpAuthService(registry, SessionTokenIssuer(identity), identity, profiles)


async def get_payment_verifier(
    reservations: ReservationRepository = Depends(get_reservation_repository),
    identity=Depends(get_identity),
    dispatcher=Depends(get_dispatcher),
    settings: AppSettings = Depends(get_settings),
) -> PaymentVerifier:
    return PaymentVerifier(
        reservations, identity, dispatcher, settings.payment.payment_key_secret
    )


async def get_order_service(gateway=Depends(get_payment_gateway)) -> OrderService:
    return OrderService(gateway)


async def get_tenancy_coordinator(
    tenancies: TenancyRepository = Depends(get_tenancy_repository),
    profiles: ProfileRepository = Depends(get_profile_repository),
    inventory=Depends(get_inventory),
) -> TenancySagaCoordinator:
    return TenancySagaCoordinator(tenancies, profiles, inventory)
