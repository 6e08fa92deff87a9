"""
Tenancy lifecycle endpoints (admin-facing).

POST /tenancy/onboard       - create tenancy, mark profile boarded, take a bed
POST /tenancy/offboard      - delete tenancy, reset profile
POST /tenancy/rent-payment  - record paid months on a tenancy
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_tenancy_coordinator
from schemas.dto.requests.tenancy import (
    OffboardRequest,
    OnboardRequest,
    RentPaymentRequest,
)
from schemas.dto.responses.common import ERROR_RESPONSES
from schemas.dto.responses.tenancy import (
    OffboardResponse,
    OnboardResponse,
    RentPaymentResponse,
)
from services.tenancy_service import OnboardCommand, TenancySagaCoordinator

router = APIRouter(prefix="/tenancy", tags=["tenancy"], responses=ERROR_RESPONSES)


@router.post("/onboard", response_model=OnboardResponse)
async def onboard(
    body: OnboardRequest,
    coordinator: TenancySagaCoordinator = Depends(get_tenancy_coordinator),
) -> OnboardResponse:
    result = await coordinator.onboard(OnboardCommand(**body.model_dump()))
    return OnboardResponse(
        tenancy_id=str(result.tenancy.id),
        created=result.created,
        inventory_updated=result.inventory_decremented,
    )


@router.post("/offboard", response_model=OffboardResponse)
async def offboard(
    body: OffboardRequest,
    coordinator: TenancySagaCoordinator = Depends(get_tenancy_coordinator),
) -> OffboardResponse:
    result = await coordinator.offboard(
        body.profile_id, user_id=body.user_id, tenancy_id=body.tenancy_id
    )
    return OffboardResponse(deleted_tenancy_id=result.deleted_tenancy_id)


@router.post("/rent-payment", response_model=RentPaymentResponse)
async def record_rent_payment(
    body: RentPaymentRequest,
    coordinator: TenancySagaCoordinator = Depends(get_tenancy_coordinator),
) -> RentPaymentResponse:
    tenancy = await coordinator.record_rent_payment(
        body.tenancy_id, body.payment_year, body.paid_months
    )
    return RentPaymentResponse(
        tenancy_id=str(tenancy.id),
        payment_year=tenancy.payment_year,
        paid_months=tenancy.paid_months,
    )
