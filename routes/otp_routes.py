"""
OTP step-up endpoints.

POST /otp/send    - issue a code for login or email-change
POST /otp/verify  - consume a code; login returns a session secret
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_step_up_auth_service
from schemas.dto.requests.otp import SendOtpRequest, VerifyOtpRequest
from schemas.dto.responses.common import ERROR_RESPONSES
from schemas.dto.responses.otp import SendOtpResponse, VerifyOtpResponse
from services.auth_service import StepUpAuthService

router = APIRouter(prefix="/otp", tags=["otp"], responses=ERROR_RESPONSES)


@router.post("/send", response_model=SendOtpResponse)
async def send_otp(
    body: SendOtpRequest,
    service: StepUpAuthService = Depends(get_step_up_auth_service),
) -> SendOtpResponse:
    issued = await service.send_code(
        body.purpose,
        user_id=body.user_id,
        email=body.email,
        new_email=body.new_email,
    )
    return SendOtpResponse(
        user_id=issued.challenge.user_id, purpose=issued.challenge.purpose.value
    )


@router.post("/verify", response_model=VerifyOtpResponse, response_model_exclude_none=True)
async def verify_otp(
    body: VerifyOtpRequest,
    service: StepUpAuthService = Depends(get_step_up_auth_service),
) -> VerifyOtpResponse:
    outcome = await service.verify_code(body.user_id, body.code, new_email=body.new_email)
    return VerifyOtpResponse(
        user_id=outcome.user_id,
        session_secret=outcome.session_secret,
        email=outcome.email,
    )
