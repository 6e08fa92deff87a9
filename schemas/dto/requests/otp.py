"""
Request DTOs for the OTP endpoints.

SendOtpRequest    - POST /otp/send
VerifyOtpRequest  - POST /otp/verify
"""

from __future__ import annotations

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from schemas.models.otp import OtpPurpose
from shared.validators import is_valid_email, is_valid_otp_code, normalize_email


def _clean_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = normalize_email(value)
    if not value:
        return None
    if not is_valid_email(value):
        raise ValueError("not a valid email address")
    return value


OptionalEmail = Annotated[Optional[str], AfterValidator(_clean_email)]


class SendOtpRequest(BaseModel):
    """Request body for POST /otp/send.

    ``login`` accepts either ``userId`` or ``email``; ``email-change``
    needs ``userId`` and ``newEmail``.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    user_id: Optional[str] = None
    email: OptionalEmail = None
    purpose: OtpPurpose = OtpPurpose.LOGIN
    new_email: OptionalEmail = None

    @model_validator(mode="after")
    def _check_subject(self) -> "SendOtpRequest":
        if self.purpose is OtpPurpose.EMAIL_CHANGE:
            if not self.user_id:
                raise ValueError("userId is required for email-change")
            if not self.new_email:
                raise ValueError("newEmail is required for email-change")
        elif not self.user_id and not self.email:
            raise ValueError("userId or email is required")
        return self


class VerifyOtpRequest(BaseModel):
    """Request body for POST /otp/verify.

    ``code`` is the 6-digit OTP; ``newEmail`` is present only when
    confirming an email change.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    user_id: str
    code: str
    new_email: OptionalEmail = None

    @field_validator("user_id")
    @classmethod
    def _user_id_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("userId must not be empty")
        return v

    @field_validator("code")
    @classmethod
    def _code_is_six_digits(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_otp_code(v):
            raise ValueError("OTP must be exactly 6 digits")
        return v
