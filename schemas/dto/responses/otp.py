"""
Response DTOs for the OTP endpoints.

SendOtpResponse    - POST /otp/send  (200)
VerifyOtpResponse  - POST /otp/verify  (200)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SendOtpResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    ok: bool = True
    user_id: str
    purpose: str


class VerifyOtpResponse(BaseModel):
    """``session_secret`` is set for login only; ``email`` for email-change only."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    ok: bool = True
    user_id: str
    session_secret: Optional[str] = None
    email: Optional[str] = None
