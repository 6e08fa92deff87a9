"""
OTP challenge document model.

Maps to the `otp_challenges` MongoDB collection.

One document per issued code. code_hash stores SHA-256(code); the plain
OTP is never stored. A challenge moves through a small persisted state
machine: ``issued → used`` (conditional update on used=false) or
``issued → expired`` (derived from expires_at; the sweeper deletes it).
Issuing a new challenge never touches older unused ones for the subject.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc


class OtpPurpose(str, Enum):
    LOGIN = "login"
    EMAIL_CHANGE = "email-change"

    @property
    def requires_bound_email(self) -> bool:
        return self is OtpPurpose.EMAIL_CHANGE


class OtpState(str, Enum):
    ISSUED = "issued"
    USED = "used"
    EXPIRED = "expired"


class OtpChallengeDoc(MongoBaseModel):
    """Document model for the `otp_challenges` collection."""

    user_id: str
    purpose: OtpPurpose
    bound_email: Optional[str] = None
    code_hash: str
    created_at: datetime
    expires_at: datetime
    used: bool = False
    used_at: Optional[datetime] = None

    def state(self, now: datetime) -> OtpState:
        if self.used:
            return OtpState.USED
        if ensure_utc(now) > ensure_utc(self.expires_at):
            return OtpState.EXPIRED
        return OtpState.ISSUED

    def to_mongo(self) -> dict:
        data = super().to_mongo()
        data["purpose"] = self.purpose.value
        return data
