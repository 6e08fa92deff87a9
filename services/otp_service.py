"""
OTP registry: issue and verify six-digit one-time codes.

Issuance is non-invalidating: a new challenge never retires older unused
ones for the same subject, so several codes may be valid at once until
their own expiry. Verification picks the newest unused challenge matching
(user, code[, bound email]) and consumes it with a conditional update on
used=false; when two verifies race on the same row only one update
matches and the other caller gets AlreadyUsedError.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from errors import (
    AlreadyUsedError,
    ExpiredError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from infrastructure.email.protocol import NotificationDispatcher
from infrastructure.identity.protocol import IdentityProvider
from infrastructure.throttle.otp_throttle import OtpSendThrottle
from repositories.otp_repository import OtpChallengeRepository
from schemas.models.otp import OtpChallengeDoc, OtpPurpose, OtpState
from shared.crypto import hash_token
from shared.datetime_utils import Clock, utc_now
from shared.generators import generate_otp_code
from shared.logging import get_logger
from shared.validators import is_valid_otp_code, normalize_email

log = get_logger(__name__)

OTP_TTL_SECONDS = 300


@dataclass(frozen=True)
class IssuedOtp:
    challenge: OtpChallengeDoc
    recipient: str
    email_sent: bool


class OtpRegistry:
    def __init__(
        self,
        repository: OtpChallengeRepository,
        identity: IdentityProvider,
        dispatcher: NotificationDispatcher,
        throttle: Optional[OtpSendThrottle] = None,
        ttl_seconds: int = OTP_TTL_SECONDS,
        clock: Clock = utc_now,
        code_generator: Callable[[], str] = generate_otp_code,
    ) -> None:
        self._repo = repository
        self._identity = identity
        self._dispatcher = dispatcher
        self._throttle = throttle
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._generate_code = code_generator

    async def issue(
        self,
        user_id: str,
        purpose: OtpPurpose,
        bound_email: Optional[str] = None,
    ) -> IssuedOtp:
        """Persist a new challenge and email its code.

        The code goes to the account's current email for ``login`` and to
        *bound_email* for ``email-change``. Delivery is fire-and-forget: a
        failed send is logged and reported in ``email_sent`` but the
        challenge stays valid.

        Raises:
            ValidationError: email-change without a bound email.
            NotFoundError: the identity store has no such user.
            RateLimitError: too many sends for this subject in the window.
        """
        if purpose.requires_bound_email:
            if not bound_email:
                raise ValidationError(
                    "newEmail is required for email-change", field="newEmail"
                )
            bound_email = normalize_email(bound_email)
        else:
            bound_email = None

        user = await self._identity.get_user(user_id)
        recipient = bound_email if bound_email else user.email
        if not recipient:
            raise NotFoundError("Account has no email address to send the code to")

        if self._throttle is not None and not await self._throttle.allow(
            user_id, purpose.value
        ):
            log.warning("otp_send_rate_limited", user_id=user_id, purpose=purpose.value)
            raise RateLimitError("Too many codes requested. Please try again later.")

        code = self._generate_code()
        now = self._clock()
        challenge = await self._repo.insert(
            OtpChallengeDoc(
                user_id=user_id,
                purpose=purpose,
                bound_email=bound_email,
                code_hash=hash_token(code),
                created_at=now,
                expires_at=now + self._ttl,
            )
        )
        log.info(
            "otp_issued",
            user_id=user_id,
            challenge_id=str(challenge.id),
            purpose=purpose.value,
            expires_at=challenge.expires_at.isoformat(),
        )

        email_sent = await self._dispatcher.send_otp_email(
            recipient,
            user.name,
            code,
            purpose,
            ttl_minutes=int(self._ttl.total_seconds() // 60),
        )
        if not email_sent:
            log.warning(
                "otp_email_not_sent",
                user_id=user_id,
                challenge_id=str(challenge.id),
                purpose=purpose.value,
            )
        return IssuedOtp(challenge=challenge, recipient=recipient, email_sent=email_sent)

    async def verify(
        self,
        user_id: str,
        code: str,
        bound_email: Optional[str] = None,
    ) -> OtpChallengeDoc:
        """Consume the newest matching challenge.

        A *bound_email* selects ``email-change`` challenges bound to that
        address; without one only ``login`` challenges match.

        Raises:
            ValidationError: *code* is not exactly six ASCII digits.
            NotFoundError: no unused challenge matches.
            ExpiredError: the matching challenge is past its expiry.
            AlreadyUsedError: the challenge was consumed first by another call.
        """
        if not is_valid_otp_code(code):
            raise ValidationError("OTP must be exactly 6 digits", field="code")

        purpose = OtpPurpose.EMAIL_CHANGE if bound_email else OtpPurpose.LOGIN
        if bound_email:
            bound_email = normalize_email(bound_email)
        code_hash = hash_token(code)

        challenge = await self._repo.find_latest_unused(
            user_id, code_hash, purpose, bound_email
        )
        if challenge is None:
            if await self._repo.has_used_match(user_id, code_hash, purpose, bound_email):
                raise AlreadyUsedError("This code has already been used")
            log.info("otp_verify_no_match", user_id=user_id, purpose=purpose.value)
            raise NotFoundError("Invalid code")

        now = self._clock()
        if challenge.state(now) is OtpState.EXPIRED:
            log.info(
                "otp_verify_expired",
                user_id=user_id,
                challenge_id=str(challenge.id),
            )
            raise ExpiredError("This code has expired. Please request a new one.")

        if not await self._repo.mark_used(challenge.id, now):
            log.info(
                "otp_verify_lost_race",
                user_id=user_id,
                challenge_id=str(challenge.id),
            )
            raise AlreadyUsedError("This code has already been used")

        log.info(
            "otp_verified",
            user_id=user_id,
            challenge_id=str(challenge.id),
            purpose=purpose.value,
        )
        return challenge.model_copy(update={"used": True, "used_at": now})
