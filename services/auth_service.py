"""
Step-up authentication flows built on the OTP registry.

send_code:   resolve the subject, run email-change pre-checks, issue an OTP.
verify_code: consume the OTP, then either mint a session secret (login) or
             apply the email change to the identity store and mirror it
             into the profile (email-change).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from errors import ConflictError, NotFoundError, ValidationError
from infrastructure.identity.protocol import IdentityProvider
from repositories.profile_repository import ProfileRepository
from schemas.models.otp import OtpPurpose
from services.otp_service import IssuedOtp, OtpRegistry
from services.session_service import SessionTokenIssuer
from shared.logging import get_logger
from shared.validators import is_valid_email, normalize_email

log = get_logger(__name__)


@dataclass(frozen=True)
class VerifyOutcome:
    user_id: str
    purpose: OtpPurpose
    session_secret: Optional[str] = None
    email: Optional[str] = None


class StepUpAuthService:
    def __init__(
        self,
        registry: OtpRegistry,
        session_issuer: SessionTokenIssuer,
        identity: IdentityProvider,
        profiles: ProfileRepository,
    ) -> None:
        self._registry = registry
        self._sessions = session_issuer
        self._identity = identity
        self._profiles = profiles

    async def send_code(
        self,
        purpose: OtpPurpose,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        new_email: Optional[str] = None,
    ) -> IssuedOtp:
        if user_id is None:
            if purpose is not OtpPurpose.LOGIN or not email:
                raise ValidationError("userId is required", field="userId")
            user = await self._identity.find_user_by_email(normalize_email(email))
            if user is None:
                raise NotFoundError("User not found")
            user_id = user.id

        if purpose is OtpPurpose.EMAIL_CHANGE:
            if not new_email:
                raise ValidationError(
                    "newEmail is required for email-change", field="newEmail"
                )
            new_email = normalize_email(new_email)
            if not is_valid_email(new_email):
                raise ValidationError("newEmail is not a valid email", field="newEmail")
            if await self._profiles.email_in_use(new_email, exclude_user_id=user_id):
                raise ConflictError("That email is already in use.", field="newEmail")

        return await self._registry.issue(user_id, purpose, bound_email=new_email)

    async def verify_code(
        self, user_id: str, code: str, new_email: Optional[str] = None
    ) -> VerifyOutcome:
        challenge = await self._registry.verify(user_id, code, bound_email=new_email)

        if challenge.purpose is OtpPurpose.LOGIN:
            token = await self._sessions.issue_session_secret(challenge)
            return VerifyOutcome(
                user_id=user_id,
                purpose=challenge.purpose,
                session_secret=token.secret,
            )

        return await self._apply_email_change(user_id, challenge.bound_email)

    async def _apply_email_change(self, user_id: str, new_email: str) -> VerifyOutcome:
        # Primary: the identity store is the system of record for the email
        await self._identity.update_email(user_id, new_email)
        log.info("identity_email_updated", user_id=user_id)

        try:
            await self._identity.set_email_verified(user_id, True)
        except Exception as e:
            log.warning(
                "email_verification_flag_not_set",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )

        try:
            mirrored = await self._profiles.set_email_for_user(user_id, new_email)
        except Exception as e:
            log.error(
                "profile_email_mirror_failed",
                inconsistency="stale_profile_email",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        else:
            if not mirrored:
                log.warning("profile_email_mirror_skipped", user_id=user_id, reason="no_profile")

        return VerifyOutcome(
            user_id=user_id, purpose=OtpPurpose.EMAIL_CHANGE, email=new_email
        )
