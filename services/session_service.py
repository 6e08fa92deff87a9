"""
Session token issuer, the step after a successful login OTP.

Minting and single redemption of the secret belong to the identity store
(magic-token primitive). This component only enforces ordering: a secret
is issued for a consumed login challenge and nothing else. If minting
fails after the challenge was consumed, the attempt is over; the client
has to request a new code.
"""

from __future__ import annotations

from errors import AuthenticationError
from infrastructure.identity.protocol import IdentityProvider, SessionToken
from schemas.models.otp import OtpChallengeDoc, OtpPurpose
from shared.logging import get_logger

log = get_logger(__name__)


class SessionTokenIssuer:
    def __init__(self, identity: IdentityProvider) -> None:
        self._identity = identity

    async def issue_session_secret(self, challenge: OtpChallengeDoc) -> SessionToken:
        if not challenge.used or challenge.purpose is not OtpPurpose.LOGIN:
            raise AuthenticationError("A verified login code is required")

        try:
            token = await self._identity.create_session_token(challenge.user_id)
        except Exception as e:
            log.error(
                "session_secret_failed_after_otp_consumed",
                user_id=challenge.user_id,
                challenge_id=str(challenge.id),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        log.info(
            "session_secret_issued",
            user_id=challenge.user_id,
            challenge_id=str(challenge.id),
        )
        return token
