"""Fixed-window limit on OTP issuance per (purpose, user), backed by `limits`.

Storage is optional: with none configured every send is allowed. A storage
error also allows the send and is logged.
"""

from typing import Optional

from limits import RateLimitItemPerSecond
from limits.aio.storage import RedisStorage, Storage
from limits.aio.strategies import FixedWindowRateLimiter

from shared.logging import get_logger

log = get_logger(__name__)

NAMESPACE = "otp_send"


def redis_limit_storage(redis_uri: str) -> RedisStorage:
    """Async limits storage on the same Redis the app is configured with."""
    return RedisStorage(f"async+{redis_uri}", implementation="redispy")


class OtpSendThrottle:
    def __init__(
        self,
        storage: Optional[Storage],
        max_sends: int = 5,
        window_seconds: int = 900,
    ) -> None:
        self.max_sends = max_sends
        self.window_seconds = window_seconds
        self._item = RateLimitItemPerSecond(max_sends, window_seconds)
        self._limiter = FixedWindowRateLimiter(storage) if storage is not None else None

    async def allow(self, user_id: str, purpose: str) -> bool:
        """Count this send and report whether it is within the window budget."""
        if self._limiter is None:
            return True
        try:
            allowed = await self._limiter.hit(self._item, NAMESPACE, purpose, user_id)
        except Exception as e:
            log.warning(
                "otp_throttle_error",
                user_id=user_id,
                purpose=purpose,
                error=str(e),
                error_type=type(e).__name__,
            )
            return True
        return allowed
