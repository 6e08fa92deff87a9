"""IdentityProvider protocol: services depend on this, not the concrete implementation."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass(frozen=True)
class IdentityUser:
    id: str
    email: str
    name: Optional[str] = None
    email_verified: bool = False


@dataclass(frozen=True)
class SessionToken:
    """A redeemable secret; single redemption is enforced by the identity store."""

    user_id: str
    secret: str
    expires_at: Optional[datetime] = None


class IdentityProvider(Protocol):
    async def get_user(self, user_id: str) -> IdentityUser: ...

    async def find_user_by_email(self, email: str) -> Optional[IdentityUser]: ...

    async def create_session_token(self, user_id: str) -> SessionToken: ...

    async def update_email(self, user_id: str, email: str) -> None: ...

    async def set_email_verified(self, user_id: str, verified: bool = True) -> None: ...
