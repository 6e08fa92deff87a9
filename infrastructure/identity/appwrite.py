"""Appwrite admin-API implementation of IdentityProvider.

Every call is a blocking, timeout-bounded request through HttpClient.
Transport errors and non-2xx responses become ExternalServiceError;
404 becomes NotFoundError and 409 becomes ConflictError so callers can
tell "no such user" and "email taken" apart from an outage.
"""

from typing import Any, Optional

import httpx

from config import IdentitySettings
from errors import ConflictError, ExternalServiceError, NotFoundError
from infrastructure.http_client import HttpClient
from infrastructure.identity.protocol import IdentityUser, SessionToken
from shared.datetime_utils import parse_datetime
from shared.logging import get_logger

log = get_logger(__name__)

_SERVICE = "identity"


class AppwriteIdentityProvider:
    def __init__(self, settings: IdentitySettings, http_client: HttpClient) -> None:
        self._settings = settings
        self._http = http_client
        self._base = settings.identity_endpoint.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "X-Appwrite-Project": self._settings.identity_project_id,
            "X-Appwrite-Key": self._settings.identity_api_key,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        url = f"{self._base}{path}"
        try:
            call = getattr(self._http, method)
            response = await call(url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            log.error(
                "identity_request_failed",
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ExternalServiceError(
                "Identity service unavailable", service=_SERVICE
            ) from e

        if response.status_code == 404:
            raise NotFoundError("User not found")
        if response.status_code == 409:
            raise ConflictError("Identity store rejected the change as a duplicate")
        if response.status_code >= 400:
            log.error(
                "identity_request_rejected",
                path=path,
                status_code=response.status_code,
                response=response.text[:200],
            )
            raise ExternalServiceError(
                "Identity service rejected the request",
                service=_SERVICE,
                details={"status": response.status_code},
            )
        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _to_user(data: dict) -> IdentityUser:
        return IdentityUser(
            id=data["$id"],
            email=(data.get("email") or "").lower(),
            name=data.get("name") or None,
            email_verified=bool(data.get("emailVerification", False)),
        )

    async def get_user(self, user_id: str) -> IdentityUser:
        return self._to_user(await self._request("get", f"/users/{user_id}"))

    async def find_user_by_email(self, email: str) -> Optional[IdentityUser]:
        data = await self._request("get", "/users", params={"search": email})
        for candidate in data.get("users", []):
            if (candidate.get("email") or "").lower() == email:
                return self._to_user(candidate)
        return None

    async def create_session_token(self, user_id: str) -> SessionToken:
        data = await self._request("post", f"/users/{user_id}/tokens", json={})
        secret = data.get("secret")
        if not secret:
            raise ExternalServiceError(
                "Identity service returned no session secret", service=_SERVICE
            )
        return SessionToken(
            user_id=user_id,
            secret=secret,
            expires_at=parse_datetime(data.get("expire")),
        )

    async def update_email(self, user_id: str, email: str) -> None:
        await self._request("patch", f"/users/{user_id}/email", json={"email": email})

    async def set_email_verified(self, user_id: str, verified: bool = True) -> None:
        await self._request(
            "patch",
            f"/users/{user_id}/verification",
            json={"emailVerification": verified},
        )
