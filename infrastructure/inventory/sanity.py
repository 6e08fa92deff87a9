"""Sanity content-lake implementation of InventoryStore.

Bed counts live on the property document as
``roomTypes[].tiers[].bedsLeft``; a decrement is a single ``dec`` patch
mutation addressed by the tier's ``_key``.
"""

import httpx

from config import InventorySettings
from errors import ExternalServiceError
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_SERVICE = "inventory"


def beds_left_path(tier_key: str) -> str:
    return f'roomTypes[].tiers[_key=="{tier_key}"].bedsLeft'


class SanityInventoryStore:
    def __init__(self, settings: InventorySettings, http_client: HttpClient) -> None:
        self._settings = settings
        self._http = http_client

    @property
    def mutate_url(self) -> str:
        s = self._settings
        return (
            f"https://{s.inventory_project_id}.api.sanity.io/"
            f"v{s.inventory_api_version}/data/mutate/{s.inventory_dataset}"
        )

    async def decrement_beds(self, property_id: str, tier_key: str) -> None:
        if not self._settings.inventory_write_token:
            raise ExternalServiceError(
                "Inventory write token not configured", service=_SERVICE
            )
        payload = {
            "mutations": [
                {"patch": {"id": property_id, "dec": {beds_left_path(tier_key): 1}}}
            ]
        }
        headers = {"Authorization": f"Bearer {self._settings.inventory_write_token}"}
        try:
            response = await self._http.post(
                self.mutate_url,
                json=payload,
                headers=headers,
                params={"autoGenerateArrayKeys": "false"},
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Inventory request failed: {type(e).__name__}", service=_SERVICE
            ) from e
        if response.status_code >= 400:
            raise ExternalServiceError(
                "Inventory service rejected the decrement",
                service=_SERVICE,
                details={"status": response.status_code, "body": response.text[:200]},
            )
        log.info("inventory_beds_decremented", property_id=property_id, tier_key=tier_key)
