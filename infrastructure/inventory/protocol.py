"""InventoryStore protocol: services depend on this, not the concrete implementation."""

from typing import Protocol


class InventoryStore(Protocol):
    async def decrement_beds(self, property_id: str, tier_key: str) -> None: ...
