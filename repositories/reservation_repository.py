"""Data access for the `reservations` collection."""

from __future__ import annotations

from typing import Optional

from schemas.models.reservation import ReservationDoc


class ReservationRepository:
    def __init__(self, collection) -> None:
        self._col = collection

    async def find_by_payment_id(self, payment_id: str) -> Optional[ReservationDoc]:
        doc = await self._col.find_one({"payment_id": payment_id})
        return ReservationDoc.from_mongo(doc)

    async def insert(self, reservation: ReservationDoc) -> ReservationDoc:
        """Insert *reservation*.

        Raises:
            pymongo.errors.DuplicateKeyError: a reservation with the same
                payment_id already exists (unique index).
        """
        result = await self._col.insert_one(reservation.to_mongo())
        return reservation.model_copy(update={"id": result.inserted_id})
