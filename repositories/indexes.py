"""Collection names and index definitions for every collection this service owns."""

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING

from schemas.models.tenancy import TENANCY_STATUS_ACTIVE
from shared.logging import get_logger

log = get_logger(__name__)

OTP_CHALLENGES = "otp_challenges"
RESERVATIONS = "reservations"
TENANCIES = "tenancies"
PROFILES = "profiles"


async def ensure_indexes(db) -> None:
    """Create the indexes the concurrency model depends on.

    Duplicate payment callbacks (unique payment_id) and concurrent onboards
    (one Active tenancy per user) surface as DuplicateKeyError. Failures are
    logged and re-raised; the app does not start without these indexes.
    """
    try:
        await db[OTP_CHALLENGES].create_index(
            [
                ("user_id", ASCENDING),
                ("used", ASCENDING),
                ("created_at", DESCENDING),
            ]
        )
        await db[OTP_CHALLENGES].create_index([("expires_at", ASCENDING)])
        await db[OTP_CHALLENGES].create_index([("used", ASCENDING)])

        await db[RESERVATIONS].create_index(
            [("payment_id", ASCENDING)], unique=True
        )
        await db[RESERVATIONS].create_index([("user_id", ASCENDING)])

        await db[TENANCIES].create_index(
            [("user_id", ASCENDING), ("status", ASCENDING)]
        )
        # At most one Active tenancy per user; concurrent onboards collide here
        await db[TENANCIES].create_index(
            [("user_id", ASCENDING)],
            unique=True,
            partialFilterExpression={"status": TENANCY_STATUS_ACTIVE},
            name="one_active_tenancy_per_user",
        )

        await db[PROFILES].create_index(
            [("user_id", ASCENDING)], unique=True, sparse=True
        )
        await db[PROFILES].create_index([("email", ASCENDING)])
    except Exception as e:
        log.error("ensure_indexes_failed", error=str(e), error_type=type(e).__name__)
        raise
    log.info("indexes_ensured")
