"""
OTP cleanup sweeper.

Deletes challenges that are used, or that expired more than the retention
window ago, in bounded pages ordered by _id. A failed delete is logged and
skipped; the cursor still advances past it, so a stuck row cannot stall the
sweep.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from repositories.otp_repository import OtpChallengeRepository
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger

log = get_logger(__name__)

RETENTION_SECONDS = 24 * 60 * 60
PAGE_SIZE = 100


@dataclass
class SweepResult:
    deleted: int = 0
    failed: int = 0
    pages: int = 0


class OtpCleanupSweeper:
    def __init__(
        self,
        repository: OtpChallengeRepository,
        retention_seconds: int = RETENTION_SECONDS,
        page_size: int = PAGE_SIZE,
        clock: Clock = utc_now,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._repo = repository
        self._retention = timedelta(seconds=retention_seconds)
        self._page_size = page_size
        self._clock = clock

    async def sweep(self) -> SweepResult:
        result = SweepResult()
        cutoff = self._clock() - self._retention
        after_id = None

        while True:
            ids = await self._repo.find_sweepable_ids(cutoff, after_id, self._page_size)
            if not ids:
                break
            result.pages += 1
            for challenge_id in ids:
                try:
                    if await self._repo.delete(challenge_id):
                        result.deleted += 1
                except Exception as e:
                    result.failed += 1
                    log.error(
                        "otp_sweep_delete_failed",
                        challenge_id=str(challenge_id),
                        error=str(e),
                        error_type=type(e).__name__,
                    )
            after_id = ids[-1]
            if len(ids) < self._page_size:
                break

        log.info(
            "otp_sweep_complete",
            deleted=result.deleted,
            failed=result.failed,
            pages=result.pages,
            cutoff=cutoff.isoformat(),
        )
        return result
