"""
Periodic OTP cleanup loop.

Runs OtpCleanupSweeper every ``interval_seconds`` until the stop event is
set. A failed pass is logged and retried on the next tick.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from services.cleanup_service import OtpCleanupSweeper, SweepResult
from shared.logging import get_logger

log = get_logger(__name__)


async def run_once(sweeper: OtpCleanupSweeper) -> Optional[SweepResult]:
    try:
        return await sweeper.sweep()
    except Exception as e:
        log.error("otp_sweep_failed", error=str(e), error_type=type(e).__name__)
        return None


async def run_forever(
    sweeper: OtpCleanupSweeper,
    interval_seconds: float,
    stop: Optional[asyncio.Event] = None,
) -> None:
    stop = stop or asyncio.Event()
    log.info("otp_sweeper_started", interval_seconds=interval_seconds)
    while not stop.is_set():
        await run_once(sweeper)
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass
    log.info("otp_sweeper_stopped")
