"""
Daily rent reminder loop.

Runs RentReminderService every ``interval_seconds`` until the stop event is
set; the service itself decides whether today is a reminder day. A failed
run is logged and retried on the next tick.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from services.rent_reminder_service import ReminderRunResult, RentReminderService
from shared.logging import get_logger

log = get_logger(__name__)


async def run_once(service: RentReminderService) -> Optional[ReminderRunResult]:
    try:
        return await service.run()
    except Exception as e:
        log.error("rent_reminders_failed", error=str(e), error_type=type(e).__name__)
        return None


async def run_forever(
    service: RentReminderService,
    interval_seconds: float,
    stop: Optional[asyncio.Event] = None,
) -> None:
    stop = stop or asyncio.Event()
    log.info("rent_reminder_worker_started", interval_seconds=interval_seconds)
    while not stop.is_set():
        await run_once(service)
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass
    log.info("rent_reminder_worker_stopped")
