#!/usr/bin/env python3
"""
Background worker runner.

    python start_worker.py                          # OTP cleanup, loop forever
    python start_worker.py --once                   # single OTP sweep, e.g. from cron
    python start_worker.py --job rent-reminders     # daily rent reminders
    python start_worker.py --job rent-reminders --once
"""

import argparse
import asyncio
import sys

from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from infrastructure.email.zeptomail import ZeptoMailDispatcher
from infrastructure.http_client import HttpClient
from repositories.indexes import OTP_CHALLENGES, PROFILES, TENANCIES
from repositories.otp_repository import OtpChallengeRepository
from repositories.profile_repository import ProfileRepository
from repositories.tenancy_repository import TenancyRepository
from services.cleanup_service import OtpCleanupSweeper
from services.rent_reminder_service import RentReminderService
from shared.logging import get_logger
from workers import otp_sweeper, rent_reminders

log = get_logger("start_worker")

JOBS = ("otp-sweep", "rent-reminders")


async def _run_otp_sweep(settings: AppSettings, db, once: bool) -> int:
    sweeper = OtpCleanupSweeper(
        OtpChallengeRepository(db[OTP_CHALLENGES]),
        retention_seconds=settings.otp.otp_retention_seconds,
        page_size=settings.otp.otp_sweep_page_size,
    )
    if once:
        result = await otp_sweeper.run_once(sweeper)
        return 0 if result is not None else 1
    await otp_sweeper.run_forever(sweeper, settings.otp.otp_sweep_interval_seconds)
    return 0


async def _run_rent_reminders(settings: AppSettings, db, once: bool) -> int:
    email_http = HttpClient()
    try:
        service = RentReminderService(
            TenancyRepository(db[TENANCIES]),
            ProfileRepository(db[PROFILES]),
            ZeptoMailDispatcher(settings.email, email_http, app_url=settings.app_url),
            settings.rent,
        )
        if once:
            result = await rent_reminders.run_once(service)
            return 0 if result is not None else 1
        await rent_reminders.run_forever(
            service, settings.rent.rent_reminder_interval_seconds
        )
        return 0
    finally:
        await email_http.aclose()


async def _run(job: str, once: bool) -> int:
    settings = AppSettings()
    client: AsyncMongoClient = AsyncMongoClient(settings.db.mongodb_uri, tz_aware=True)
    try:
        db = client[settings.db.db_name]
        if job == "rent-reminders":
            return await _run_rent_reminders(settings, db, once)
        return await _run_otp_sweep(settings, db, once)
    finally:
        await client.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Hubode background worker")
    parser.add_argument(
        "--job", choices=JOBS, default="otp-sweep", help="which job to run"
    )
    parser.add_argument(
        "--once", action="store_true", help="run a single pass and exit"
    )
    args = parser.parse_args(argv)

    try:
        return asyncio.run(_run(args.job, args.once))
    except KeyboardInterrupt:
        log.info("worker_stopped_by_user", job=args.job)
        return 0
    except Exception as e:
        log.error(
            "worker_failed", job=args.job, error=str(e), error_type=type(e).__name__
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
