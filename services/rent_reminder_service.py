"""
Rent reminders: email tenants whose next month's rent is not yet recorded.

Runs once a day. On the first reminder day of the month tenants get a
"due soon" email, on the second a "now due" one; on any other day the run
does nothing. A tenancy counts as paid when its ledger has next month's
name under the matching payment year. Delivery is best-effort per tenant.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from config import RentReminderSettings
from infrastructure.email.protocol import NotificationDispatcher, RentReminder
from repositories.profile_repository import ProfileRepository
from repositories.tenancy_repository import TenancyRepository
from schemas.models.profile import ProfileDoc
from schemas.models.tenancy import TenancyDoc
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger
from shared.validators import MONTH_NAMES

log = get_logger(__name__)


class DueDayRule(str, Enum):
    FIRST_OF_NEXT_MONTH = "1st_of_next_month"
    LAST_DAY_OF_CURRENT_MONTH = "last_day_of_current_month"


class ReminderStage(str, Enum):
    FIRST = "first"
    SECOND = "second"


@dataclass
class ReminderRunResult:
    stage: Optional[ReminderStage] = None
    month: Optional[str] = None
    year: Optional[int] = None
    sent: int = 0
    failed: int = 0
    already_paid: int = 0
    skipped: int = 0
    failed_tenancy_ids: list[str] = field(default_factory=list)


def due_date_for(today: date, rule: DueDayRule) -> date:
    if rule is DueDayRule.LAST_DAY_OF_CURRENT_MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return date(today.year, today.month, last_day)
    if today.month == 12:
        return date(today.year + 1, 1, 1)
    return date(today.year, today.month + 1, 1)


def is_month_paid(tenancy: TenancyDoc, month: str, year: int) -> bool:
    return tenancy.payment_year == year and month in tenancy.paid_months


class RentReminderService:
    def __init__(
        self,
        tenancies: TenancyRepository,
        profiles: ProfileRepository,
        dispatcher: NotificationDispatcher,
        settings: RentReminderSettings,
        clock: Clock = utc_now,
    ) -> None:
        self._tenancies = tenancies
        self._profiles = profiles
        self._dispatcher = dispatcher
        self._settings = settings
        self._clock = clock
        self._tz = ZoneInfo(settings.rent_timezone)

    def _due_day_rule(self) -> DueDayRule:
        try:
            return DueDayRule(self._settings.rent_due_day_logic)
        except ValueError:
            log.warning(
                "rent_due_day_logic_unknown",
                value=self._settings.rent_due_day_logic,
                fallback=DueDayRule.FIRST_OF_NEXT_MONTH.value,
            )
            return DueDayRule.FIRST_OF_NEXT_MONTH

    def plan(self, today: date) -> Optional[RentReminder]:
        """The reminder to send on *today*, or None when it is not a reminder day."""
        if today.day == self._settings.rent_first_reminder_day:
            stage = ReminderStage.FIRST
        elif today.day == self._settings.rent_second_reminder_day:
            stage = ReminderStage.SECOND
        else:
            return None

        # Reminders are always about next month's rent
        if today.month == 12:
            month_index, year = 0, today.year + 1
        else:
            month_index, year = today.month, today.year

        return RentReminder(
            stage=stage.value,
            month=MONTH_NAMES[month_index],
            year=year,
            due_date=due_date_for(today, self._due_day_rule()),
            currency_symbol=self._settings.rent_currency_symbol,
            payment_instructions=self._settings.rent_payment_instructions,
            contact_email=self._settings.rent_admin_contact_email,
            contact_phone=self._settings.rent_admin_contact_phone,
        )

    async def run(self) -> ReminderRunResult:
        today = self._clock().astimezone(self._tz).date()
        reminder = self.plan(today)
        if reminder is None:
            log.info("rent_reminders_not_due", day=today.day)
            return ReminderRunResult()

        result = ReminderRunResult(
            stage=ReminderStage(reminder.stage), month=reminder.month, year=reminder.year
        )
        page_size = self._settings.rent_reminder_page_size
        after_id = None
        while True:
            page = await self._tenancies.list_active_page(after_id, page_size)
            if not page:
                break
            profiles = await self._profiles.find_by_user_ids(
                sorted({t.user_id for t in page})
            )
            for tenancy in page:
                await self._remind(tenancy, profiles.get(tenancy.user_id), reminder, result)
            after_id = page[-1].id
            if len(page) < page_size:
                break

        log.info(
            "rent_reminders_complete",
            stage=reminder.stage,
            month=reminder.month,
            year=reminder.year,
            sent=result.sent,
            failed=result.failed,
            already_paid=result.already_paid,
            skipped=result.skipped,
        )
        return result

    async def _remind(
        self,
        tenancy: TenancyDoc,
        profile: Optional[ProfileDoc],
        reminder: RentReminder,
        result: ReminderRunResult,
    ) -> None:
        tenancy_id = str(tenancy.id)
        if profile is None or not profile.email:
            result.skipped += 1
            log.warning(
                "rent_reminder_skipped",
                tenancy_id=tenancy_id,
                user_id=tenancy.user_id,
                reason="no_profile_email",
            )
            return
        if is_month_paid(tenancy, reminder.month, reminder.year):
            result.already_paid += 1
            return

        try:
            sent = await self._dispatcher.send_rent_reminder(
                profile.email, profile.name, tenancy, reminder
            )
        except Exception as e:
            sent = False
            log.error(
                "rent_reminder_error",
                tenancy_id=tenancy_id,
                error=str(e),
                error_type=type(e).__name__,
            )
        if sent:
            result.sent += 1
        else:
            result.failed += 1
            result.failed_tenancy_ids.append(tenancy_id)
            log.warning("rent_reminder_not_sent", tenancy_id=tenancy_id)
