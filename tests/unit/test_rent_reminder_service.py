"""Unit tests for RentReminderService and the daily worker loop around it."""

import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from config import RentReminderSettings
from schemas.models.profile import ProfileDoc
from schemas.models.tenancy import TenancyDoc
from services.rent_reminder_service import (
    DueDayRule,
    ReminderRunResult,
    ReminderStage,
    RentReminderService,
    due_date_for,
)
from tests.fakes import (
    FakeClock,
    FakeDispatcher,
    InMemoryProfileRepository,
    InMemoryTenancyRepository,
)
from workers.rent_reminders import run_forever, run_once


def _settings(**overrides) -> RentReminderSettings:
    values = dict(
        rent_first_reminder_day=25,
        rent_second_reminder_day=28,
        rent_timezone="UTC",
        rent_reminder_page_size=2,
    )
    values.update(overrides)
    return RentReminderSettings(**values)


def _on(year: int, month: int, day: int) -> FakeClock:
    return FakeClock(datetime(year, month, day, 9, 0, tzinfo=timezone.utc))


async def _seed(tenancies, user_id, *, paid_months=(), payment_year=None):
    return await tenancies.insert(
        TenancyDoc(
            user_id=user_id,
            profile_id=f"profile_{user_id}",
            property_id="prop_1",
            property_name="Hubode Koramangala",
            occupancy_name="Double",
            tier_key="tier_a",
            tier_name="Premium",
            rent_amount=15000,
            onboarded_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            paid_months=list(paid_months),
            payment_year=payment_year,
        )
    )


@pytest.fixture
def tenancies():
    return InMemoryTenancyRepository()


@pytest.fixture
def profiles():
    return InMemoryProfileRepository(
        ProfileDoc(_id="profile_U1", user_id="U1", email="u1@example.com", name="Asha"),
        ProfileDoc(_id="profile_U2", user_id="U2", email="u2@example.com"),
        ProfileDoc(_id="profile_U3", user_id="U3", email="u3@example.com"),
        ProfileDoc(_id="profile_U4", user_id="U4"),
    )


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


def _service(tenancies, profiles, dispatcher, clock, **overrides):
    return RentReminderService(
        tenancies, profiles, dispatcher, _settings(**overrides), clock=clock
    )


class TestPlan:
    def test_not_a_reminder_day(self, tenancies, profiles, dispatcher):
        service = _service(tenancies, profiles, dispatcher, _on(2024, 6, 10))
        assert service.plan(date(2024, 6, 10)) is None

    def test_first_reminder_targets_next_month(self, tenancies, profiles, dispatcher):
        service = _service(tenancies, profiles, dispatcher, _on(2024, 6, 25))
        reminder = service.plan(date(2024, 6, 25))
        assert reminder.stage == ReminderStage.FIRST.value
        assert (reminder.month, reminder.year) == ("July", 2024)
        assert reminder.due_date == date(2024, 7, 1)

    def test_december_rolls_into_next_year(self, tenancies, profiles, dispatcher):
        service = _service(tenancies, profiles, dispatcher, _on(2024, 12, 28))
        reminder = service.plan(date(2024, 12, 28))
        assert reminder.stage == ReminderStage.SECOND.value
        assert (reminder.month, reminder.year) == ("January", 2025)
        assert reminder.due_date == date(2025, 1, 1)

    def test_unknown_due_day_logic_falls_back(self, tenancies, profiles, dispatcher):
        service = _service(
            tenancies, profiles, dispatcher, _on(2024, 6, 25), rent_due_day_logic="bogus"
        )
        assert service.plan(date(2024, 6, 25)).due_date == date(2024, 7, 1)


class TestDueDate:
    @pytest.mark.parametrize(
        "today, rule, expected",
        [
            (date(2024, 6, 25), DueDayRule.FIRST_OF_NEXT_MONTH, date(2024, 7, 1)),
            (date(2024, 2, 25), DueDayRule.LAST_DAY_OF_CURRENT_MONTH, date(2024, 2, 29)),
            (date(2023, 12, 25), DueDayRule.LAST_DAY_OF_CURRENT_MONTH, date(2023, 12, 31)),
        ],
    )
    def test_rules(self, today, rule, expected):
        assert due_date_for(today, rule) == expected


class TestRun:
    async def test_nothing_sent_on_other_days(self, tenancies, profiles, dispatcher):
        await _seed(tenancies, "U1")
        result = await _service(tenancies, profiles, dispatcher, _on(2024, 6, 10)).run()
        assert result == ReminderRunResult()
        assert dispatcher.reminders == []

    async def test_reminds_only_unpaid_tenants_with_email(
        self, tenancies, profiles, dispatcher
    ):
        unpaid = await _seed(tenancies, "U1", paid_months=["June"], payment_year=2024)
        await _seed(tenancies, "U2", paid_months=["July"], payment_year=2024)
        # Paid for July of the wrong year still counts as unpaid
        stale = await _seed(tenancies, "U3", paid_months=["July"], payment_year=2023)
        await _seed(tenancies, "U4")
        await _seed(tenancies, "U5")

        result = await _service(tenancies, profiles, dispatcher, _on(2024, 6, 25)).run()

        assert result.stage is ReminderStage.FIRST
        assert (result.month, result.year) == ("July", 2024)
        assert result.sent == 2
        assert result.already_paid == 1
        assert result.skipped == 2
        assert sorted(r["tenancy_id"] for r in dispatcher.reminders) == sorted(
            [str(unpaid.id), str(stale.id)]
        )
        assert {r["stage"] for r in dispatcher.reminders} == {"first"}

    async def test_pages_through_every_active_tenancy(self, tenancies, profiles, dispatcher):
        for user_id in ("U1", "U2", "U3"):
            await _seed(tenancies, user_id)
        result = await _service(
            tenancies, profiles, dispatcher, _on(2024, 6, 28), rent_reminder_page_size=1
        ).run()
        assert result.sent == 3
        assert {r["stage"] for r in dispatcher.reminders} == {"second"}

    async def test_failed_delivery_is_counted(self, tenancies, profiles):
        tenancy = await _seed(tenancies, "U1")
        result = await _service(
            tenancies, profiles, FakeDispatcher(succeed=False), _on(2024, 6, 25)
        ).run()
        assert result.sent == 0
        assert result.failed == 1
        assert result.failed_tenancy_ids == [str(tenancy.id)]

    async def test_dispatcher_exception_does_not_stop_run(self, tenancies, profiles):
        await _seed(tenancies, "U1")
        await _seed(tenancies, "U2")
        dispatcher = AsyncMock()
        dispatcher.send_rent_reminder.side_effect = [RuntimeError("smtp"), True]
        result = await _service(tenancies, profiles, dispatcher, _on(2024, 6, 25)).run()
        assert (result.sent, result.failed) == (1, 1)

    async def test_reminder_day_uses_configured_timezone(
        self, tenancies, profiles, dispatcher
    ):
        await _seed(tenancies, "U1")
        # 24 June 20:00 UTC is already 25 June in Kolkata
        clock = FakeClock(datetime(2024, 6, 24, 20, 0, tzinfo=timezone.utc))
        result = await _service(
            tenancies, profiles, dispatcher, clock, rent_timezone="Asia/Kolkata"
        ).run()
        assert result.stage is ReminderStage.FIRST
        assert result.sent == 1


class TestWorkerLoop:
    async def test_run_once_swallows_failure(self):
        service = AsyncMock()
        service.run.side_effect = RuntimeError("mongo down")
        assert await run_once(service) is None

    async def test_run_forever_stops_on_event(self):
        stop = asyncio.Event()
        service = AsyncMock()

        async def _run():
            stop.set()
            return ReminderRunResult()

        service.run.side_effect = _run
        await asyncio.wait_for(run_forever(service, 86400, stop), timeout=1)
        service.run.assert_awaited_once()
