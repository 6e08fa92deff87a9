"""Unit tests for OtpCleanupSweeper and the worker loop around it."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from schemas.models.otp import OtpChallengeDoc, OtpPurpose
from services.cleanup_service import OtpCleanupSweeper, SweepResult
from tests.fakes import FakeClock, InMemoryOtpRepository
from workers.otp_sweeper import run_forever, run_once


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo():
    return InMemoryOtpRepository()


async def _seed(repo, clock, *, age_seconds: float, used: bool = False):
    created = clock.now - timedelta(seconds=age_seconds)
    return await repo.insert(
        OtpChallengeDoc(
            user_id="U1",
            purpose=OtpPurpose.LOGIN,
            code_hash="x" * 64,
            created_at=created,
            expires_at=created + timedelta(seconds=300),
            used=used,
        )
    )


class TestSweep:
    async def test_deletes_used_and_long_expired_only(self, repo, clock):
        used = await _seed(repo, clock, age_seconds=10, used=True)
        stale = await _seed(repo, clock, age_seconds=2 * 86400)
        recently_expired = await _seed(repo, clock, age_seconds=3600)
        live = await _seed(repo, clock, age_seconds=10)

        result = await OtpCleanupSweeper(repo, clock=clock).sweep()

        assert result.deleted == 2
        assert result.failed == 0
        assert used.id not in repo.rows
        assert stale.id not in repo.rows
        assert recently_expired.id in repo.rows
        assert live.id in repo.rows

    async def test_pages_through_everything(self, repo, clock):
        for _ in range(5):
            await _seed(repo, clock, age_seconds=10, used=True)
        result = await OtpCleanupSweeper(repo, page_size=2, clock=clock).sweep()
        assert result == SweepResult(deleted=5, failed=0, pages=3)
        assert repo.rows == {}

    async def test_failed_delete_is_skipped(self, repo, clock):
        rows = [await _seed(repo, clock, age_seconds=10, used=True) for _ in range(3)]
        repo.fail_delete_ids.add(rows[0].id)

        result = await OtpCleanupSweeper(repo, page_size=2, clock=clock).sweep()

        assert result.deleted == 2
        assert result.failed == 1
        assert list(repo.rows) == [rows[0].id]

    async def test_nothing_to_do(self, repo, clock):
        await _seed(repo, clock, age_seconds=10)
        result = await OtpCleanupSweeper(repo, clock=clock).sweep()
        assert result == SweepResult()

    async def test_page_query_failure_propagates(self, repo, clock):
        repo.fail_page_query = True
        with pytest.raises(RuntimeError):
            await OtpCleanupSweeper(repo, clock=clock).sweep()

    def test_rejects_non_positive_page_size(self, repo):
        with pytest.raises(ValueError):
            OtpCleanupSweeper(repo, page_size=0)


class TestWorkerLoop:
    async def test_run_once_swallows_failure(self):
        sweeper = AsyncMock()
        sweeper.sweep.side_effect = RuntimeError("mongo down")
        assert await run_once(sweeper) is None

    async def test_run_once_returns_result(self):
        sweeper = AsyncMock()
        sweeper.sweep.return_value = SweepResult(deleted=3, pages=1)
        assert (await run_once(sweeper)).deleted == 3

    async def test_run_forever_stops_on_event(self):
        stop = asyncio.Event()
        sweeper = AsyncMock()

        async def _sweep():
            stop.set()
            return SweepResult()

        sweeper.sweep.side_effect = _sweep
        await asyncio.wait_for(run_forever(sweeper, 3600, stop), timeout=1)
        sweeper.sweep.assert_awaited_once()
