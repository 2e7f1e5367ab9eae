"""Tests for the wall-clock scheduler and the worker's job wiring."""

from __future__ import annotations

import asyncio
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from leave_ledger import worker
from leave_ledger.config import Settings
from leave_ledger.scheduler import DailySchedule, IntervalSchedule, Scheduler, YearlySchedule
from leave_ledger.services.balance import create_balance, get_balance

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

UTC_ZONE = ZoneInfo("UTC")


def _at(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC_ZONE)


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


def test_daily_schedule_later_today() -> None:
    assert DailySchedule(1, 30).next_after(_at(2025, 3, 10, 0, 15)) == _at(2025, 3, 10, 1, 30)


def test_daily_schedule_rolls_to_tomorrow() -> None:
    assert DailySchedule(1).next_after(_at(2025, 3, 10, 1, 0)) == _at(2025, 3, 11, 1, 0)
    assert DailySchedule(1).next_after(_at(2025, 12, 31, 5, 0)) == _at(2026, 1, 1, 1, 0)


def test_yearly_schedule_same_year() -> None:
    assert YearlySchedule(12, 31, 23).next_after(_at(2025, 6, 1)) == _at(2025, 12, 31, 23)


def test_yearly_schedule_rolls_to_next_year() -> None:
    schedule = YearlySchedule(1, 1, 2)
    assert schedule.next_after(_at(2025, 1, 1, 2)) == _at(2026, 1, 1, 2)
    assert schedule.next_after(_at(2025, 1, 1, 1, 59)) == _at(2025, 1, 1, 2)


def test_interval_schedule() -> None:
    assert IntervalSchedule(90).next_after(_at(2025, 1, 1)) == _at(2025, 1, 1, 0, 1, 30)


@pytest.mark.parametrize(
    "factory",
    [
        lambda: DailySchedule(24),
        lambda: DailySchedule(0, 60),
        lambda: YearlySchedule(2, 30),
        lambda: YearlySchedule(2, 29),
        lambda: YearlySchedule(13, 1),
        lambda: IntervalSchedule(0),
    ],
)
def test_invalid_schedules_rejected(factory: Callable[[], object]) -> None:
    with pytest.raises(ValueError):
        factory()


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


async def test_scheduler_runs_job_repeatedly() -> None:
    calls: list[int] = []

    async def job() -> None:
        calls.append(1)

    scheduler = Scheduler()
    registered = scheduler.register(IntervalSchedule(0.01), job, name="tick")
    await scheduler.start()
    assert scheduler.running
    await asyncio.sleep(0.15)
    await scheduler.stop()

    assert not scheduler.running
    assert registered.runs >= 2
    assert registered.runs == len(calls)
    assert registered.next_run is not None


async def test_scheduler_survives_failing_job() -> None:
    async def job() -> None:
        raise RuntimeError("boom")

    scheduler = Scheduler()
    registered = scheduler.register(IntervalSchedule(0.01), job, name="broken")
    await scheduler.start()
    await asyncio.sleep(0.15)
    await scheduler.stop()

    assert registered.failures >= 2
    assert registered.runs == 0


async def test_scheduler_rejects_late_registration() -> None:
    async def job() -> None:
        return None

    scheduler = Scheduler()
    scheduler.register(DailySchedule(1), job, name="daily")
    await scheduler.start()
    try:
        with pytest.raises(RuntimeError):
            scheduler.register(DailySchedule(2), job, name="late")
        with pytest.raises(RuntimeError):
            await scheduler.start()
    finally:
        await scheduler.stop()


def test_scheduler_timezone() -> None:
    scheduler = Scheduler.for_timezone("UTC")
    assert scheduler.now().tzinfo == UTC_ZONE


# ---------------------------------------------------------------------------
# Worker wiring
# ---------------------------------------------------------------------------


@pytest.fixture
def worker_sessions(engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch) -> async_sessionmaker[AsyncSession]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(worker, "get_session_factory", lambda: factory)
    return factory


async def test_worker_registers_both_sweeps(worker_sessions: async_sessionmaker[AsyncSession]) -> None:
    settings = Settings(scheduler_timezone="UTC", auto_reject_hour=3, rollover_hour=4)

    scheduler = worker.build_scheduler(settings)

    assert [job.name for job in scheduler.jobs] == ["auto-reject", "year-end-rollover"]
    assert scheduler.jobs[0].schedule == DailySchedule(3, 0)
    assert scheduler.jobs[1].schedule == YearlySchedule(1, 1, 4, 0)


async def test_worker_rollover_job_uses_scheduler_date(
    worker_sessions: async_sessionmaker[AsyncSession],
) -> None:
    employee_id = uuid.uuid4()
    async with worker_sessions() as session:
        await create_balance(session, employee_id, today=date(2000, 6, 1))

    scheduler = worker.build_scheduler(Settings(scheduler_timezone="UTC"))
    await scheduler.jobs[1].task()

    async with worker_sessions() as session:
        balance = await get_balance(session, employee_id)
    assert balance.last_reset_date == date(scheduler.now().year, 1, 1)
