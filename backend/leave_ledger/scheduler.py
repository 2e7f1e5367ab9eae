"""Wall-clock scheduler for the worker's periodic jobs.

Each registered job runs in its own asyncio task that sleeps until the next
time its schedule fires, runs the job, and repeats. A failing run is logged
and the job keeps its schedule.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import TYPE_CHECKING, Protocol
from zoneinfo import ZoneInfo

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Schedule(Protocol):
    """When a job fires."""

    def next_after(self, moment: datetime) -> datetime:
        """Return the first fire time strictly after ``moment``."""
        ...


@dataclass(frozen=True)
class DailySchedule:
    """Fires every day at hour:minute in the scheduler's timezone."""

    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        if not (0 <= self.hour <= 23 and 0 <= self.minute <= 59):
            msg = f"Invalid daily time {self.hour:02d}:{self.minute:02d}"
            raise ValueError(msg)

    def next_after(self, moment: datetime) -> datetime:
        candidate = moment.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)
        if candidate <= moment:
            candidate += timedelta(days=1)
        return candidate


@dataclass(frozen=True)
class YearlySchedule:
    """Fires once a year on month/day at hour:minute."""

    month: int
    day: int
    hour: int = 0
    minute: int = 0

    def __post_init__(self) -> None:
        # Leap year so every valid month/day is accepted; Feb 29 is rejected below.
        datetime(2000, self.month, self.day, self.hour, self.minute)
        if (self.month, self.day) == (2, 29):
            msg = "Yearly schedules cannot fire on Feb 29"
            raise ValueError(msg)

    def next_after(self, moment: datetime) -> datetime:
        candidate = moment.replace(
            month=self.month, day=self.day, hour=self.hour, minute=self.minute, second=0, microsecond=0
        )
        if candidate <= moment:
            candidate = candidate.replace(year=candidate.year + 1)
        return candidate


@dataclass(frozen=True)
class IntervalSchedule:
    """Fires every ``seconds`` seconds, counted from the end of the previous run."""

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds <= 0:
            msg = "Interval must be positive"
            raise ValueError(msg)

    def next_after(self, moment: datetime) -> datetime:
        return moment + timedelta(seconds=self.seconds)


@dataclass
class ScheduledJob:
    """A registered job and its run statistics."""

    name: str
    schedule: Schedule
    task: Callable[[], Awaitable[object]]
    next_run: datetime | None = None
    runs: int = 0
    failures: int = 0


@dataclass
class Scheduler:
    """Runs registered jobs on their schedules until stopped."""

    tz: tzinfo = field(default_factory=lambda: ZoneInfo("UTC"))
    jobs: list[ScheduledJob] = field(default_factory=list)
    _tasks: list[asyncio.Task[None]] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def for_timezone(cls, name: str) -> Scheduler:
        return cls(tz=ZoneInfo(name))

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def register(
        self,
        schedule: Schedule,
        task: Callable[[], Awaitable[object]],
        *,
        name: str,
    ) -> ScheduledJob:
        """Add a job. Jobs must be registered before ``start``."""
        if self.running:
            msg = "Cannot register jobs on a running scheduler"
            raise RuntimeError(msg)
        job = ScheduledJob(name=name, schedule=schedule, task=task)
        self.jobs.append(job)
        return job

    def now(self) -> datetime:
        return datetime.now(self.tz)

    async def start(self) -> None:
        """Spawn one task per registered job."""
        if self.running:
            msg = "Scheduler already started"
            raise RuntimeError(msg)
        for job in self.jobs:
            self._tasks.append(asyncio.create_task(self._run_job(job), name=f"scheduler:{job.name}"))
        logger.info("Scheduler started with %d job(s) in %s", len(self.jobs), self.tz)

    async def stop(self) -> None:
        """Cancel every job task and wait for them to finish."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Scheduler stopped")

    async def _run_job(self, job: ScheduledJob) -> None:
        while True:
            now = self.now()
            job.next_run = job.schedule.next_after(now)
            delay = (job.next_run - now).total_seconds()
            logger.debug("Job %s next runs at %s", job.name, job.next_run.isoformat())
            await asyncio.sleep(max(delay, 0))

            logger.info("Running scheduled job %s", job.name)
            try:
                await job.task()
            except Exception:
                job.failures += 1
                logger.exception("Scheduled job %s failed", job.name)
            else:
                job.runs += 1
