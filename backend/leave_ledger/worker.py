"""Worker process for the scheduled leave sweeps.

Runs the auto-reject sweep daily and the year-end rollover every Jan 1,
both in the configured scheduler timezone.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from leave_ledger.config import Settings, get_settings
from leave_ledger.db import dispose_engine, get_session_factory
from leave_ledger.scheduler import DailySchedule, Scheduler, YearlySchedule
from leave_ledger.services.sweeps import run_auto_reject_sweep, run_year_end_rollover

logger = logging.getLogger(__name__)


def build_scheduler(settings: Settings) -> Scheduler:
    """Register both sweeps on a scheduler running in ``settings.scheduler_timezone``."""
    scheduler = Scheduler.for_timezone(settings.scheduler_timezone)
    session_factory = get_session_factory()

    async def auto_reject() -> None:
        async with session_factory() as session:
            result = await run_auto_reject_sweep(session, datetime.now(UTC))
        logger.info(
            "Auto-reject run complete: rejected=%d errors=%d",
            result.rejected_count,
            result.error_count,
        )

    async def year_end_rollover() -> None:
        today = scheduler.now().date()
        async with session_factory() as session:
            result = await run_year_end_rollover(session, today)
        logger.info(
            "Rollover run complete for %s: updated=%d skipped=%d errors=%d",
            today,
            result.updated_count,
            result.skipped_count,
            result.error_count,
        )

    scheduler.register(
        DailySchedule(settings.auto_reject_hour, settings.auto_reject_minute),
        auto_reject,
        name="auto-reject",
    )
    scheduler.register(
        YearlySchedule(
            settings.rollover_month,
            settings.rollover_day,
            settings.rollover_hour,
            settings.rollover_minute,
        ),
        year_end_rollover,
        name="year-end-rollover",
    )
    return scheduler


async def run_worker() -> None:
    """Start the scheduler and run until cancelled."""
    settings = get_settings()
    scheduler = build_scheduler(settings)
    logger.info("Leave worker started")
    await scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
        await dispose_engine()
        logger.info("Leave worker stopped")


def main() -> None:
    """Entry point for the worker process."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
