# ruff: noqa: B008, TC001, TC003
"""Manual triggers for the scheduled sweeps."""

from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Query

from leave_ledger.api.deps import AuthDep
from leave_ledger.db import SessionDep
from leave_ledger.schemas.jobs import AutoRejectRunResponse, RolloverRunResponse
from leave_ledger.services.sweeps import run_auto_reject_sweep, run_year_end_rollover

jobs_router = APIRouter(
    prefix="/jobs",
    tags=["jobs"],
)


@jobs_router.post("/auto-reject", response_model=AutoRejectRunResponse)
async def trigger_auto_reject(
    session: SessionDep,
    auth: AuthDep,
    now: datetime | None = Query(default=None),
) -> AutoRejectRunResponse:
    """Run the auto-reject sweep now, or as of ``now`` for backfills."""
    result = await run_auto_reject_sweep(session, now)
    return AutoRejectRunResponse(
        run_at=result.run_at,
        threshold_days=result.threshold_days,
        rejected_count=result.rejected_count,
        error_count=result.error_count,
    )


@jobs_router.post("/year-end-rollover", response_model=RolloverRunResponse)
async def trigger_year_end_rollover(
    session: SessionDep,
    auth: AuthDep,
    today: date | None = Query(default=None),
) -> RolloverRunResponse:
    """Run the year-end rollover now, or as of ``today`` for backfills."""
    result = await run_year_end_rollover(session, today)
    return RolloverRunResponse(
        target_date=result.target_date,
        updated_count=result.updated_count,
        skipped_count=result.skipped_count,
        error_count=result.error_count,
    )
