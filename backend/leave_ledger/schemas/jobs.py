# ruff: noqa: TC003
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel


class AutoRejectRunResponse(BaseModel):
    """Response from the auto-reject trigger endpoint."""

    run_at: datetime
    threshold_days: int
    rejected_count: int
    error_count: int


class RolloverRunResponse(BaseModel):
    """Response from the year-end rollover trigger endpoint."""

    target_date: date
    updated_count: int
    skipped_count: int
    error_count: int
