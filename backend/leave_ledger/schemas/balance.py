# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from leave_ledger.models.enums import LedgerEntryType, LeaveType

# ---------------------------------------------------------------------------
# Balance schemas
# ---------------------------------------------------------------------------


class CarryForwardCounter(BaseModel):
    """Counter for a leave type that carries unused days into the next year."""

    current: int
    carried: int
    max_carry_forward: int


class Counter(BaseModel):
    """Counter for a leave type without carry-forward."""

    current: int


class BalanceResponse(BaseModel):
    """All leave counters for an employee."""

    employee_id: uuid.UUID
    casual: CarryForwardCounter
    sick: Counter
    earned: CarryForwardCounter
    maternity: Counter
    paternity: Counter
    compensatory: Counter
    last_reset_date: date
    updated_at: datetime


class CreateBalanceRequest(BaseModel):
    """Onboarding grants for leave types that are not accrued annually."""

    maternity: int = Field(default=0, ge=0)
    paternity: int = Field(default=0, ge=0)
    compensatory: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# Ledger schemas
# ---------------------------------------------------------------------------


class LedgerEntryResponse(BaseModel):
    """A single ledger entry."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    entry_type: LedgerEntryType
    amount_days: int
    balance_after: int
    source_id: str
    leave_request_id: uuid.UUID | None
    created_at: datetime


class LedgerListResponse(BaseModel):
    """Paginated ledger entries."""

    items: list[LedgerEntryResponse]
    total: int
