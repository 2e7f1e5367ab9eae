"""Leave balance ledger: availability checks, deductions, refunds and rollover.

The counters on ``LeaveBalance`` are the source of truth for availability.
Every change to a counter is mirrored by an append-only ``LeaveLedgerEntry``
whose (source_id, leave_type, entry_type) key is unique, so a deduction,
refund or rollover can only ever be recorded once.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_ledger.config import Settings, get_settings
from leave_ledger.exceptions import ConflictError, NotFoundError
from leave_ledger.models.balance import LeaveBalance
from leave_ledger.models.enums import CARRY_ELIGIBLE_TYPES, LedgerEntryType, LeaveType
from leave_ledger.models.ledger import LeaveLedgerEntry
from leave_ledger.schemas.balance import (
    BalanceResponse,
    CarryForwardCounter,
    Counter,
    LedgerEntryResponse,
    LedgerListResponse,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.balance import CreateBalanceRequest

logger = logging.getLogger(__name__)

_CURRENT_FIELDS: dict[LeaveType, str] = {
    LeaveType.CASUAL: "casual_current",
    LeaveType.SICK: "sick_current",
    LeaveType.EARNED: "earned_current",
    LeaveType.MATERNITY: "maternity_current",
    LeaveType.PATERNITY: "paternity_current",
    LeaveType.COMPENSATORY: "compensatory_current",
}

# (carried field, cap field) for carry-eligible types.
_CARRY_FIELDS: dict[LeaveType, tuple[str, str]] = {
    LeaveType.CASUAL: ("casual_carried", "casual_max_carry_forward"),
    LeaveType.EARNED: ("earned_carried", "earned_max_carry_forward"),
}


@dataclass(frozen=True)
class AnnualQuotas:
    """Days granted at the start of each year for accrued leave types."""

    casual: int
    sick: int
    earned: int

    @classmethod
    def from_settings(cls, settings: Settings) -> AnnualQuotas:
        return cls(
            casual=settings.casual_annual_quota,
            sick=settings.sick_annual_quota,
            earned=settings.earned_annual_quota,
        )

    def for_type(self, leave_type: LeaveType) -> int:
        quotas = {LeaveType.CASUAL: self.casual, LeaveType.SICK: self.sick, LeaveType.EARNED: self.earned}
        return quotas[leave_type]


@dataclass(frozen=True)
class RolloverChange:
    """What the year-end rollover did to one leave type."""

    leave_type: LeaveType
    entry_type: LedgerEntryType
    previous: int
    carried: int
    current: int


# ---------------------------------------------------------------------------
# Counter operations
# ---------------------------------------------------------------------------


def has_balance(leave_type: LeaveType) -> bool:
    """Unpaid leave is not tracked by any counter."""
    return leave_type in _CURRENT_FIELDS


def current_days(balance: LeaveBalance, leave_type: LeaveType) -> int:
    return getattr(balance, _CURRENT_FIELDS[leave_type])


def check_available(balance: LeaveBalance | None, leave_type: LeaveType, days: int) -> bool:
    """Return True if the balance covers ``days``. Unpaid leave is always available."""
    if not has_balance(leave_type):
        return True
    if balance is None:
        return False
    return current_days(balance, leave_type) >= days


def deduct(balance: LeaveBalance, leave_type: LeaveType, days: int) -> int:
    """Subtract ``days`` from the counter, never going below zero. Returns the new value."""
    field = _CURRENT_FIELDS[leave_type]
    current = getattr(balance, field)
    if current < days:
        logger.warning(
            "Deduction of %d %s days exceeds balance %d for employee %s; clamping to 0",
            days,
            leave_type,
            current,
            balance.employee_id,
        )
    new_value = max(current - days, 0)
    setattr(balance, field, new_value)
    balance.version += 1
    return new_value


def refund(balance: LeaveBalance, leave_type: LeaveType, days: int) -> int:
    """Add ``days`` back to the counter. Returns the new value."""
    field = _CURRENT_FIELDS[leave_type]
    new_value = getattr(balance, field) + days
    setattr(balance, field, new_value)
    balance.version += 1
    return new_value


def roll_over_year_end(balance: LeaveBalance, today: date, quotas: AnnualQuotas) -> list[RolloverChange] | None:
    """Open the new year on a balance.

    Returns None without touching the balance when it was already reset for
    ``today.year``. Otherwise carry-eligible types keep up to their cap on top
    of the new quota, sick leave resets to its quota, and granted types are
    left alone.
    """
    if balance.last_reset_date.year >= today.year:
        return None

    changes: list[RolloverChange] = []

    for leave_type in (LeaveType.CASUAL, LeaveType.EARNED):
        current_field = _CURRENT_FIELDS[leave_type]
        carried_field, cap_field = _CARRY_FIELDS[leave_type]
        previous = getattr(balance, current_field)
        carried = min(previous, getattr(balance, cap_field))
        current = quotas.for_type(leave_type) + carried
        setattr(balance, carried_field, carried)
        setattr(balance, current_field, current)
        changes.append(RolloverChange(leave_type, LedgerEntryType.CARRY_FORWARD, previous, carried, current))

    previous_sick = balance.sick_current
    balance.sick_current = quotas.sick
    changes.append(RolloverChange(LeaveType.SICK, LedgerEntryType.ANNUAL_RESET, previous_sick, 0, quotas.sick))

    balance.last_reset_date = date(today.year, 1, 1)
    balance.version += 1
    return changes


# ---------------------------------------------------------------------------
# Persistence helpers
# ---------------------------------------------------------------------------


def _build_balance_response(balance: LeaveBalance) -> BalanceResponse:
    """Map a balance model to its response schema."""
    return BalanceResponse(
        employee_id=balance.employee_id,
        casual=CarryForwardCounter(
            current=balance.casual_current,
            carried=balance.casual_carried,
            max_carry_forward=balance.casual_max_carry_forward,
        ),
        sick=Counter(current=balance.sick_current),
        earned=CarryForwardCounter(
            current=balance.earned_current,
            carried=balance.earned_carried,
            max_carry_forward=balance.earned_max_carry_forward,
        ),
        maternity=Counter(current=balance.maternity_current),
        paternity=Counter(current=balance.paternity_current),
        compensatory=Counter(current=balance.compensatory_current),
        last_reset_date=balance.last_reset_date,
        updated_at=balance.updated_at,
    )


def _build_ledger_entry_response(entry: LeaveLedgerEntry) -> LedgerEntryResponse:
    """Map a ledger entry model to its response schema."""
    return LedgerEntryResponse(
        id=entry.id,
        employee_id=entry.employee_id,
        leave_type=LeaveType(entry.leave_type),
        entry_type=LedgerEntryType(entry.entry_type),
        amount_days=entry.amount_days,
        balance_after=entry.balance_after,
        source_id=entry.source_id,
        leave_request_id=entry.leave_request_id,
        created_at=entry.created_at,
    )


async def lock_balance(session: AsyncSession, employee_id: uuid.UUID) -> LeaveBalance | None:
    """Fetch the employee's balance with a FOR UPDATE lock held until commit."""
    result = await session.execute(
        select(LeaveBalance)
        .where(col(LeaveBalance.employee_id) == employee_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _get_balance_or_404(session: AsyncSession, employee_id: uuid.UUID) -> LeaveBalance:
    balance = await session.get(LeaveBalance, employee_id)
    if balance is None:
        raise NotFoundError("Leave balance record not found")
    return balance


def post_ledger_entry(
    session: AsyncSession,
    balance: LeaveBalance,
    *,
    leave_type: LeaveType,
    entry_type: LedgerEntryType,
    amount_days: int,
    source_id: str,
    leave_request_id: uuid.UUID | None = None,
) -> LeaveLedgerEntry:
    """Record a counter change within the caller's transaction."""
    entry = LeaveLedgerEntry(
        employee_id=balance.employee_id,
        leave_type=leave_type.value,
        entry_type=entry_type.value,
        amount_days=amount_days,
        balance_after=current_days(balance, leave_type),
        source_id=source_id,
        leave_request_id=leave_request_id,
    )
    session.add(entry)
    return entry


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    payload: CreateBalanceRequest | None = None,
    *,
    today: date | None = None,
) -> BalanceResponse:
    """Create the onboarding balance with this year's quotas and caps."""
    settings = get_settings()
    today = today or date.today()

    if await session.get(LeaveBalance, employee_id) is not None:
        raise ConflictError("Leave balance already exists for this employee")

    balance = LeaveBalance(
        employee_id=employee_id,
        casual_current=settings.casual_annual_quota,
        casual_max_carry_forward=settings.casual_max_carry_forward,
        sick_current=settings.sick_annual_quota,
        earned_current=settings.earned_annual_quota,
        earned_max_carry_forward=settings.earned_max_carry_forward,
        maternity_current=payload.maternity if payload else 0,
        paternity_current=payload.paternity if payload else 0,
        compensatory_current=payload.compensatory if payload else 0,
        last_reset_date=date(today.year, 1, 1),
    )
    session.add(balance)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Leave balance already exists for this employee") from None

    await session.commit()
    logger.info("Created leave balance for employee %s", employee_id)
    return _build_balance_response(balance)


async def get_balance(session: AsyncSession, employee_id: uuid.UUID) -> BalanceResponse:
    """Return the employee's current leave counters."""
    balance = await _get_balance_or_404(session, employee_id)
    return _build_balance_response(balance)


async def list_ledger_entries(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LedgerListResponse:
    """List ledger entries for an employee, newest first."""
    await _get_balance_or_404(session, employee_id)

    filters = [col(LeaveLedgerEntry.employee_id) == employee_id]
    if leave_type is not None:
        filters.append(col(LeaveLedgerEntry.leave_type) == leave_type.value)

    count_result = await session.execute(select(func.count()).select_from(LeaveLedgerEntry).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveLedgerEntry)
        .where(*filters)
        .order_by(col(LeaveLedgerEntry.created_at).desc(), col(LeaveLedgerEntry.id))
        .offset(offset)
        .limit(limit)
    )
    entries = list(result.scalars().all())

    return LedgerListResponse(
        items=[_build_ledger_entry_response(e) for e in entries],
        total=total,
    )
