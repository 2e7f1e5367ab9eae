"""Scheduled sweeps over leave requests and balances.

Auto-reject: runs daily and rejects requests left pending for too long.
Year-end rollover: runs on Jan 1 and opens the new year on every balance.

Both sweeps are idempotent. Each record is processed inside its own
savepoint, so a failure is logged and counted without aborting the run.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_ledger.config import get_settings
from leave_ledger.models.balance import LeaveBalance
from leave_ledger.models.enums import LeaveStatus
from leave_ledger.models.request import LeaveRequest
from leave_ledger.services.balance import AnnualQuotas, lock_balance, post_ledger_entry, roll_over_year_end
from leave_ledger.services.history import SYSTEM_ACTOR
from leave_ledger.services.request import transition

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


@dataclass
class AutoRejectRunResult:
    """Result of an auto-reject sweep."""

    run_at: datetime
    threshold_days: int
    rejected_count: int = 0
    error_count: int = 0


@dataclass
class RolloverRunResult:
    """Result of a year-end rollover sweep."""

    target_date: date
    updated_count: int = 0
    skipped_count: int = 0
    error_count: int = 0


# ---------------------------------------------------------------------------
# Auto-reject
# ---------------------------------------------------------------------------


async def run_auto_reject_sweep(
    session: AsyncSession,
    now: datetime | None = None,
    *,
    threshold_days: int | None = None,
) -> AutoRejectRunResult:
    """Auto-reject every PENDING request created at least ``threshold_days`` ago.

    Pending requests were never deducted, so balances are not touched.
    """
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    if threshold_days is None:
        threshold_days = get_settings().auto_reject_after_days

    result = AutoRejectRunResult(run_at=now, threshold_days=threshold_days)
    cutoff = now - timedelta(days=threshold_days)
    reason = f"Request automatically rejected after {threshold_days} days of pending status."

    candidates = await session.execute(
        select(col(LeaveRequest.id))
        .where(
            col(LeaveRequest.status) == LeaveStatus.PENDING.value,
            col(LeaveRequest.created_at) <= cutoff,
        )
        .order_by(col(LeaveRequest.created_at))
    )
    leave_ids = list(candidates.scalars().all())

    for leave_id in leave_ids:
        try:
            async with session.begin_nested():
                locked = await session.execute(
                    select(LeaveRequest)
                    .where(col(LeaveRequest.id) == leave_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
                request = locked.scalar_one()

                # Decided by someone else since the candidate query.
                if request.status != LeaveStatus.PENDING.value:
                    continue

                transition(session, request, LeaveStatus.AUTO_REJECTED, actor_id=SYSTEM_ACTOR, note=reason)
                request.rejection_reason = reason
                await session.flush()
            result.rejected_count += 1
        except Exception:
            logger.exception("Auto-reject failed for leave %s", leave_id)
            result.error_count += 1

    await session.commit()

    if result.rejected_count:
        logger.info("Auto-rejected %d leave request(s) pending since %s", result.rejected_count, cutoff)
    else:
        logger.info("No pending leave requests found needing auto-rejection")
    return result


# ---------------------------------------------------------------------------
# Year-end rollover
# ---------------------------------------------------------------------------


async def run_year_end_rollover(
    session: AsyncSession,
    today: date | None = None,
) -> RolloverRunResult:
    """Carry forward and reset every balance not yet opened for ``today.year``.

    For each balance last reset in an earlier year:
    1. Lock the balance
    2. Carry min(current, cap) for casual and earned; current = quota + carried
    3. Reset sick leave to its quota
    4. Post CARRY_FORWARD / ANNUAL_RESET ledger entries
    5. Set last_reset_date to Jan 1 of ``today.year``

    Balances already opened for the year are skipped, so re-running is a no-op.
    """
    if today is None:
        today = date.today()

    result = RolloverRunResult(target_date=today)
    quotas = AnnualQuotas.from_settings(get_settings())
    year_start = date(today.year, 1, 1)

    current_count = await session.execute(
        select(func.count()).select_from(LeaveBalance).where(col(LeaveBalance.last_reset_date) >= year_start)
    )
    result.skipped_count = current_count.scalar_one()

    candidates = await session.execute(
        select(col(LeaveBalance.employee_id))
        .where(col(LeaveBalance.last_reset_date) < year_start)
        .order_by(col(LeaveBalance.employee_id))
    )
    employee_ids: list[uuid.UUID] = list(candidates.scalars().all())

    for employee_id in employee_ids:
        try:
            async with session.begin_nested():
                balance = await lock_balance(session, employee_id)
                changes = roll_over_year_end(balance, today, quotas) if balance is not None else None
                if balance is None or changes is None:
                    result.skipped_count += 1
                    continue

                for change in changes:
                    post_ledger_entry(
                        session,
                        balance,
                        leave_type=change.leave_type,
                        entry_type=change.entry_type,
                        amount_days=change.current - change.previous,
                        source_id=f"rollover:{employee_id}:{today.year}",
                    )
                await session.flush()
            result.updated_count += 1
            logger.info(
                "Year-end update for employee %s: casual=%d earned=%d sick=%d",
                employee_id,
                balance.casual_current,
                balance.earned_current,
                balance.sick_current,
            )
        except Exception:
            logger.exception("Year-end update failed for employee %s", employee_id)
            result.error_count += 1

    await session.commit()

    logger.info(
        "Year-end rollover for %d: updated=%d skipped=%d errors=%d",
        today.year,
        result.updated_count,
        result.skipped_count,
        result.error_count,
    )
    return result
