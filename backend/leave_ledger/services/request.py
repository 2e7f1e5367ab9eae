# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leave_ledger.config import get_settings
from leave_ledger.exceptions import (
    ForbiddenError,
    InputValidationError,
    InsufficientBalanceError,
    MissingReasonError,
    NonWorkingBoundaryError,
    NotFoundError,
    NoWorkingDaysError,
    OverlapError,
    StateConflictError,
)
from leave_ledger.models.enums import ACTIVE_STATUSES, LedgerEntryType, LeaveStatus, LeaveType
from leave_ledger.models.request import LeaveRequest
from leave_ledger.schemas.request import (
    LeaveRequestHistoryResponse,
    LeaveRequestListResponse,
    LeaveRequestResponse,
)
from leave_ledger.services.balance import (
    check_available,
    current_days,
    deduct,
    has_balance,
    lock_balance,
    post_ledger_entry,
    refund,
)
from leave_ledger.services.calendar import count_working_days, load_calendar, validate_date_range
from leave_ledger.services.employee import get_employee_directory
from leave_ledger.services.history import list_transitions, record_transition

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Every edge not listed here is illegal; terminal states have no entry.
_ALLOWED_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.PENDING: frozenset(
        {LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.AUTO_REJECTED, LeaveStatus.CANCELLED}
    ),
    LeaveStatus.APPROVED: frozenset({LeaveStatus.CANCELLED}),
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_leave_response(request: LeaveRequest) -> LeaveRequestResponse:
    """Map a leave request model to its response schema."""
    return LeaveRequestResponse(
        id=request.id,
        employee_id=request.employee_id,
        leave_type=LeaveType(request.leave_type),
        start_date=request.start_date,
        end_date=request.end_date,
        number_of_days=request.number_of_days,
        reason=request.reason,
        status=LeaveStatus(request.status),
        rejection_reason=request.rejection_reason,
        approved_by=request.approved_by,
        approved_at=request.approved_at,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


async def _get_leave_or_404(
    session: AsyncSession,
    leave_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> LeaveRequest:
    """Fetch a leave request by ID, optionally locking it. Raises 404 if not found."""
    query = select(LeaveRequest).where(col(LeaveRequest.id) == leave_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(query)
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Leave request not found")
    return request


def _ensure_transition(request: LeaveRequest, to_status: LeaveStatus) -> LeaveStatus:
    """Raise StateConflictError unless ``request`` may move to ``to_status``. Returns the current status."""
    current = LeaveStatus(request.status)
    if to_status not in _ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise StateConflictError(f"Leave request is already {current.value}; cannot move it to {to_status.value}")
    return current


def transition(
    session: AsyncSession,
    request: LeaveRequest,
    to_status: LeaveStatus,
    *,
    actor_id: uuid.UUID,
    note: str | None = None,
) -> LeaveStatus:
    """Move ``request`` to ``to_status`` and append the history event. Returns the previous status."""
    previous = _ensure_transition(request, to_status)
    request.status = to_status.value
    record_transition(session, request, from_status=previous, to_status=to_status, actor_id=actor_id, note=note)
    return previous


def _parse_leave_type(leave_type: LeaveType | str) -> LeaveType:
    try:
        return LeaveType(leave_type)
    except ValueError:
        raise InputValidationError(f"{leave_type} is not a supported leave type") from None


async def _resolve_country_code(employee_id: uuid.UUID) -> str:
    """Country of the employee, or the configured default when the directory does not know them."""
    employee = await get_employee_directory().get_employee(employee_id)
    if employee is None:
        default = get_settings().default_country_code
        logger.warning("Employee %s not found in directory; using default country %s", employee_id, default)
        return default
    return employee.country_code


async def check_overlap(
    session: AsyncSession,
    employee_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> None:
    """Raise OverlapError if a pending or approved request intersects [start_date, end_date].

    Both ranges are inclusive: they overlap when
    existing.start_date <= new.end_date AND existing.end_date >= new.start_date.
    """
    result = await session.execute(
        select(LeaveRequest)
        .where(
            col(LeaveRequest.employee_id) == employee_id,
            col(LeaveRequest.status).in_([s.value for s in ACTIVE_STATUSES]),
            col(LeaveRequest.start_date) <= end_date,
            col(LeaveRequest.end_date) >= start_date,
        )
        .order_by(col(LeaveRequest.start_date))
    )
    conflicts = list(result.scalars().all())
    if not conflicts:
        return

    details = [f"{c.leave_type} ({c.start_date.isoformat()} - {c.end_date.isoformat()})" for c in conflicts]
    logger.info("Overlap detected for employee %s: %s", employee_id, ", ".join(details))
    raise OverlapError(
        f"Requested dates overlap with existing leave request(s): {', '.join(details)}",
        details=details,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def apply_leave(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType | str,
    start_date: date,
    end_date: date,
    reason: str,
) -> LeaveRequestResponse:
    """Create a PENDING leave request.

    Flow:
    1. Validate leave type, date range and reason
    2. Reject overlaps with pending/approved requests
    3. Count working days in the employee's country; zero is rejected
    4. Reject ranges that start or end on a non-working day
    5. Check availability (no deduction until approval)
    6. Create the request and its first history event
    """
    leave_type = _parse_leave_type(leave_type)
    start_date, end_date = validate_date_range(start_date, end_date)
    if not reason or not reason.strip():
        raise InputValidationError("Reason for leave is required")

    await check_overlap(session, employee_id, start_date, end_date)

    country_code = await _resolve_country_code(employee_id)
    calendar = await load_calendar(session, country_code, start_date, end_date)
    number_of_days = count_working_days(start_date, end_date, calendar)
    if number_of_days == 0:
        raise NoWorkingDaysError("Selected leave duration does not contain any working days")

    if calendar.is_non_working_day(start_date) or calendar.is_non_working_day(end_date):
        raise NonWorkingBoundaryError("Leave cannot start or end on a weekend or public holiday")

    if has_balance(leave_type):
        balance = await lock_balance(session, employee_id)
        if balance is None:
            raise NotFoundError("Leave balance record not found")
        if not check_available(balance, leave_type, number_of_days):
            raise InsufficientBalanceError(
                f"Insufficient {leave_type.value} leave balance. "
                f"Available: {current_days(balance, leave_type)}, Required: {number_of_days}"
            )

    request = LeaveRequest(
        employee_id=employee_id,
        leave_type=leave_type.value,
        start_date=start_date,
        end_date=end_date,
        number_of_days=number_of_days,
        reason=reason.strip(),
        status=LeaveStatus.PENDING.value,
    )
    session.add(request)

    try:
        # The request row must exist before its first history event.
        await session.flush()
        record_transition(session, request, from_status=None, to_status=LeaveStatus.PENDING, actor_id=employee_id)
        await session.flush()
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Leave %s applied by employee %s: %s %s..%s (%d days)",
        request.id,
        employee_id,
        leave_type.value,
        start_date,
        end_date,
        number_of_days,
    )
    return _build_leave_response(request)


async def approve_leave(
    session: AsyncSession,
    leave_id: uuid.UUID,
    approver_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Approve a PENDING request and deduct its days in one transaction.

    1. Lock the request; it must be PENDING.
    2. Lock the balance and re-check availability, which may have changed
       since the request was made.
    3. Deduct, post a DEDUCTION ledger entry, record approver and time.
    4. Commit; any failure rolls back both the status and the deduction.
    """
    request = await _get_leave_or_404(session, leave_id, for_update=True)
    _ensure_transition(request, LeaveStatus.APPROVED)

    leave_type = LeaveType(request.leave_type)
    balance = None
    if has_balance(leave_type):
        balance = await lock_balance(session, request.employee_id)
        if balance is None:
            raise NotFoundError("Leave balance record not found")
        if not check_available(balance, leave_type, request.number_of_days):
            raise InsufficientBalanceError(
                f"Cannot approve: insufficient {leave_type.value} leave balance. "
                f"Available: {current_days(balance, leave_type)}, Required: {request.number_of_days}"
            )

    try:
        if balance is not None:
            deduct(balance, leave_type, request.number_of_days)
            post_ledger_entry(
                session,
                balance,
                leave_type=leave_type,
                entry_type=LedgerEntryType.DEDUCTION,
                amount_days=-request.number_of_days,
                source_id=str(request.id),
                leave_request_id=request.id,
            )

        transition(session, request, LeaveStatus.APPROVED, actor_id=approver_id)
        request.approved_by = approver_id
        request.approved_at = datetime.now(UTC)

        await session.flush()
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("Leave %s approved by %s", request.id, approver_id)
    return _build_leave_response(request)


async def reject_leave(
    session: AsyncSession,
    leave_id: uuid.UUID,
    rejector_id: uuid.UUID,
    reason: str | None,
) -> LeaveRequestResponse:
    """Reject a PENDING request. A reason is mandatory; balances are untouched."""
    if not reason or not reason.strip():
        raise MissingReasonError("Rejection reason is required")

    request = await _get_leave_or_404(session, leave_id, for_update=True)
    transition(session, request, LeaveStatus.REJECTED, actor_id=rejector_id, note=reason.strip())
    request.rejection_reason = reason.strip()

    try:
        await session.flush()
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("Leave %s rejected by %s", request.id, rejector_id)
    return _build_leave_response(request)


async def cancel_leave(
    session: AsyncSession,
    leave_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Cancel a PENDING or APPROVED request on behalf of its owner.

    Cancelling an approved request refunds its days to the matching counter.
    """
    request = await _get_leave_or_404(session, leave_id, for_update=True)

    if request.employee_id != employee_id:
        logger.warning("User %s attempted to cancel leave %s owned by %s", employee_id, leave_id, request.employee_id)
        raise ForbiddenError("You can only cancel your own leave requests")

    previous = _ensure_transition(request, LeaveStatus.CANCELLED)
    leave_type = LeaveType(request.leave_type)

    balance = None
    if previous == LeaveStatus.APPROVED and has_balance(leave_type):
        balance = await lock_balance(session, request.employee_id)
        if balance is None:
            raise NotFoundError("Leave balance record not found")

    try:
        if balance is not None:
            refund(balance, leave_type, request.number_of_days)
            post_ledger_entry(
                session,
                balance,
                leave_type=leave_type,
                entry_type=LedgerEntryType.REFUND,
                amount_days=request.number_of_days,
                source_id=str(request.id),
                leave_request_id=request.id,
            )

        transition(session, request, LeaveStatus.CANCELLED, actor_id=employee_id)

        await session.flush()
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("Leave %s cancelled by employee %s (was %s)", request.id, employee_id, previous.value)
    return _build_leave_response(request)


async def get_leave(session: AsyncSession, leave_id: uuid.UUID) -> LeaveRequestResponse:
    """Get a single leave request by ID."""
    request = await _get_leave_or_404(session, leave_id)
    return _build_leave_response(request)


async def get_leave_history(session: AsyncSession, leave_id: uuid.UUID) -> LeaveRequestHistoryResponse:
    """Get the status transitions of a leave request, oldest first."""
    await _get_leave_or_404(session, leave_id)
    return await list_transitions(session, leave_id)


async def list_leaves(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
    statuses: list[LeaveStatus] | None = None,
    leave_type: LeaveType | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    """List leave requests with optional filters, ordered by created_at DESC.

    ``start_date`` keeps requests starting on or after it; ``end_date`` keeps
    requests ending on or before it.
    """
    filters = []
    if employee_id is not None:
        filters.append(col(LeaveRequest.employee_id) == employee_id)
    if statuses:
        filters.append(col(LeaveRequest.status).in_([s.value for s in statuses]))
    if leave_type is not None:
        filters.append(col(LeaveRequest.leave_type) == leave_type.value)
    if start_date is not None:
        filters.append(col(LeaveRequest.start_date) >= start_date)
    if end_date is not None:
        filters.append(col(LeaveRequest.end_date) <= end_date)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*filters)
        .order_by(col(LeaveRequest.created_at).desc(), col(LeaveRequest.id))
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())

    return LeaveRequestListResponse(
        items=[_build_leave_response(r) for r in requests],
        total=total,
    )
