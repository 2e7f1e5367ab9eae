"""Tests for the auto-reject and year-end rollover sweeps.

Covers stale-request selection, idempotency, per-item failure isolation,
carry-forward caps, sick reset, rollover skipping and the manual triggers.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from leave_ledger.models.enums import LeaveStatus, LeaveType
from leave_ledger.schemas.balance import CreateBalanceRequest
from leave_ledger.services import sweeps
from leave_ledger.services.balance import create_balance, get_balance, list_ledger_entries
from leave_ledger.services.employee import EmployeeInfo, InMemoryEmployeeDirectory, set_employee_directory
from leave_ledger.services.history import SYSTEM_ACTOR
from leave_ledger.services.request import apply_leave, approve_leave, get_leave, get_leave_history
from leave_ledger.services.sweeps import run_auto_reject_sweep, run_year_end_rollover

if TYPE_CHECKING:
    from collections.abc import Iterator

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

EMPLOYEE_ID = uuid.uuid4()
OTHER_EMPLOYEE_ID = uuid.uuid4()
MANAGER_ID = uuid.uuid4()
AUTH_HEADERS = {"X-User-Id": str(MANAGER_ID)}

AUTO_REJECT_REASON = "Request automatically rejected after 7 days of pending status."


@pytest.fixture(autouse=True)
def _seed_employee_directory() -> Iterator[None]:
    directory = InMemoryEmployeeDirectory()
    for employee_id, name in ((EMPLOYEE_ID, "Asha Rao"), (OTHER_EMPLOYEE_ID, "Rahul Mehta")):
        directory.seed(EmployeeInfo(id=employee_id, name=name, email=f"{employee_id}@example.com", country_code="IN"))
    set_employee_directory(directory)
    yield
    set_employee_directory(InMemoryEmployeeDirectory())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _onboard(session: AsyncSession, employee_id: uuid.UUID = EMPLOYEE_ID, year: int = 2025) -> None:
    await create_balance(session, employee_id, today=date(year, 6, 1))


async def _apply(
    session: AsyncSession,
    start: date = date(2025, 1, 6),
    end: date = date(2025, 1, 8),
    employee_id: uuid.UUID = EMPLOYEE_ID,
    leave_type: LeaveType = LeaveType.CASUAL,
) -> uuid.UUID:
    leave = await apply_leave(session, employee_id, leave_type, start, end, "Personal work")
    return leave.id


def _in_days(days: int) -> datetime:
    return datetime.now(UTC) + timedelta(days=days)


# ---------------------------------------------------------------------------
# Auto-reject
# ---------------------------------------------------------------------------


async def test_auto_reject_stale_pending_request(db_session: AsyncSession) -> None:
    await _onboard(db_session)
    leave_id = await _apply(db_session)

    result = await run_auto_reject_sweep(db_session, _in_days(8))

    assert result.rejected_count == 1
    assert result.error_count == 0
    assert result.threshold_days == 7

    leave = await get_leave(db_session, leave_id)
    assert leave.status == LeaveStatus.AUTO_REJECTED
    assert leave.rejection_reason == AUTO_REJECT_REASON

    history = await get_leave_history(db_session, leave_id)
    last = history.items[-1]
    assert (last.from_status, last.to_status) == (LeaveStatus.PENDING, LeaveStatus.AUTO_REJECTED)
    assert last.actor_id == SYSTEM_ACTOR

    balance = await get_balance(db_session, EMPLOYEE_ID)
    assert balance.casual.current == 12


async def test_auto_reject_leaves_recent_requests(db_session: AsyncSession) -> None:
    await _onboard(db_session)
    leave_id = await _apply(db_session)

    result = await run_auto_reject_sweep(db_session, _in_days(6))

    assert result.rejected_count == 0
    assert (await get_leave(db_session, leave_id)).status == LeaveStatus.PENDING


async def test_auto_reject_ignores_decided_requests(db_session: AsyncSession) -> None:
    await _onboard(db_session)
    approved_id = await _apply(db_session)
    await approve_leave(db_session, approved_id, MANAGER_ID)

    result = await run_auto_reject_sweep(db_session, _in_days(30))

    assert result.rejected_count == 0
    assert (await get_leave(db_session, approved_id)).status == LeaveStatus.APPROVED
    assert (await get_balance(db_session, EMPLOYEE_ID)).casual.current == 9


async def test_auto_reject_twice_is_noop(db_session: AsyncSession) -> None:
    await _onboard(db_session)
    await _apply(db_session)
    await _apply(db_session, date(2025, 2, 3), date(2025, 2, 3))

    first = await run_auto_reject_sweep(db_session, _in_days(8))
    second = await run_auto_reject_sweep(db_session, _in_days(8))

    assert first.rejected_count == 2
    assert second.rejected_count == 0
    assert second.error_count == 0


async def test_auto_reject_custom_threshold(db_session: AsyncSession) -> None:
    await _onboard(db_session)
    await _apply(db_session)

    result = await run_auto_reject_sweep(db_session, _in_days(1), threshold_days=0)

    assert result.rejected_count == 1
    assert result.threshold_days == 0


async def test_auto_reject_failure_does_not_abort_run(
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    await _onboard(db_session)
    await _onboard(db_session, OTHER_EMPLOYEE_ID)
    failing_id = await _apply(db_session)
    healthy_id = await _apply(db_session, employee_id=OTHER_EMPLOYEE_ID)

    original = sweeps.transition

    def _flaky_transition(session: Any, request: Any, *args: Any, **kwargs: Any) -> Any:
        if request.id == failing_id:
            raise RuntimeError("simulated failure")
        return original(session, request, *args, **kwargs)

    monkeypatch.setattr(sweeps, "transition", _flaky_transition)
    result = await run_auto_reject_sweep(db_session, _in_days(8))

    assert result.rejected_count == 1
    assert result.error_count == 1
    assert (await get_leave(db_session, healthy_id)).status == LeaveStatus.AUTO_REJECTED
    assert (await get_leave(db_session, failing_id)).status == LeaveStatus.PENDING

    monkeypatch.setattr(sweeps, "transition", original)
    retry = await run_auto_reject_sweep(db_session, _in_days(8))
    assert retry.rejected_count == 1
    assert (await get_leave(db_session, failing_id)).status == LeaveStatus.AUTO_REJECTED


# ---------------------------------------------------------------------------
# Year-end rollover
# ---------------------------------------------------------------------------


async def test_rollover_carries_forward_and_resets(db_session: AsyncSession) -> None:
    await _onboard(db_session)
    leave_id = await _apply(db_session)
    await approve_leave(db_session, leave_id, MANAGER_ID)

    result = await run_year_end_rollover(db_session, date(2026, 1, 1))

    assert (result.updated_count, result.skipped_count, result.error_count) == (1, 0, 0)
    balance = await get_balance(db_session, EMPLOYEE_ID)
    assert (balance.casual.carried, balance.casual.current) == (5, 17)
    assert (balance.earned.carried, balance.earned.current) == (15, 30)
    assert balance.sick.current == 10
    assert balance.last_reset_date == date(2026, 1, 1)

    ledger = await list_ledger_entries(db_session, EMPLOYEE_ID)
    by_type = {(e.leave_type, e.entry_type): e for e in ledger.items}
    casual = by_type[(LeaveType.CASUAL, "CARRY_FORWARD")]
    assert (casual.amount_days, casual.balance_after) == (8, 17)
    assert by_type[(LeaveType.SICK, "ANNUAL_RESET")].amount_days == 0


async def test_rollover_twice_is_noop(db_session: AsyncSession) -> None:
    await _onboard(db_session)

    first = await run_year_end_rollover(db_session, date(2026, 1, 1))
    snapshot = await get_balance(db_session, EMPLOYEE_ID)
    second = await run_year_end_rollover(db_session, date(2026, 1, 1))

    assert first.updated_count == 1
    assert (second.updated_count, second.skipped_count) == (0, 1)
    after = await get_balance(db_session, EMPLOYEE_ID)
    assert after.casual == snapshot.casual
    assert after.earned == snapshot.earned
    assert after.sick == snapshot.sick
    assert (await list_ledger_entries(db_session, EMPLOYEE_ID)).total == 3


async def test_rollover_skips_balances_already_current(db_session: AsyncSession) -> None:
    await _onboard(db_session, year=2026)

    result = await run_year_end_rollover(db_session, date(2026, 1, 1))

    assert (result.updated_count, result.skipped_count) == (0, 1)
    assert (await get_balance(db_session, EMPLOYEE_ID)).casual.current == 12


async def test_rollover_failure_is_isolated(
    db_session: AsyncSession,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    await _onboard(db_session)
    await _onboard(db_session, OTHER_EMPLOYEE_ID)

    original = sweeps.roll_over_year_end

    def _flaky_rollover(balance: Any, today: date, quotas: Any) -> Any:
        if balance.employee_id == EMPLOYEE_ID:
            raise RuntimeError("simulated failure")
        return original(balance, today, quotas)

    monkeypatch.setattr(sweeps, "roll_over_year_end", _flaky_rollover)
    result = await run_year_end_rollover(db_session, date(2026, 1, 1))

    assert (result.updated_count, result.error_count) == (1, 1)
    assert (await get_balance(db_session, EMPLOYEE_ID)).last_reset_date == date(2025, 1, 1)
    assert (await get_balance(db_session, OTHER_EMPLOYEE_ID)).last_reset_date == date(2026, 1, 1)

    monkeypatch.setattr(sweeps, "roll_over_year_end", original)
    retry = await run_year_end_rollover(db_session, date(2026, 1, 1))
    assert (retry.updated_count, retry.skipped_count) == (1, 1)


async def test_rollover_leaves_granted_types_alone(db_session: AsyncSession) -> None:
    await create_balance(db_session, EMPLOYEE_ID, CreateBalanceRequest(paternity=15), today=date(2025, 6, 1))

    await run_year_end_rollover(db_session, date(2026, 1, 1))

    assert (await get_balance(db_session, EMPLOYEE_ID)).paternity.current == 15


# ---------------------------------------------------------------------------
# Manual triggers
# ---------------------------------------------------------------------------


async def test_trigger_auto_reject_endpoint(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await _onboard(db_session)
    await _apply(db_session)

    resp = await async_client.post(
        "/jobs/auto-reject",
        params={"now": _in_days(8).isoformat()},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["rejected_count"] == 1
    assert data["threshold_days"] == 7


async def test_trigger_rollover_endpoint(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await _onboard(db_session)

    resp = await async_client.post(
        "/jobs/year-end-rollover",
        params={"today": "2026-01-01"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "target_date": "2026-01-01",
        "updated_count": 1,
        "skipped_count": 0,
        "error_count": 0,
    }
