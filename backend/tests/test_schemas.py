"""Unit tests for API request schemas."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from leave_ledger.models.enums import LeaveType
from leave_ledger.schemas.balance import CreateBalanceRequest
from leave_ledger.schemas.employee import UpsertEmployeeRequest
from leave_ledger.schemas.holiday import CreateHolidayRequest, UpsertCalendarRequest
from leave_ledger.schemas.request import ApplyLeavePayload, RejectionPayload

# ---------------------------------------------------------------------------
# Leave requests
# ---------------------------------------------------------------------------


def test_apply_leave_payload_valid() -> None:
    payload = ApplyLeavePayload(
        leave_type=LeaveType.SICK,
        start_date=date(2025, 1, 6),
        end_date=date(2025, 1, 6),
        reason="Fever",
    )
    assert payload.leave_type == LeaveType.SICK


def test_apply_leave_payload_accepts_reversed_dates() -> None:
    """Date order is checked by the service, not the schema."""
    payload = ApplyLeavePayload(
        leave_type="CASUAL",
        start_date=date(2025, 1, 10),
        end_date=date(2025, 1, 6),
        reason="Trip",
    )
    assert payload.start_date > payload.end_date


def test_apply_leave_payload_rejects_unknown_type() -> None:
    with pytest.raises(ValidationError):
        ApplyLeavePayload(
            leave_type="SABBATICAL",
            start_date=date(2025, 1, 6),
            end_date=date(2025, 1, 6),
            reason="Rest",
        )


def test_apply_leave_payload_rejects_empty_reason() -> None:
    with pytest.raises(ValidationError):
        ApplyLeavePayload(
            leave_type="CASUAL",
            start_date=date(2025, 1, 6),
            end_date=date(2025, 1, 6),
            reason="",
        )


def test_rejection_payload_reason_optional() -> None:
    assert RejectionPayload().reason is None


# ---------------------------------------------------------------------------
# Calendars
# ---------------------------------------------------------------------------


def test_upsert_calendar_sorts_and_dedupes_weekend_days() -> None:
    payload = UpsertCalendarRequest(weekend_days=[6, 4, 6])
    assert payload.weekend_days == [4, 6]
    assert payload.fetch_year is None


def test_upsert_calendar_rejects_out_of_range_weekday() -> None:
    with pytest.raises(ValidationError):
        UpsertCalendarRequest(weekend_days=[7])


def test_create_holiday_requires_name() -> None:
    with pytest.raises(ValidationError):
        CreateHolidayRequest(date=date(2025, 8, 15), name="")


# ---------------------------------------------------------------------------
# Balances and employees
# ---------------------------------------------------------------------------


def test_create_balance_request_defaults_to_zero_grants() -> None:
    payload = CreateBalanceRequest()
    assert (payload.maternity, payload.paternity, payload.compensatory) == (0, 0, 0)


def test_create_balance_request_rejects_negative_grant() -> None:
    with pytest.raises(ValidationError):
        CreateBalanceRequest(compensatory=-1)


def test_upsert_employee_requires_two_letter_country() -> None:
    with pytest.raises(ValidationError):
        UpsertEmployeeRequest(name="Asha", email="asha@example.com", country_code="IND")
