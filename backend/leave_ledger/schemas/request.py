# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from leave_ledger.models.enums import LeaveStatus, LeaveType

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ApplyLeavePayload(BaseModel):
    """Request body for applying for leave.

    Date ordering is checked by the service so that it is reported as an
    invalid date range rather than a schema error.
    """

    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(min_length=1, max_length=2000)


class RejectionPayload(BaseModel):
    """Request body for rejecting a leave request."""

    reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    number_of_days: int
    reason: str
    status: LeaveStatus
    rejection_reason: str | None
    approved_by: uuid.UUID | None
    approved_at: datetime | None
    created_at: datetime
    updated_at: datetime


class LeaveRequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveRequestResponse]
    total: int


class LeaveRequestEventResponse(BaseModel):
    """One status transition of a leave request."""

    id: uuid.UUID
    leave_request_id: uuid.UUID
    from_status: LeaveStatus | None
    to_status: LeaveStatus
    actor_id: uuid.UUID
    note: str | None
    created_at: datetime


class LeaveRequestHistoryResponse(BaseModel):
    """Ordered transition history of a leave request."""

    items: list[LeaveRequestEventResponse]
    total: int
