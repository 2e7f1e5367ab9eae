# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from leave_ledger.api.deps import AuthDep
from leave_ledger.db import SessionDep
from leave_ledger.models.enums import LeaveStatus, LeaveType
from leave_ledger.schemas.request import (
    ApplyLeavePayload,
    LeaveRequestHistoryResponse,
    LeaveRequestListResponse,
    LeaveRequestResponse,
    RejectionPayload,
)
from leave_ledger.services import request as request_service

requests_router = APIRouter(
    prefix="/leaves",
    tags=["leaves"],
)


@requests_router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def apply_leave(
    payload: ApplyLeavePayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Apply for leave as the acting employee."""
    return await request_service.apply_leave(
        session,
        auth.user_id,
        payload.leave_type,
        payload.start_date,
        payload.end_date,
        payload.reason,
    )


@requests_router.get("", response_model=LeaveRequestListResponse)
async def list_leaves(
    session: SessionDep,
    auth: AuthDep,
    employee_id: uuid.UUID | None = Query(default=None),
    status_filter: list[LeaveStatus] | None = Query(default=None, alias="status"),
    leave_type: LeaveType | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """List leave requests with optional filters, newest first."""
    return await request_service.list_leaves(
        session, employee_id, status_filter, leave_type, start_date, end_date, offset, limit
    )


@requests_router.get("/{leave_id}", response_model=LeaveRequestResponse)
async def get_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Get a single leave request."""
    return await request_service.get_leave(session, leave_id)


@requests_router.get("/{leave_id}/history", response_model=LeaveRequestHistoryResponse)
async def get_leave_history(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestHistoryResponse:
    """Get the status transitions of a leave request."""
    return await request_service.get_leave_history(session, leave_id)


@requests_router.post("/{leave_id}/approve", response_model=LeaveRequestResponse)
async def approve_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Approve a pending leave request and deduct its days."""
    return await request_service.approve_leave(session, leave_id, auth.user_id)


@requests_router.post("/{leave_id}/reject", response_model=LeaveRequestResponse)
async def reject_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: RejectionPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a pending leave request. A reason is required."""
    reason = payload.reason if payload else None
    return await request_service.reject_leave(session, leave_id, auth.user_id, reason)


@requests_router.post("/{leave_id}/cancel", response_model=LeaveRequestResponse)
async def cancel_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Cancel your own pending or approved leave request."""
    return await request_service.cancel_leave(session, leave_id, auth.user_id)
