# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leave_ledger.api.deps import AuthDep
from leave_ledger.db import SessionDep
from leave_ledger.models.enums import LeaveType
from leave_ledger.schemas.balance import BalanceResponse, CreateBalanceRequest, LedgerListResponse
from leave_ledger.services import balance as balance_service

employee_balance_router = APIRouter(
    prefix="/employees/{employee_id}/balance",
    tags=["balances"],
)

employee_ledger_router = APIRouter(
    prefix="/employees/{employee_id}/ledger",
    tags=["balances"],
)


@employee_balance_router.post("", response_model=BalanceResponse, status_code=status.HTTP_201_CREATED)
async def create_employee_balance(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: CreateBalanceRequest | None = None,
) -> BalanceResponse:
    """Create the onboarding balance for an employee."""
    return await balance_service.create_balance(session, employee_id, payload)


@employee_balance_router.get("", response_model=BalanceResponse)
async def get_employee_balance(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> BalanceResponse:
    """Get the current leave counters for an employee."""
    return await balance_service.get_balance(session, employee_id)


@employee_ledger_router.get("", response_model=LedgerListResponse)
async def get_employee_ledger(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    leave_type: LeaveType | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LedgerListResponse:
    """Get paginated ledger entries for an employee."""
    return await balance_service.list_ledger_entries(session, employee_id, leave_type, offset, limit)
