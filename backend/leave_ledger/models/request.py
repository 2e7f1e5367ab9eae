# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leave_ledger.models.enums import LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An employee's leave request with approval workflow state."""

    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.Index("ix_leave_overlap", "employee_id", "status", "start_date", "end_date"),
        sa.CheckConstraint("number_of_days > 0", name="ck_leave_positive_days"),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_date_order"),
    )

    employee_id: uuid.UUID = Field(index=True, sa_type=sa.Uuid)
    leave_type: str = Field(max_length=50)
    start_date: date
    end_date: date
    number_of_days: int
    reason: str
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    rejection_reason: str | None = None
    approved_by: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
