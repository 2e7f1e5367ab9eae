# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UpdatedAtMixin


def _start_of_current_year() -> date:
    return date(date.today().year, 1, 1)


class LeaveBalance(TimestampMixin, UpdatedAtMixin, table=True):
    """Per-employee entitlement counters, one row per employee.

    Casual and earned leave carry part of the unused balance into the next
    year; sick leave resets to its quota; maternity, paternity and
    compensatory leave are granted, never reset.
    """

    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.CheckConstraint("casual_current >= 0", name="ck_balance_casual_current"),
        sa.CheckConstraint("casual_carried >= 0", name="ck_balance_casual_carried"),
        sa.CheckConstraint("sick_current >= 0", name="ck_balance_sick_current"),
        sa.CheckConstraint("earned_current >= 0", name="ck_balance_earned_current"),
        sa.CheckConstraint("earned_carried >= 0", name="ck_balance_earned_carried"),
        sa.CheckConstraint("maternity_current >= 0", name="ck_balance_maternity_current"),
        sa.CheckConstraint("paternity_current >= 0", name="ck_balance_paternity_current"),
        sa.CheckConstraint("compensatory_current >= 0", name="ck_balance_compensatory_current"),
    )

    employee_id: uuid.UUID = Field(primary_key=True, sa_type=sa.Uuid)

    casual_current: int = Field(default=0)
    casual_carried: int = Field(default=0)
    casual_max_carry_forward: int = Field(default=0)

    sick_current: int = Field(default=0)

    earned_current: int = Field(default=0)
    earned_carried: int = Field(default=0)
    earned_max_carry_forward: int = Field(default=0)

    maternity_current: int = Field(default=0)
    paternity_current: int = Field(default=0)
    compensatory_current: int = Field(default=0)

    last_reset_date: date = Field(default_factory=_start_of_current_year)
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
