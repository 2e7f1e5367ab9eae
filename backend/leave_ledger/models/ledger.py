# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UUIDBase


class LeaveLedgerEntry(UUIDBase, TimestampMixin, table=True):
    """Append-only record of every change to a balance counter."""

    __tablename__ = "leave_ledger_entries"
    __table_args__ = (
        sa.Index("ix_ledger_employee_type", "employee_id", "leave_type"),
        sa.UniqueConstraint("source_id", "leave_type", "entry_type", name="uq_ledger_idempotency"),
    )

    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_balances.employee_id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    leave_type: str = Field(max_length=50)
    entry_type: str = Field(max_length=50)
    amount_days: int
    balance_after: int
    source_id: str = Field(max_length=255)
    leave_request_id: uuid.UUID | None = Field(default=None, sa_type=sa.Uuid)
