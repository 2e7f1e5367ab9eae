# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UUIDBase


class LeaveRequestEvent(UUIDBase, TimestampMixin, table=True):
    """Immutable record of one status transition of a leave request."""

    __tablename__ = "leave_request_history"

    leave_request_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_requests.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    from_status: str | None = Field(default=None, max_length=50)
    to_status: str = Field(max_length=50)
    actor_id: uuid.UUID = Field(sa_type=sa.Uuid)
    note: str | None = None
