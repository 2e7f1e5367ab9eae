"""Initial schema: balances, requests, history, ledger and holiday calendars.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.create_table(
        "leave_balances",
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("casual_current", sa.Integer(), nullable=False),
        sa.Column("casual_carried", sa.Integer(), nullable=False),
        sa.Column("casual_max_carry_forward", sa.Integer(), nullable=False),
        sa.Column("sick_current", sa.Integer(), nullable=False),
        sa.Column("earned_current", sa.Integer(), nullable=False),
        sa.Column("earned_carried", sa.Integer(), nullable=False),
        sa.Column("earned_max_carry_forward", sa.Integer(), nullable=False),
        sa.Column("maternity_current", sa.Integer(), nullable=False),
        sa.Column("paternity_current", sa.Integer(), nullable=False),
        sa.Column("compensatory_current", sa.Integer(), nullable=False),
        sa.Column("last_reset_date", sa.Date(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.PrimaryKeyConstraint("employee_id"),
        sa.CheckConstraint("casual_current >= 0", name="ck_balance_casual_current"),
        sa.CheckConstraint("casual_carried >= 0", name="ck_balance_casual_carried"),
        sa.CheckConstraint("sick_current >= 0", name="ck_balance_sick_current"),
        sa.CheckConstraint("earned_current >= 0", name="ck_balance_earned_current"),
        sa.CheckConstraint("earned_carried >= 0", name="ck_balance_earned_carried"),
        sa.CheckConstraint("maternity_current >= 0", name="ck_balance_maternity_current"),
        sa.CheckConstraint("paternity_current >= 0", name="ck_balance_paternity_current"),
        sa.CheckConstraint("compensatory_current >= 0", name="ck_balance_compensatory_current"),
    )
    op.create_index("ix_leave_balances_created_at", "leave_balances", ["created_at"])

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("leave_type", sa.String(length=50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("number_of_days", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=50), server_default="PENDING", nullable=False),
        sa.Column("rejection_reason", sa.String(), nullable=True),
        sa.Column("approved_by", sa.Uuid(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("number_of_days > 0", name="ck_leave_positive_days"),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_date_order"),
    )
    op.create_index("ix_leave_requests_created_at", "leave_requests", ["created_at"])
    op.create_index("ix_leave_requests_employee_id", "leave_requests", ["employee_id"])
    op.create_index("ix_leave_requests_status", "leave_requests", ["status"])
    op.create_index("ix_leave_overlap", "leave_requests", ["employee_id", "status", "start_date", "end_date"])

    op.create_table(
        "leave_request_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        _timestamp("created_at"),
        sa.Column("leave_request_id", sa.Uuid(), nullable=False),
        sa.Column("from_status", sa.String(length=50), nullable=True),
        sa.Column("to_status", sa.String(length=50), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("note", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["leave_request_id"], ["leave_requests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_leave_request_history_created_at", "leave_request_history", ["created_at"])
    op.create_index("ix_leave_request_history_leave_request_id", "leave_request_history", ["leave_request_id"])

    op.create_table(
        "leave_ledger_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        _timestamp("created_at"),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("leave_type", sa.String(length=50), nullable=False),
        sa.Column("entry_type", sa.String(length=50), nullable=False),
        sa.Column("amount_days", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("source_id", sa.String(length=255), nullable=False),
        sa.Column("leave_request_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["leave_balances.employee_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("source_id", "leave_type", "entry_type", name="uq_ledger_idempotency"),
    )
    op.create_index("ix_leave_ledger_entries_created_at", "leave_ledger_entries", ["created_at"])
    op.create_index("ix_leave_ledger_entries_employee_id", "leave_ledger_entries", ["employee_id"])
    op.create_index("ix_ledger_employee_type", "leave_ledger_entries", ["employee_id", "leave_type"])

    op.create_table(
        "holiday_calendars",
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.Column("country_code", sa.String(length=2), nullable=False),
        sa.Column("weekend_days", sa.JSON(), nullable=False),
        sa.Column("last_fetched_year", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("country_code"),
    )
    op.create_index("ix_holiday_calendars_created_at", "holiday_calendars", ["created_at"])

    op.create_table(
        "holidays",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("country_code", sa.String(length=2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["country_code"], ["holiday_calendars.country_code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("country_code", "date", name="uq_holiday_country_date"),
    )
    op.create_index("ix_holidays_country_code", "holidays", ["country_code"])


def downgrade() -> None:
    op.drop_table("holidays")
    op.drop_table("holiday_calendars")
    op.drop_table("leave_ledger_entries")
    op.drop_table("leave_request_history")
    op.drop_table("leave_requests")
    op.drop_table("leave_balances")
