# ruff: noqa: TC003
from __future__ import annotations

import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leave_ledger.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase


class HolidayCalendar(TimestampMixin, UpdatedAtMixin, table=True):
    """Weekend configuration for a country; its holidays live in ``holidays``."""

    __tablename__ = "holiday_calendars"

    country_code: str = Field(primary_key=True, max_length=2)
    weekend_days: list[int] = Field(default_factory=lambda: [5, 6], sa_type=sa.JSON)
    last_fetched_year: int | None = None


class Holiday(UUIDBase, table=True):
    """A public holiday that excludes a date from leave deductions."""

    __tablename__ = "holidays"
    __table_args__ = (sa.UniqueConstraint("country_code", "date", name="uq_holiday_country_date"),)

    country_code: str = Field(
        sa_column=sa.Column(
            sa.String(2),
            sa.ForeignKey("holiday_calendars.country_code", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    date: datetime.date
    name: str = Field(max_length=255)
    description: str | None = None
