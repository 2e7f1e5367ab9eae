"""Holiday calendar resolver and working-day calculator.

A working day is a date that is neither one of the country's weekend days
nor one of its listed holidays. Countries without a configured calendar fall
back to the default weekend days with no holidays.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leave_ledger.config import get_settings
from leave_ledger.exceptions import InvalidDateRangeError
from leave_ledger.models.holiday import Holiday, HolidayCalendar

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class WorkingCalendar:
    """Weekend days and holiday dates for one country, loaded for a date window."""

    country_code: str
    weekend_days: frozenset[int]
    holiday_dates: frozenset[date]
    configured: bool = True

    def is_non_working_day(self, day: date) -> bool:
        return day.weekday() in self.weekend_days or day in self.holiday_dates


def normalize_country_code(country_code: str) -> str:
    return country_code.strip().upper()


def _as_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidDateRangeError("Invalid start or end date")


def validate_date_range(start: object, end: object) -> tuple[date, date]:
    start_date, end_date = _as_date(start), _as_date(end)
    if start_date > end_date:
        raise InvalidDateRangeError("Start date cannot be after end date")
    return start_date, end_date


async def load_calendar(
    session: AsyncSession,
    country_code: str,
    start: date | None = None,
    end: date | None = None,
) -> WorkingCalendar:
    """Load a country's weekend days and the holidays falling in [start, end].

    Without bounds every holiday of the country is loaded.
    """
    code = normalize_country_code(country_code)
    calendar = await session.get(HolidayCalendar, code)

    if calendar is None:
        logger.warning("No holiday calendar for country %s; using default weekends only", code)
        return WorkingCalendar(
            country_code=code,
            weekend_days=frozenset(get_settings().default_weekend_days),
            holiday_dates=frozenset(),
            configured=False,
        )

    filters = [col(Holiday.country_code) == code]
    if start is not None:
        filters.append(col(Holiday.date) >= start)
    if end is not None:
        filters.append(col(Holiday.date) <= end)

    result = await session.execute(select(col(Holiday.date)).where(*filters))
    return WorkingCalendar(
        country_code=code,
        weekend_days=frozenset(calendar.weekend_days),
        holiday_dates=frozenset(row[0] for row in result.all()),
    )


async def is_non_working_day(session: AsyncSession, day: date, country_code: str) -> bool:
    """Return True if ``day`` is a weekend day or holiday for the country."""
    day = _as_date(day)
    calendar = await load_calendar(session, country_code, day, day)
    return calendar.is_non_working_day(day)


def count_working_days(start: date, end: date, calendar: WorkingCalendar) -> int:
    """Count the working days in the inclusive range [start, end].

    Returns 0 when every day in the range is a weekend day or holiday;
    callers decide whether that is acceptable.
    """
    start, end = validate_date_range(start, end)

    count = 0
    current = start
    while current <= end:
        if not calendar.is_non_working_day(current):
            count += 1
        current += _ONE_DAY
    return count


async def calculate_working_days(
    session: AsyncSession,
    start: date,
    end: date,
    country_code: str,
) -> int:
    """Count working days in [start, end] using the country's calendar."""
    start, end = validate_date_range(start, end)
    calendar = await load_calendar(session, country_code, start, end)
    days = count_working_days(start, end, calendar)
    logger.debug("Working days between %s and %s for %s: %d", start, end, calendar.country_code, days)
    return days
