from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from leave_ledger.config import get_settings
from leave_ledger.exceptions import ConflictError, NotFoundError
from leave_ledger.models.holiday import Holiday, HolidayCalendar
from leave_ledger.schemas.holiday import (
    CalendarListResponse,
    CalendarResponse,
    CalendarSummary,
    HolidayResponse,
    WorkingDaysResponse,
)
from leave_ledger.services.calendar import calculate_working_days, normalize_country_code, validate_date_range
from leave_ledger.services.holiday_provider import get_holiday_provider

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from leave_ledger.schemas.holiday import CreateHolidayRequest, UpsertCalendarRequest
    from leave_ledger.services.holiday_provider import HolidayProvider

logger = logging.getLogger(__name__)


def _build_holiday_response(holiday: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        country_code=holiday.country_code,
        date=holiday.date,
        name=holiday.name,
        description=holiday.description,
    )


def _build_calendar_response(calendar: HolidayCalendar, holidays: list[Holiday]) -> CalendarResponse:
    return CalendarResponse(
        country_code=calendar.country_code,
        weekend_days=list(calendar.weekend_days),
        last_fetched_year=calendar.last_fetched_year,
        holidays=[_build_holiday_response(h) for h in holidays],
        updated_at=calendar.updated_at,
    )


async def _get_calendar_or_404(session: AsyncSession, country_code: str) -> HolidayCalendar:
    calendar = await session.get(HolidayCalendar, country_code)
    if calendar is None:
        raise NotFoundError(f"Holiday calendar for {country_code} not found")
    return calendar


async def _list_holidays(session: AsyncSession, country_code: str, year: int | None = None) -> list[Holiday]:
    filters = [col(Holiday.country_code) == country_code]
    if year is not None:
        filters.append(col(Holiday.date) >= date(year, 1, 1))
        filters.append(col(Holiday.date) <= date(year, 12, 31))
    result = await session.execute(select(Holiday).where(*filters).order_by(col(Holiday.date)))
    return list(result.scalars().all())


async def upsert_calendar(
    session: AsyncSession,
    country_code: str,
    payload: UpsertCalendarRequest,
    provider: HolidayProvider | None = None,
) -> CalendarResponse:
    """Create or update a country calendar.

    With ``fetch_year`` set, that year's holidays are replaced by the ones
    returned from the holiday provider; other years are left alone.
    """
    code = normalize_country_code(country_code)

    fetched = None
    if payload.fetch_year is not None:
        provider = provider or get_holiday_provider()
        fetched = await provider.fetch_holidays(code, payload.fetch_year)

    calendar = await session.get(HolidayCalendar, code)
    if calendar is None:
        weekend_days = payload.weekend_days
        if weekend_days is None:
            weekend_days = list(get_settings().default_weekend_days)
        calendar = HolidayCalendar(country_code=code, weekend_days=weekend_days)
        session.add(calendar)
        await session.flush()
        logger.info("Created holiday calendar for %s", code)
    elif payload.weekend_days is not None:
        calendar.weekend_days = list(payload.weekend_days)

    if fetched is not None and payload.fetch_year is not None:
        year = payload.fetch_year
        await session.execute(
            delete(Holiday).where(
                col(Holiday.country_code) == code,
                col(Holiday.date) >= date(year, 1, 1),
                col(Holiday.date) <= date(year, 12, 31),
            )
        )
        for item in fetched:
            session.add(Holiday(country_code=code, date=item.date, name=item.name, description=item.description))
        calendar.last_fetched_year = year
        logger.info("Stored %d holidays for %s in %d", len(fetched), code, year)

    try:
        await session.flush()
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    holidays = await _list_holidays(session, code)
    return _build_calendar_response(calendar, holidays)


async def get_calendar(session: AsyncSession, country_code: str, year: int | None = None) -> CalendarResponse:
    """Get a country calendar with its holidays, optionally limited to one year."""
    code = normalize_country_code(country_code)
    calendar = await _get_calendar_or_404(session, code)
    holidays = await _list_holidays(session, code, year)
    return _build_calendar_response(calendar, holidays)


async def list_calendars(session: AsyncSession) -> CalendarListResponse:
    """List every configured calendar with its holiday count."""
    counts = (
        select(col(Holiday.country_code), func.count().label("holiday_count"))
        .group_by(col(Holiday.country_code))
        .subquery()
    )
    result = await session.execute(
        select(HolidayCalendar, func.coalesce(counts.c.holiday_count, 0))
        .outerjoin(counts, counts.c.country_code == col(HolidayCalendar.country_code))
        .order_by(col(HolidayCalendar.country_code))
    )
    rows = result.all()
    return CalendarListResponse(
        items=[
            CalendarSummary(
                country_code=calendar.country_code,
                weekend_days=list(calendar.weekend_days),
                holiday_count=holiday_count,
            )
            for calendar, holiday_count in rows
        ],
        total=len(rows),
    )


async def delete_calendar(session: AsyncSession, country_code: str) -> None:
    """Delete a calendar and all its holidays."""
    code = normalize_country_code(country_code)
    calendar = await _get_calendar_or_404(session, code)

    await session.execute(delete(Holiday).where(col(Holiday.country_code) == code))
    await session.delete(calendar)
    await session.commit()
    logger.info("Deleted holiday calendar for %s", code)


async def add_holiday(
    session: AsyncSession,
    country_code: str,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Add a holiday to an existing calendar. One holiday per date."""
    code = normalize_country_code(country_code)
    await _get_calendar_or_404(session, code)

    holiday = Holiday(country_code=code, date=payload.date, name=payload.name, description=payload.description)
    session.add(holiday)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise ConflictError(f"Holiday already exists for {code} on {payload.date.isoformat()}") from None

    await session.commit()
    return _build_holiday_response(holiday)


async def delete_holiday(session: AsyncSession, country_code: str, holiday_id: uuid.UUID) -> None:
    """Remove a holiday from a calendar."""
    code = normalize_country_code(country_code)
    result = await session.execute(
        select(Holiday).where(
            col(Holiday.id) == holiday_id,
            col(Holiday.country_code) == code,
        )
    )
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise NotFoundError("Holiday not found")

    await session.delete(holiday)
    await session.commit()


async def get_working_days(
    session: AsyncSession,
    country_code: str,
    start_date: date,
    end_date: date,
) -> WorkingDaysResponse:
    """Count working days in [start_date, end_date] for a country."""
    code = normalize_country_code(country_code)
    start_date, end_date = validate_date_range(start_date, end_date)
    days = await calculate_working_days(session, start_date, end_date, code)
    return WorkingDaysResponse(country_code=code, start_date=start_date, end_date=end_date, working_days=days)
