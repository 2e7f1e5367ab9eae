# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Path, Query, status

from leave_ledger.api.deps import AuthDep
from leave_ledger.db import SessionDep
from leave_ledger.schemas.holiday import (
    CalendarListResponse,
    CalendarResponse,
    CreateHolidayRequest,
    HolidayResponse,
    UpsertCalendarRequest,
    WorkingDaysResponse,
)
from leave_ledger.services import holiday as holiday_service

calendars_router = APIRouter(
    prefix="/calendars",
    tags=["calendars"],
)

COUNTRY_CODE_PATTERN = r"^[A-Za-z]{2}$"


@calendars_router.get("", response_model=CalendarListResponse)
async def list_calendars(
    session: SessionDep,
    auth: AuthDep,
) -> CalendarListResponse:
    """List configured country calendars."""
    return await holiday_service.list_calendars(session)


@calendars_router.put("/{country_code}", response_model=CalendarResponse)
async def upsert_calendar(
    session: SessionDep,
    auth: AuthDep,
    payload: UpsertCalendarRequest,
    country_code: str = Path(pattern=COUNTRY_CODE_PATTERN),
) -> CalendarResponse:
    """Create or update a country calendar, optionally fetching a year of holidays."""
    return await holiday_service.upsert_calendar(session, country_code, payload)


@calendars_router.get("/{country_code}", response_model=CalendarResponse)
async def get_calendar(
    session: SessionDep,
    auth: AuthDep,
    country_code: str = Path(pattern=COUNTRY_CODE_PATTERN),
    year: int | None = Query(default=None),
) -> CalendarResponse:
    """Get a country calendar with its holidays."""
    return await holiday_service.get_calendar(session, country_code, year)


@calendars_router.delete("/{country_code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_calendar(
    session: SessionDep,
    auth: AuthDep,
    country_code: str = Path(pattern=COUNTRY_CODE_PATTERN),
) -> None:
    """Delete a country calendar and its holidays."""
    await holiday_service.delete_calendar(session, country_code)


@calendars_router.post(
    "/{country_code}/holidays",
    response_model=HolidayResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_holiday(
    session: SessionDep,
    auth: AuthDep,
    payload: CreateHolidayRequest,
    country_code: str = Path(pattern=COUNTRY_CODE_PATTERN),
) -> HolidayResponse:
    """Add a holiday to a country calendar."""
    return await holiday_service.add_holiday(session, country_code, payload)


@calendars_router.delete("/{country_code}/holidays/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holiday(
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    country_code: str = Path(pattern=COUNTRY_CODE_PATTERN),
) -> None:
    """Remove a holiday from a country calendar."""
    await holiday_service.delete_holiday(session, country_code, holiday_id)


@calendars_router.get("/{country_code}/working-days", response_model=WorkingDaysResponse)
async def get_working_days(
    session: SessionDep,
    auth: AuthDep,
    start_date: date = Query(),
    end_date: date = Query(),
    country_code: str = Path(pattern=COUNTRY_CODE_PATTERN),
) -> WorkingDaysResponse:
    """Count working days in an inclusive date range for a country."""
    return await holiday_service.get_working_days(session, country_code, start_date, end_date)
