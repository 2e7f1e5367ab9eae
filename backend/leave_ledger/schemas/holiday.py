# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator


class UpsertCalendarRequest(BaseModel):
    """Request body for creating or updating a country calendar.

    When ``fetch_year`` is set the holidays of that year are replaced by the
    ones returned from the holiday provider.
    """

    weekend_days: list[int] | None = Field(default=None, max_length=7)
    fetch_year: int | None = Field(default=None, ge=1900, le=2200)

    @field_validator("weekend_days")
    @classmethod
    def _validate_weekend_days(cls, value: list[int] | None) -> list[int] | None:
        if value is None:
            return value
        if any(day < 0 or day > 6 for day in value):
            msg = "weekend_days must be between 0 (Monday) and 6 (Sunday)"
            raise ValueError(msg)
        return sorted(set(value))


class CreateHolidayRequest(BaseModel):
    """Request body for adding a holiday to a country calendar."""

    date: date
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)


class HolidayResponse(BaseModel):
    """Response schema for a holiday."""

    id: uuid.UUID
    country_code: str
    date: date
    name: str
    description: str | None


class CalendarResponse(BaseModel):
    """A country calendar with its holidays."""

    country_code: str
    weekend_days: list[int]
    last_fetched_year: int | None
    holidays: list[HolidayResponse]
    updated_at: datetime


class CalendarSummary(BaseModel):
    """Country calendar without its holidays."""

    country_code: str
    weekend_days: list[int]
    holiday_count: int


class CalendarListResponse(BaseModel):
    """All configured country calendars."""

    items: list[CalendarSummary]
    total: int


class WorkingDaysResponse(BaseModel):
    """Working-day count for an inclusive date range."""

    country_code: str
    start_date: date
    end_date: date
    working_days: int
