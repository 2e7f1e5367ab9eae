"""Public-holiday lookups from the Calendarific API."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Protocol, runtime_checkable

import httpx
from pydantic import BaseModel

from leave_ledger.config import get_settings
from leave_ledger.exceptions import HolidayProviderError

logger = logging.getLogger(__name__)


class FetchedHoliday(BaseModel):
    """A holiday returned by an external provider."""

    date: date
    name: str
    description: str | None = None


@runtime_checkable
class HolidayProvider(Protocol):
    """Interface for external holiday sources."""

    async def fetch_holidays(self, country_code: str, year: int) -> list[FetchedHoliday]:
        """Return the public holidays of a country for one year."""
        ...


class CalendarificHolidayProvider:
    """Fetches holidays from https://calendarific.com."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    async def fetch_holidays(self, country_code: str, year: int) -> list[FetchedHoliday]:
        if not self._api_key:
            raise HolidayProviderError("Holiday provider API key is not configured")

        params: dict[str, str | int] = {"api_key": self._api_key, "country": country_code.upper(), "year": year}
        logger.info("Fetching holidays for %s in %d", country_code.upper(), year)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._base_url, params=params)
                response.raise_for_status()
                payload: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as exc:
            raise HolidayProviderError(
                f"Failed to fetch holidays: provider responded with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise HolidayProviderError(f"Failed to fetch holidays: {exc}") from exc
        except ValueError as exc:
            raise HolidayProviderError("Failed to fetch holidays: malformed provider response") from exc

        meta = payload.get("meta") or {}
        if meta.get("code") != 200:
            detail = meta.get("error_detail") or "unknown provider error"
            raise HolidayProviderError(f"Failed to fetch holidays: {detail}")

        raw_holidays = (payload.get("response") or {}).get("holidays")
        if not isinstance(raw_holidays, list):
            return []

        return _parse_holidays(raw_holidays)


def _parse_holidays(raw_holidays: list[dict[str, Any]]) -> list[FetchedHoliday]:
    """Keep holidays with a name and ISO date; the first entry wins for a date."""
    holidays: dict[date, FetchedHoliday] = {}
    for raw in raw_holidays:
        name = raw.get("name")
        iso = (raw.get("date") or {}).get("iso")
        if not name or not iso:
            logger.warning("Skipping holiday with missing name or date: %s", raw)
            continue
        try:
            # Calendarific may append a time component, e.g. 2025-03-30T18:00:00+05:30.
            day = date.fromisoformat(iso[:10])
        except ValueError:
            logger.warning("Skipping holiday with invalid date %s", iso)
            continue
        holidays.setdefault(day, FetchedHoliday(date=day, name=name, description=raw.get("description")))
    return sorted(holidays.values(), key=lambda h: h.date)


_holiday_provider: HolidayProvider | None = None


def get_holiday_provider() -> HolidayProvider:
    """Return the configured provider, building the Calendarific client on first use."""
    global _holiday_provider
    if _holiday_provider is None:
        settings = get_settings()
        _holiday_provider = CalendarificHolidayProvider(
            api_key=settings.calendarific_api_key,
            base_url=settings.calendarific_api_url,
            timeout=settings.holiday_provider_timeout_seconds,
        )
    return _holiday_provider


def set_holiday_provider(provider: HolidayProvider | None) -> None:
    """Override the provider (for testing or production wiring)."""
    global _holiday_provider
    _holiday_provider = provider
