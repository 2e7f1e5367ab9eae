import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from leave_ledger.config import get_settings
from leave_ledger.db import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthChecks(BaseModel):
    """Status of each dependency the service talks to."""

    database: Literal["ok", "unreachable"]
    holiday_provider: Literal["configured", "not_configured"]


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded"]
    service: str
    version: str
    environment: str
    checks: HealthChecks


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Report service health. Needs no identity header.

    A missing Calendarific key does not degrade the service; calendars can
    still be maintained by hand.
    """
    settings = get_settings()

    database: Literal["ok", "unreachable"] = "ok"
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        database = "unreachable"

    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        checks=HealthChecks(
            database=database,
            holiday_provider="configured" if settings.calendarific_api_key else "not_configured",
        ),
    )
