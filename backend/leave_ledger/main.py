from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from leave_ledger.api.health import router as health_router
from leave_ledger.api.router import api_router
from leave_ledger.config import get_settings
from leave_ledger.db import dispose_engine
from leave_ledger.exceptions import setup_exception_handlers
from leave_ledger.middleware import setup_middleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

DESCRIPTION = (
    "Leave balances, requests and approvals. Callers identify themselves with "
    "the X-User-Id header. Scheduled sweeps run in the separate worker process "
    "and can be triggered by hand under /jobs."
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info("Starting %s v%s [%s]", settings.app_name, settings.app_version, settings.environment)
    if not settings.calendarific_api_key:
        logger.warning("CALENDARIFIC_API_KEY is not set; holiday fetches will fail")
    yield
    await dispose_engine()
    logger.info("Stopped %s", settings.app_name)


def create_app() -> FastAPI:
    """Build the API application."""
    settings = get_settings()
    show_docs = settings.environment != "production"

    application = FastAPI(
        title=settings.app_name,
        description=DESCRIPTION,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
    )

    setup_middleware(application, settings)
    setup_exception_handlers(application)

    application.include_router(health_router)
    application.include_router(api_router)

    return application


app = create_app()
