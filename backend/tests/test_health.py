from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from leave_ledger.config import Settings
from leave_ledger.db import _engine_options, get_session
from leave_ledger.main import app

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


async def test_health_returns_200(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    assert response.status_code == 200


async def test_health_response_body(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    data = response.json()
    assert data == {
        "status": "ok",
        "service": "Leave Ledger",
        "version": "0.1.0",
        "environment": "development",
        "checks": {"database": "ok", "holiday_provider": "not_configured"},
    }


async def test_health_needs_no_identity(async_client: AsyncClient) -> None:
    """Probes from load balancers carry no X-User-Id header."""
    response = await async_client.get("/health", headers={})
    assert response.status_code == 200


async def test_health_degraded_on_db_failure() -> None:
    """GET /health returns degraded status when the database is unreachable."""
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.execute.side_effect = ConnectionError("DB unreachable")

    async def _broken_session() -> AsyncIterator[AsyncSession]:
        yield mock_session

    app.dependency_overrides[get_session] = _broken_session
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["database"] == "unreachable"
    finally:
        app.dependency_overrides.clear()


async def test_responses_carry_process_time(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    assert float(response.headers["X-Process-Time"]) >= 0


async def test_requests_are_access_logged(async_client: AsyncClient, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="leave_ledger.middleware"):
        await async_client.get("/employees", headers={"X-User-Id": "11111111-1111-1111-1111-111111111111"})
        await async_client.get("/health")

    messages = [r.getMessage() for r in caplog.records if r.name == "leave_ledger.middleware"]
    assert len(messages) == 1
    assert messages[0].startswith("GET /employees -> 200")
    assert "user=11111111-1111-1111-1111-111111111111" in messages[0]


def test_engine_options_pool_only_for_server_databases() -> None:
    postgres = _engine_options(Settings(database_url="postgresql+asyncpg://u:p@db/x", database_pool_size=3))
    sqlite = _engine_options(Settings(database_url="sqlite+aiosqlite://"))

    assert postgres["pool_size"] == 3
    assert postgres["pool_pre_ping"] is True
    assert "pool_size" not in sqlite
