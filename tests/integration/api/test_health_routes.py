"""Integration tests for health and info endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore import __version__
from tenantcore.config import settings


pytestmark = pytest.mark.integration


async def test_liveness(client: AsyncClient):
    response = await client.get("/api/v1/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


async def test_readiness(client: AsyncClient):
    response = await client.get("/api/v1/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": "ok"}}


async def test_readiness_degraded(
    client: AsyncClient, db: AsyncSession, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setattr(db, "execute", AsyncMock(side_effect=RuntimeError("db down")))

    response = await client.get("/api/v1/health/ready")

    assert response.status_code == 503
    assert response.json()["checks"]["database"] == "db down"


async def test_info(client: AsyncClient):
    response = await client.get("/api/v1/info")

    assert response.json() == {
        "app": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "payment_provider": settings.payment_provider,
    }
