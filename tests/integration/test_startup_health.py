# tests/integration/test_startup_health.py

import pytest
from unittest.mock import AsyncMock, patch
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check_endpoint_success(async_client: AsyncClient):
    """
    /health returns 200 when both database and cache answer.
    """
    with patch("app.core.database.db.ping", new_callable=AsyncMock) as mock_db_ping, \
            patch("app.core.cache.cache.ping", new_callable=AsyncMock) as mock_redis_ping:
        mock_db_ping.return_value = True
        mock_redis_ping.return_value = True

        response = await async_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["database"] == "connected"
        assert data["components"]["redis"] == "connected"


@pytest.mark.asyncio
async def test_health_check_db_failure(async_client: AsyncClient):
    with patch("app.core.database.db.ping", new_callable=AsyncMock) as mock_db_ping, \
            patch("app.core.cache.cache.ping", new_callable=AsyncMock) as mock_redis_ping:
        mock_db_ping.return_value = False
        mock_redis_ping.return_value = True

        response = await async_client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["components"]["database"] == "disconnected"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_shape(async_client: AsyncClient):
    response = await async_client.get("/api/v1/nope")

    assert response.status_code == 404
    assert response.json()["success"] is False
