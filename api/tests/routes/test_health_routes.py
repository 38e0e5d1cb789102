"""Route tests for health endpoints."""

import pytest

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "ecotrack-api"}

    async def test_detailed(self, client):
        response = await client.get("/health/detailed")
        assert response.status_code == 200
        data = response.json()
        assert data["database"] is True
        assert data["pool"] is None

    async def test_ready(self, client):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_not_ready_until_init(self, app, client):
        app.state.init_done = False
        response = await client.get("/ready")
        assert response.status_code == 503

    async def test_security_headers(self, client):
        response = await client.get("/health")
        assert response.headers["x-content-type-options"] == "nosniff"
        assert "x-request-id" in response.headers
