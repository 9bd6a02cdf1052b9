"""Health endpoints served by the full application."""

import pytest
from httpx import ASGITransport, AsyncClient

from tramboory.main import create_app


@pytest.mark.asyncio
async def test_api_health_endpoints():
    """Liveness, readiness and info answer without any seeded data."""
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "tramboory-api"

        response = await client.get("/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"] == "ok"
        assert data["checks"]["workers"] == {
            "scheduled_posts": False,
            "inventory_alerts": False,
            "idempotency_cleanup": False,
        }

        response = await client.get("/info")
        assert response.status_code == 200
        data = response.json()
        assert data["features"]["idempotency"] is True
        assert data["features"]["workers"] is False
        assert data["endpoints"]["metrics"] == "/metrics"


@pytest.mark.asyncio
async def test_metrics_endpoint():
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        await client.get("/api/health/ping")
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.asyncio
async def test_request_id_is_echoed():
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_page_redirects_by_role():
    """Protected pages send visitors to sign in and suppliers to their portal."""
    from tramboory.core.roles import UserRole
    from tramboory.core.dependencies import issue_token

    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/dashboard")
        assert response.status_code == 307
        assert response.headers["location"] == "/auth/sign-in"

        token = issue_token("user_proveedor", UserRole.PROVEEDOR)
        response = await client.get("/dashboard/inventario", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 307
        assert response.headers["location"] == "/proveedor"
