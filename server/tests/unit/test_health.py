"""Unit tests for health endpoints."""

import pytest


@pytest.mark.asyncio
async def test_health_ping(test_client):
    """The ping answers with status, timestamp and version."""
    response = await test_client.get("/api/health/ping")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_metrics_text_format(test_client):
    response = await test_client.get("/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
