"""Tests for health check endpoints."""
from unittest.mock import patch


def test_health_check(client):
    """Test basic health check."""
    response = client.get("/api/v1/health/")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root_endpoint(client):
    """Test root endpoint returns API info."""
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "PharmaPOS"
    assert "version" in data
    assert "docs" in data


def test_unknown_route_uses_error_shape(client):
    """Framework errors use the same body as domain errors."""
    response = client.get("/api/v1/does-not-exist")

    assert response.status_code == 404
    assert "error" in response.json()


def test_readiness_with_all_dependencies(client):
    with patch("pharmapos.api.health.redis_client") as redis_client:
        response = client.get("/api/v1/health/ready")

    redis_client.ping.assert_called_once()
    assert response.json() == {"status": "ready", "checks": {"database": True, "cache": True}}


def test_readiness_degrades_without_cache(client):
    with patch("pharmapos.api.health.redis_client") as redis_client:
        redis_client.ping.side_effect = ConnectionError("redis down")
        response = client.get("/api/v1/health/ready")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["checks"]["database"] is True
    assert data["checks"]["cache"] is False
