"""Tests for health endpoints."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient


def test_health_endpoint(test_client: TestClient) -> None:
    """Test the basic health endpoint."""
    response = test_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


def test_liveness_endpoint(test_client: TestClient) -> None:
    """Test the liveness probe endpoint."""
    response = test_client.get("/health/live")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "alive"


def test_root_endpoint(test_client: TestClient) -> None:
    """Test the root endpoint."""
    response = test_client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert "name" in data
    assert "version" in data
    assert "docs" in data


def test_health_reports_providers(test_client: TestClient) -> None:
    """Test that the configured providers are reported."""
    data = test_client.get("/health").json()

    assert data["providers"] == {
        "llm": "stub",
        "voiceover": "stub",
        "video_gen": "stub",
        "renderer": "stub",
    }


@pytest.mark.parametrize(
    ("database", "redis_ok", "ready"),
    [(True, True, True), (True, False, False), (False, True, False)],
)
def test_readiness_endpoint(test_client: TestClient, database: bool, redis_ok: bool, ready: bool) -> None:
    """Test the readiness probe combines database and Redis checks."""
    with (
        patch("vidgen_engine.api.routes.health.check_database", return_value=database),
        patch("vidgen_engine.api.routes.health.check_redis", return_value=redis_ok),
    ):
        response = test_client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"ready": ready, "database": database, "redis": redis_ok}
