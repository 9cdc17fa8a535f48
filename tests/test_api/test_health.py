"""Tests for health endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from medibook.api.routes import health


@pytest.fixture
def mock_app():
    """Create a test application with a mocked database handle."""
    app = FastAPI()
    app.include_router(health.router)

    app.state.database = MagicMock()
    app.state.database.ping = AsyncMock(return_value=None)

    return app


@pytest.fixture
def mock_client(mock_app):
    """Create a test client."""
    return TestClient(mock_app)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, mock_client):
        response = mock_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "medibook"

    def test_liveness_check(self, mock_client):
        response = mock_client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness_check_success(self, mock_client):
        """Test readiness check when the database answers."""
        response = mock_client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "database": "ok"}

    def test_readiness_check_database_down(self, mock_client, mock_app):
        """Test readiness check when the database is unreachable."""
        mock_app.state.database.ping = AsyncMock(side_effect=ConnectionError("refused"))

        response = mock_client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "not_ready"
        assert "refused" in response.json()["errors"][0]


async def test_readiness_against_real_database(client):
    response = await client.get("/health/ready")
    assert response.json()["status"] == "ready"
