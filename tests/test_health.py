"""
Health endpoint tests.
"""

import pytest
from fastapi.testclient import TestClient

from clinicscribe import __version__
from clinicscribe.app import create_app


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    with TestClient(create_app()) as client:
        yield client


def test_health_endpoint(client):
    """Test that the /health endpoint returns 200 OK."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert "data" in data
    assert data["data"]["status"] == "healthy"
    assert data["data"]["version"] == __version__
    assert data["data"]["store"] == "memory"
    assert data["data"]["active_sessions"] == 0
    assert "timestamp" in data["data"]
    assert "service" in data["data"]


def test_health_trailing_slash(client):
    response = client.get("/health/")
    assert response.status_code == 200
    assert response.json()["success"] is True
