"""Tests for the health and readiness endpoints."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from api.main import app

client = TestClient(app)


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "version": "0.1.0"}
    assert response.headers["x-request-id"]


def test_ready():
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


def test_not_ready_when_database_unreachable():
    with patch("api.routes.health.AsyncSessionLocal", side_effect=OSError("connection refused")):
        response = client.get("/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


def test_root():
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["version"] == "0.1.0"
