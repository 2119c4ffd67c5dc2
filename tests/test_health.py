"""Tests for the health check endpoint."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture
def health_app(broadcast_router):
    """
    Create a minimal FastAPI app with only the health endpoint.

    Args:
        broadcast_router: Broadcast router fixture backing the user count.

    Returns:
        FastAPI: FastAPI application instance.
    """
    from socketchat.api.http.health import router

    test_app = FastAPI()
    test_app.include_router(router)
    test_app.state.started_at = 0.0
    test_app.state.broadcast_router = broadcast_router
    return test_app


@pytest.fixture
def health_client(health_app):
    """
    Create a test client for the health-only application.

    Args:
        health_app: FastAPI application fixture.

    Returns:
        TestClient: FastAPI test client instance.
    """
    return TestClient(health_app)


def test_health_endpoint_no_users(health_client):
    """
    Test health endpoint with nobody connected.

    Args:
        health_client: FastAPI test client fixture.
    """
    response = health_client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["activeUsers"] == 0
    assert body["uptime"] > 0
    assert body["timestamp"].endswith("Z")


def test_health_endpoint_counts_users(health_client, connect):
    """
    Test health endpoint reports the number of connected sessions.

    Args:
        health_client: FastAPI test client fixture.
        connect: Session connect helper fixture.
    """
    connect("s1")
    connect("s2")

    response = health_client.get("/health")

    assert response.json()["activeUsers"] == 2


def test_health_endpoint_in_full_app(client):
    """
    Test the health endpoint is mounted on the application.

    Args:
        client: Test client for the full application.
    """
    response = client.get("/health")

    assert response.status_code == 200
    assert set(response.json()) == {"status", "timestamp", "uptime", "activeUsers"}
