"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the session registry, the broadcast
router (wired to a mocked connection manager) and a live application for
end-to-end WebSocket tests.
"""

import pytest
from fastapi.testclient import TestClient

from tests.mocks.websocket_mocks import (
    create_mock_connection_manager,
    create_mock_websocket,
)


@pytest.fixture
def registry():
    """
    Provides an empty SessionRegistry.

    Returns:
        SessionRegistry: Isolated registry instance
    """
    from socketchat.managers.session_registry import SessionRegistry

    return SessionRegistry()


@pytest.fixture
def connection_manager():
    """
    Provides a mocked ConnectionManager that records queued frames.

    Returns:
        MagicMock: Mocked ConnectionManager instance
    """
    return create_mock_connection_manager()


@pytest.fixture
def broadcast_router(registry, connection_manager):
    """
    Provides a BroadcastRouter over the registry and mocked transport.

    Args:
        registry: SessionRegistry fixture
        connection_manager: Mocked ConnectionManager fixture

    Returns:
        BroadcastRouter: Router with all event handlers loaded
    """
    from socketchat.api.ws.handlers import load_handlers
    from socketchat.managers.broadcast_router import BroadcastRouter

    load_handlers()
    return BroadcastRouter(registry, connection_manager)


@pytest.fixture
def connect(broadcast_router):
    """
    Provides a helper that opens a session on the broadcast router.

    Returns:
        Callable[[str], Session]: Connects the given session ID
    """

    def _connect(session_id: str, remote_address: str = "127.0.0.1"):
        return broadcast_router.on_connect(
            session_id, create_mock_websocket(), remote_address
        )

    return _connect


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Clears the process-wide API rate limiter between tests."""
    from socketchat.utils.rate_limiter import rate_limiter

    rate_limiter.requests.clear()
    yield
    rate_limiter.requests.clear()


@pytest.fixture
def app():
    """
    Create a fresh application with its own chat room.

    Returns:
        FastAPI: FastAPI application instance.
    """
    from socketchat import application

    return application()


@pytest.fixture
def client(app):
    """
    Create a test client that runs the app's lifespan.

    All WebSocket sessions opened through this client share one event loop,
    which the connection manager's writer tasks require.

    Args:
        app: FastAPI application fixture.

    Yields:
        TestClient: FastAPI test client instance.
    """
    with TestClient(app) as test_client:
        yield test_client
