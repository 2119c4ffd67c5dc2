"""
Tests for the chat uvicorn server.

This module tests that a server shutdown notifies connected clients and
closes their sockets before uvicorn tears the connections down.
"""

import json
import socket
import threading
import time
from unittest.mock import AsyncMock, patch

import pytest
import uvicorn
from websockets.exceptions import ConnectionClosed
from websockets.sync.client import connect as ws_connect

from socketchat import application
from socketchat.managers.broadcast_router import BroadcastRouter
from socketchat.server import ChatServer
from tests.mocks.websocket_mocks import events_for


class TestChatServerShutdown:
    """Tests for ChatServer.shutdown ordering."""

    @pytest.mark.asyncio
    async def test_clients_notified_before_uvicorn_shutdown(
        self, registry, connection_manager
    ):
        """Test the chat room is drained before connections are closed."""
        app = application()
        router = BroadcastRouter(registry, connection_manager)
        app.state.broadcast_router = router
        router.on_connect("s1", AsyncMock(), "127.0.0.1")
        server = ChatServer(uvicorn.Config(app), app)

        seen_at_uvicorn_shutdown = {}

        async def uvicorn_shutdown(self, sockets=None):
            seen_at_uvicorn_shutdown["events"] = events_for(
                connection_manager, "s1"
            )
            seen_at_uvicorn_shutdown["closed"] = (
                connection_manager.close_all.await_count
            )

        with patch.object(uvicorn.Server, "shutdown", uvicorn_shutdown):
            await server.shutdown()

        assert seen_at_uvicorn_shutdown["events"][-1] == "server-shutdown"
        assert seen_at_uvicorn_shutdown["closed"] == 1
        connection_manager.close_all.assert_awaited_once_with(
            1001, "server shutdown"
        )

    @pytest.mark.asyncio
    async def test_repeated_shutdown_is_noop(
        self, broadcast_router, connection_manager, connect
    ):
        """Test the lifespan hook after a server shutdown sends nothing more."""
        connect("s1")
        await broadcast_router.shutdown()
        connection_manager.send.reset_mock()

        await broadcast_router.shutdown()

        assert events_for(connection_manager, "s1") == []
        connection_manager.close_all.assert_awaited_once()


def _listening_socket() -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind(("127.0.0.1", 0))
    return sock


def _event(frame: str) -> str:
    return json.loads(frame)["event"]


def _wait_until(predicate, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise TimeoutError("condition not met in time")
        time.sleep(0.05)


def test_server_shutdown_reaches_clients():
    """Test a running server sends server-shutdown and closes with 1001."""
    app = application()
    sock = _listening_socket()
    port = sock.getsockname()[1]
    server = ChatServer(
        uvicorn.Config(app, log_level="warning", lifespan="on"), app
    )
    thread = threading.Thread(target=server.run, kwargs={"sockets": [sock]})
    thread.start()

    try:
        _wait_until(lambda: server.started)

        with ws_connect(f"ws://127.0.0.1:{port}/ws", open_timeout=10) as ws:
            events = [_event(ws.recv(timeout=10)) for _ in range(3)]
            assert events == [
                "welcome",
                "user-count-update",
                "active-users-update",
            ]

            server.should_exit = True

            assert _event(ws.recv(timeout=10)) == "server-shutdown"
            with pytest.raises(ConnectionClosed) as exc_info:
                ws.recv(timeout=10)

        assert exc_info.value.rcvd.code == 1001
    finally:
        server.should_exit = True
        thread.join(timeout=15)
        sock.close()

    assert not thread.is_alive()
    assert app.state.broadcast_router.registry.count() == 0
