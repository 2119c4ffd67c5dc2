import asyncio
from dataclasses import dataclass, field

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from socketchat.constants import WS_CLOSE_TIMEOUT_SECONDS
from socketchat.logging import logger
from socketchat.utils.metrics import ws_messages_sent_total


@dataclass(frozen=True)
class CloseFrame:
    """Queued instruction to close the socket once earlier frames are sent."""

    code: int
    reason: str = ""


@dataclass
class OutboundConnection:
    """
    Outbound side of one WebSocket connection.

    Frames are queued without awaiting and written in order by a dedicated
    writer task, so producers never block on a slow or dead socket.
    """

    session_id: str
    websocket: WebSocket
    queue: asyncio.Queue[str | CloseFrame] = field(
        default_factory=asyncio.Queue
    )
    writer: asyncio.Task[None] | None = None

    @property
    def writable(self) -> bool:
        """False once the writer has stopped after a close or a send failure."""
        return self.writer is not None and not self.writer.done()


class ConnectionManager:
    """
    Manager for open WebSocket connections.

    Tracks connections by session ID and delivers pre-serialized frames to a
    single connection. Fan-out (all, all-but-sender) is decided by the caller
    from the session registry; this class only knows how to reach one socket.
    """

    def __init__(self) -> None:
        """
        Initializes a new instance of the `ConnectionManager` class.

        The `connections` attribute is a dict mapping session IDs to their
        outbound queue and writer task.
        """
        self.connections: dict[str, OutboundConnection] = {}

    def connect(self, session_id: str, websocket: WebSocket) -> None:
        """
        Adds a WebSocket connection and starts its writer task.

        Must be called from within the running event loop.

        Args:
            session_id: Unique identifier for this connection.
            websocket: The accepted WebSocket connection.
        """
        connection = OutboundConnection(session_id, websocket)
        connection.writer = asyncio.create_task(
            self._write_loop(connection), name=f"ws-writer-{session_id}"
        )
        self.connections[session_id] = connection
        logger.debug(
            f"websocket object ({id(websocket)}) added to active connections "
            f"with key {session_id}"
        )

    def disconnect(self, session_id: str) -> None:
        """
        Removes a connection and stops its writer task.

        Frames still queued for this connection are dropped; frames queued for
        other connections are unaffected.

        Args:
            session_id: The session ID of the connection to remove.
        """
        connection = self.connections.pop(session_id, None)
        if connection is None:
            return

        if connection.writer is not None and not connection.writer.done():
            connection.writer.cancel()
        logger.debug(
            f"websocket object ({id(connection.websocket)}) removed from "
            f"active connections for key {session_id}"
        )

    def is_connected(self, session_id: str) -> bool:
        return session_id in self.connections

    def send(self, session_id: str, text: str) -> bool:
        """
        Queues a text frame for one connection without waiting for delivery.

        Args:
            session_id: Target connection.
            text: Serialized frame.

        Returns:
            True if the frame was queued, False if the connection is gone
            or can no longer be written to.
        """
        connection = self.connections.get(session_id)
        if connection is None or not connection.writable:
            return False

        connection.queue.put_nowait(text)
        return True

    def close(self, session_id: str, code: int, reason: str = "") -> None:
        """
        Queues a close for one connection after its pending frames.

        Args:
            session_id: Target connection.
            code: WebSocket close code.
            reason: Close reason sent to the client.
        """
        connection = self.connections.get(session_id)
        if connection is not None:
            connection.queue.put_nowait(CloseFrame(code, reason))

    async def close_all(self, code: int, reason: str = "") -> None:
        """
        Closes every connection once its queued frames have been written.

        Waits up to WS_CLOSE_TIMEOUT_SECONDS for the writer tasks to finish.

        Args:
            code: WebSocket close code.
            reason: Close reason sent to the clients.
        """
        writers = []
        for connection in list(self.connections.values()):
            connection.queue.put_nowait(CloseFrame(code, reason))
            if connection.writer is not None:
                writers.append(connection.writer)

        if not writers:
            return

        _, pending = await asyncio.wait(
            writers, timeout=WS_CLOSE_TIMEOUT_SECONDS
        )
        if pending:
            logger.warning(
                f"{len(pending)} connections did not close within "
                f"{WS_CLOSE_TIMEOUT_SECONDS}s"
            )

    async def _write_loop(self, connection: OutboundConnection) -> None:
        """
        Drains one connection's queue onto its socket.

        Stops after a close frame or on the first send failure; the receive
        loop of the same connection is responsible for the disconnect.
        """
        websocket = connection.websocket
        try:
            while True:
                item = await connection.queue.get()
                if isinstance(item, CloseFrame):
                    await websocket.close(code=item.code, reason=item.reason)
                    return

                await websocket.send_text(item)
                ws_messages_sent_total.inc()
        except (WebSocketDisconnect, ConnectionError, RuntimeError) as e:
            # WebSocketDisconnect: Client disconnected
            # ConnectionError: Network errors
            # RuntimeError: WebSocket in invalid state
            logger.warning(
                f"Failed to send to connection {id(websocket)} "
                f"(key: {connection.session_id}): {e}"
            )
