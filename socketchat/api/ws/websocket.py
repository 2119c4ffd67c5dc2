import uuid
from typing import Any

from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket

from socketchat.constants import DISCONNECT_REASONS, REASON_TRANSPORT_CLOSE
from socketchat.exceptions import SessionExistsError
from socketchat.logging import logger
from socketchat.managers.broadcast_router import BroadcastRouter
from socketchat.middlewares.correlation_id import set_correlation_id
from socketchat.utils.metrics import (
    ws_connections_active,
    ws_connections_total,
    ws_disconnects_total,
)


class ChatWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint bound to the application's broadcast router.

    Manages the connection lifecycle: assigns the session ID, registers the
    connection on connect, and unregisters it on disconnect whatever the
    cause (client close, dropped transport, server shutdown, handler error).
    Frames are JSON text: `{"event": <name>, "data": <payload>}`.
    """

    encoding = None  # Text and binary frames are decoded in `decode`
    websocket_class: type[WebSocket] = WebSocket

    async def dispatch(self) -> None:
        """
        Runs the receive loop for one connection.

        The function performs the following steps:
        1. Calls on_connect with a new WebSocket instance.
        2. Receives messages until the client disconnects, passing each
           decoded frame to on_receive.
        3. On an unexpected exception, reports it through the broadcast
           router, marks the close as an internal error and re-raises.
        4. Always calls on_disconnect with the resulting close code.
        """
        websocket = self.websocket_class(
            self.scope, receive=self.receive, send=self.send
        )
        await self.on_connect(websocket)  # type: ignore[no-untyped-call]

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    data = await self.decode(websocket, message)
                    await self.on_receive(websocket, data)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except Exception as exc:
            close_code = status.WS_1011_INTERNAL_ERROR
            if hasattr(self, "session_id"):
                self.broadcast_router.on_error(self.session_id, exc)
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)  # type: ignore[no-untyped-call]

    async def decode(self, websocket: WebSocket, message: dict[str, Any]) -> str:
        """
        Decode incoming WebSocket message to text.

        Binary frames are accepted if they hold UTF-8 text; anything else
        decodes to an empty string, which later fails validation and is
        answered with an `error` event.

        Args:
            websocket: WebSocket connection instance
            message: Raw message dict from WebSocket

        Returns:
            The frame's text.
        """
        if message.get("text") is not None:
            return message["text"]

        raw = message.get("bytes") or b""
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Received non UTF-8 binary frame")
            return ""

    @staticmethod
    def remote_address(websocket: WebSocket, session_id: str) -> str:
        """Peer address of the socket, or a synthetic one derived from the ID."""
        if websocket.client is not None and websocket.client.host:
            return websocket.client.host
        return f"ws://{session_id}"

    async def on_connect(self, websocket):  # type: ignore[no-untyped-def]
        """
        Accepts the connection and registers it with the broadcast router.

        This method performs the following tasks:
        1. Accepts the WebSocket handshake
        2. Generates the session ID and binds it as the log correlation ID
        3. Registers the session, which sends `welcome` and the presence
           broadcasts
        """
        await super().on_connect(websocket)

        self.broadcast_router: BroadcastRouter = (
            websocket.app.state.broadcast_router
        )
        session_id = str(uuid.uuid4())
        set_correlation_id(session_id)

        try:
            self.broadcast_router.on_connect(
                session_id,
                websocket,
                self.remote_address(websocket, session_id),
            )
        except SessionExistsError as ex:
            logger.error(ex.message)
            ws_connections_total.labels(status="rejected").inc()
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            return

        self.session_id = session_id
        ws_connections_total.labels(status="accepted").inc()
        ws_connections_active.inc()

    async def on_disconnect(self, websocket, close_code):  # type: ignore[no-untyped-def]
        """
        Unregisters the connection and announces the departure.

        Safe when on_connect did not complete: nothing was registered then.
        """
        await super().on_disconnect(websocket, close_code)

        if not hasattr(self, "session_id"):
            logger.debug(
                f"Unregistered client disconnected with code {close_code}"
            )
            return

        reason = DISCONNECT_REASONS.get(close_code, REASON_TRANSPORT_CLOSE)
        session = self.broadcast_router.on_disconnect(self.session_id, reason)
        if session is not None:
            ws_connections_active.dec()
            ws_disconnects_total.labels(reason=reason).inc()

        logger.debug(
            f"Client {self.session_id} disconnected with code {close_code}"
        )
