import time

from fastapi import APIRouter
from pydantic import ValidationError

from socketchat.api.ws.handlers import load_handlers
from socketchat.api.ws.websocket import ChatWebSocketEndpoint
from socketchat.logging import logger
from socketchat.schemas.request import EventRequestModel
from socketchat.utils.metrics import (
    ws_event_processing_duration_seconds,
    ws_messages_received_total,
)

load_handlers()

router = APIRouter()


@router.websocket_route("/ws")
class Web(ChatWebSocketEndpoint):
    """
    The chat room's WebSocket endpoint.

    `on_receive` parses each frame into an `EventRequestModel` and hands it to
    the broadcast router. Frames that are not a JSON object with an `event`
    name are answered with an `error` event and the connection stays open.
    """

    async def on_receive(self, websocket, data: str):
        """
        Handles one inbound frame.

        Args:
            websocket: The WebSocket connection instance
            data (str): The decoded frame text
        """
        if not hasattr(self, "session_id"):
            return

        try:
            request = EventRequestModel.model_validate_json(data)
        except ValidationError:
            logger.debug(f"Received invalid frame: {data!r}")
            self.broadcast_router.reject(
                self.session_id,
                'Expected a JSON object with an "event" field',
            )
            return

        event_label = (
            request.event
            if self.broadcast_router.events.has_handler(request.event)
            else "unknown"
        )
        ws_messages_received_total.labels(event=event_label).inc()

        start_time = time.time()
        self.broadcast_router.dispatch(self.session_id, request)
        ws_event_processing_duration_seconds.labels(event=event_label).observe(
            time.time() - start_time
        )
