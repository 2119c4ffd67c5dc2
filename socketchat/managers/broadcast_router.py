from typing import Any, Iterable

from fastapi import WebSocket

from socketchat.api.ws.constants import ServerEvent
from socketchat.constants import REASON_SERVER_SHUTDOWN, WS_SHUTDOWN_CLOSE_CODE
from socketchat.exceptions import ChatError
from socketchat.logging import logger
from socketchat.managers.session_registry import SessionRegistry
from socketchat.managers.websocket_connection_manager import ConnectionManager
from socketchat.routing import EventRouter, event_router
from socketchat.schemas.request import EventRequestModel
from socketchat.schemas.response import (
    ErrorModel,
    EventResponseModel,
    RosterEntryModel,
    ServerShutdownModel,
    UserJoinedModel,
    UserLeftModel,
    WelcomeModel,
)
from socketchat.schemas.session import Session
from socketchat.settings import app_settings
from socketchat.utils.metrics import ws_messages_rejected_total
from socketchat.utils.timestamps import iso_now, local_time


class BroadcastRouter:
    """
    Presence and broadcast coordinator for the chat room.

    Owns the session registry and the connection manager and applies the
    fan-out rules for every event in a connection's lifecycle:

        Connecting -> Connected -> Disconnected (terminal)

    Every method runs to completion without awaiting: registry mutations and
    the queueing of all outbound frames happen in one step of the event loop,
    so no other event can observe a half-applied change.

    Recipients of a broadcast are read from the registry at dispatch time;
    "everyone but the sender" is a filter over the live session IDs.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        connections: ConnectionManager,
        events: EventRouter = event_router,
    ) -> None:
        self.registry = registry
        self.connections = connections
        self.events = events
        self.shutting_down = False

    # ------------------------------------------------------------------
    # Emit primitives
    # ------------------------------------------------------------------

    def _emit(
        self, recipients: Iterable[str], event: ServerEvent, payload: Any
    ) -> None:
        text = EventResponseModel.build(event, payload).to_text()
        for session_id in recipients:
            self.connections.send(session_id, text)

    def unicast(
        self, session_id: str, event: ServerEvent, payload: Any = None
    ) -> None:
        """Send an event to exactly one session."""
        self._emit([session_id], event, payload)

    def broadcast(self, event: ServerEvent, payload: Any = None) -> None:
        """Send an event to every registered session."""
        self._emit(self.registry.ids(), event, payload)

    def broadcast_except(
        self, sender_id: str, event: ServerEvent, payload: Any = None
    ) -> None:
        """Send an event to every registered session except the sender."""
        self._emit(
            [sid for sid in self.registry.ids() if sid != sender_id],
            event,
            payload,
        )

    def roster(self) -> list[RosterEntryModel]:
        return [session.to_roster_entry() for session in self.registry.snapshot()]

    def broadcast_roster(self) -> None:
        self.broadcast(ServerEvent.ACTIVE_USERS_UPDATE, self.roster())

    def broadcast_presence(self) -> None:
        """Send the current user count and roster to everyone."""
        self.broadcast(ServerEvent.USER_COUNT_UPDATE, self.registry.count())
        self.broadcast_roster()

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def on_connect(
        self, session_id: str, websocket: WebSocket, remote_address: str
    ) -> Session:
        """
        Registers a new connection and announces it.

        The new session receives `welcome`; everyone else receives
        `user-joined`; everyone, the new session included, receives the
        updated user count and roster.

        Args:
            session_id: Connection identifier.
            websocket: The accepted WebSocket.
            remote_address: Peer address of the connection.

        Returns:
            The registered session.

        Raises:
            SessionExistsError: If the ID is already registered.
        """
        session = self.registry.upsert_on_connect(session_id, remote_address)
        self.connections.connect(session_id, websocket)

        logger.info(
            f"New connection: {session_id} from {remote_address} "
            f"({self.registry.count()} online)"
        )

        self.unicast(
            session_id,
            ServerEvent.WELCOME,
            WelcomeModel(
                message=app_settings.WELCOME_MESSAGE,
                id=session_id,
                username=session.username,
                users_count=self.registry.count(),
                server_time=iso_now(),
                server_version=app_settings.APP_VERSION,
            ),
        )
        self.broadcast_except(
            session_id,
            ServerEvent.USER_JOINED,
            UserJoinedModel(
                id=session_id, username=session.username, time=local_time()
            ),
        )
        self.broadcast_presence()
        return session

    def on_disconnect(self, session_id: str, reason: str) -> Session | None:
        """
        Removes a connection and announces the departure.

        Safe to call more than once: only the first call finds a session and
        broadcasts `user-left` and the updated presence.

        Args:
            session_id: Connection identifier.
            reason: Why the connection closed.

        Returns:
            The removed session, or None if it was already gone.
        """
        if self.shutting_down:
            reason = REASON_SERVER_SHUTDOWN

        self.connections.disconnect(session_id)
        session = self.registry.remove(session_id)
        if session is None:
            logger.debug(f"Duplicate disconnect for {session_id} ignored")
            return None

        logger.info(
            f"Disconnected: {session_id} ({reason}), "
            f"{self.registry.count()} online"
        )

        self.broadcast(
            ServerEvent.USER_LEFT,
            UserLeftModel(id=session_id, username=session.username, reason=reason),
        )
        self.broadcast_presence()
        return session

    def on_error(self, session_id: str, exc: BaseException) -> None:
        """Log a transport error; other sessions are never told about it."""
        logger.error(f"Socket error for {session_id}: {exc}")

    # ------------------------------------------------------------------
    # Client events
    # ------------------------------------------------------------------

    def dispatch(self, session_id: str, request: EventRequestModel) -> None:
        """
        Routes an inbound client event to its handler.

        Events for a connection that has already disconnected are dropped.
        Unknown events and invalid payloads are answered with an `error`
        event to the sender only.

        Args:
            session_id: The sender's session ID.
            request: The decoded inbound event.
        """
        if not self.connections.is_connected(session_id):
            logger.debug(
                f"Dropping {request.event} from closed connection {session_id}"
            )
            return

        try:
            self.events.handle_event(self, session_id, request)
        except ChatError as ex:
            self.reject(session_id, ex.message, event=request.event)

    def reject(
        self, session_id: str, message: str, event: str | None = None
    ) -> None:
        """Tell the sender its frame was not accepted."""
        logger.warning(f"Rejected frame from {session_id}: {message}")
        ws_messages_rejected_total.inc()
        self.unicast(
            session_id, ServerEvent.ERROR, ErrorModel(event=event, message=message)
        )

    # ------------------------------------------------------------------
    # Process lifecycle
    # ------------------------------------------------------------------

    async def shutdown(self) -> None:
        """
        Notifies every client that the server is going away and closes all
        connections once the notice has been written.

        Only the first call has an effect; the server and the lifespan hook
        may both request it.
        """
        if self.shutting_down:
            return

        self.shutting_down = True
        logger.info(
            f"Shutting down, notifying {self.registry.count()} connected users"
        )
        self.broadcast(
            ServerEvent.SERVER_SHUTDOWN,
            ServerShutdownModel(
                message=app_settings.SHUTDOWN_MESSAGE, timestamp=iso_now()
            ),
        )
        await self.connections.close_all(
            WS_SHUTDOWN_CLOSE_CODE, REASON_SERVER_SHUTDOWN
        )
