from socketchat.exceptions import SessionExistsError
from socketchat.logging import logger
from socketchat.schemas.session import Session
from socketchat.settings import app_settings
from socketchat.utils.timestamps import utc_now


class SessionRegistry:
    """
    In-memory registry of the sessions behind open connections.

    A session exists here iff its connection is open: it is inserted when the
    connection opens and removed when it closes. Lookups for unknown IDs
    return None instead of raising, since events can race a disconnect.

    The registry is only touched from the event loop that runs the broadcast
    router, so it needs no locking.
    """

    def __init__(self) -> None:
        """
        Initializes an empty registry.

        The `sessions` attribute maps connection IDs to `Session` records and
        preserves insertion order, which is the roster order.
        """
        self.sessions: dict[str, Session] = {}

    @staticmethod
    def default_username(session_id: str) -> str:
        """
        Placeholder display name derived from a connection ID.

        Example:
            >>> SessionRegistry.default_username("a1b2c3d4e5")
            'User_a1b2c3'
        """
        return (
            app_settings.DEFAULT_USERNAME_PREFIX
            + session_id[: app_settings.DEFAULT_USERNAME_ID_CHARS]
        )

    def upsert_on_connect(self, session_id: str, remote_address: str) -> Session:
        """
        Registers the session for a newly opened connection.

        Args:
            session_id: Connection identifier assigned by the transport.
            remote_address: Peer address of the connection.

        Returns:
            The new session with its default username.

        Raises:
            SessionExistsError: If the ID is already registered.
        """
        if session_id in self.sessions:
            raise SessionExistsError(session_id)

        now = utc_now()
        session = Session(
            id=session_id,
            username=self.default_username(session_id),
            remote_address=remote_address,
            connected_at=now,
            last_seen=now,
        )
        self.sessions[session_id] = session
        logger.debug(
            f"Session {session_id} registered as {session.username} "
            f"from {remote_address}"
        )
        return session

    def get(self, session_id: str) -> Session | None:
        return self.sessions.get(session_id)

    def update_username(self, session_id: str, new_name: str) -> Session | None:
        """
        Changes a session's display name.

        The name is trimmed; a name that is empty after trimming leaves the
        current username in place. Display names are not unique.

        Args:
            session_id: The session to rename.
            new_name: Requested display name.

        Returns:
            The updated session, or None if the ID is not registered.
        """
        session = self.sessions.get(session_id)
        if session is None:
            return None

        trimmed = new_name.strip()
        if trimmed:
            session.username = trimmed
        return session

    def touch_last_seen(self, session_id: str) -> None:
        session = self.sessions.get(session_id)
        if session is not None:
            session.last_seen = utc_now()

    def remove(self, session_id: str) -> Session | None:
        """
        Deletes a session.

        Args:
            session_id: The session to remove.

        Returns:
            The removed record, or None if it was already gone.
        """
        session = self.sessions.pop(session_id, None)
        if session is not None:
            logger.debug(f"Session {session_id} ({session.username}) removed")
        return session

    def count(self) -> int:
        return len(self.sessions)

    def ids(self) -> list[str]:
        """Live session IDs in insertion order."""
        return list(self.sessions)

    def snapshot(self) -> list[Session]:
        """Registered sessions in insertion order."""
        return list(self.sessions.values())

    def __contains__(self, session_id: object) -> bool:
        return session_id in self.sessions
