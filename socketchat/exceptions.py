"""
Custom exception classes for the chat server.

None of these are ever broadcast to other clients: a failure is scoped to
the connection that caused it.
"""


class ChatError(Exception):
    """
    Base class for chat server errors.

    Attributes:
        message: Human-readable description safe to send to the client.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SessionExistsError(ChatError):
    """
    A session with the same connection ID is already registered.

    Connection IDs are generated per socket, so this indicates a programming
    error in the transport glue rather than a client mistake.
    """

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} is already registered")
        self.session_id = session_id


class MalformedPayloadError(ChatError):
    """
    Inbound frame could not be decoded or failed payload validation.
    """

    def __init__(self, message: str, event: str | None = None) -> None:
        super().__init__(message)
        self.event = event


class UnknownEventError(ChatError):
    """
    Inbound frame names an event with no registered handler.
    """

    def __init__(self, event: str) -> None:
        super().__init__(f"No handler found for event {event!r}")
        self.event = event
