from enum import StrEnum


class ClientEvent(StrEnum):
    """
    Event names a client may send over the WebSocket.

    Attributes:
        SEND_MESSAGE: Post a chat message to the room
        TYPING: Sender started typing
        STOP_TYPING: Sender stopped typing
        UPDATE_USERNAME: Change the sender's display name
        PING: Latency probe, answered with `pong`

    Example:
        >>> str(ClientEvent.PING)
        'ClientEvent.PING<ping>'
    """

    SEND_MESSAGE = "send-message"
    TYPING = "typing"
    STOP_TYPING = "stop-typing"
    UPDATE_USERNAME = "update-username"
    PING = "ping"

    def __str__(self):
        """
        Returns a string representation of the enum member in the format example "ClientEvent.PING<ping>".
        """
        return f"{__class__.__name__}.{self.name}<{self.value}>"


class ServerEvent(StrEnum):
    """
    Event names the server emits to clients.
    """

    WELCOME = "welcome"
    USER_JOINED = "user-joined"
    USER_LEFT = "user-left"
    USER_COUNT_UPDATE = "user-count-update"
    ACTIVE_USERS_UPDATE = "active-users-update"
    NEW_MESSAGE = "new-message"
    USER_TYPING = "user-typing"
    USER_STOP_TYPING = "user-stop-typing"
    USERNAME_CHANGED = "username-changed"
    USERNAME_UPDATED = "username-updated"
    PONG = "pong"
    SERVER_SHUTDOWN = "server-shutdown"
    ERROR = "error"

    def __str__(self):
        return f"{__class__.__name__}.{self.name}<{self.value}>"
