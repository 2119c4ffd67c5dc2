"""
Chat traffic handlers: messages and typing indicators.

Request Data shapes are documented on each handler. Every handler receives
the broadcast router, the sender's session ID and the validated payload.
"""

from typing import TYPE_CHECKING, Any

from socketchat.api.ws.constants import ClientEvent, ServerEvent
from socketchat.api.ws.validation import validator
from socketchat.constants import LOG_MESSAGE_PREVIEW_CHARS
from socketchat.exceptions import MalformedPayloadError
from socketchat.logging import logger
from socketchat.managers.session_registry import SessionRegistry
from socketchat.routing import event_router
from socketchat.schemas.generic_typing import JsonSchemaType
from socketchat.schemas.response import NewMessageModel, UserTypingModel
from socketchat.settings import app_settings
from socketchat.utils.timestamps import iso_now, local_time

if TYPE_CHECKING:
    from socketchat.managers.broadcast_router import BroadcastRouter


def display_name(
    router: "BroadcastRouter", session_id: str, requested: Any = None
) -> str:
    """
    Name to show for a sender.

    A client-supplied name wins when TRUST_CLIENT_USERNAME is enabled and the
    name is non-blank; otherwise the registry's name is used, or the default
    placeholder when the session is already gone.
    """
    if app_settings.TRUST_CLIENT_USERNAME and isinstance(requested, str):
        requested = requested.strip()[: app_settings.MAX_USERNAME_LENGTH]
        if requested:
            return requested

    session = router.registry.get(session_id)
    if session is None:
        return SessionRegistry.default_username(session_id)
    return session.username


# ============================================================================
# SEND MESSAGE
# ============================================================================

send_message_schema: JsonSchemaType = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "message": {
            "type": "string",
            "minLength": 1,
            "maxLength": app_settings.MAX_MESSAGE_LENGTH,
        },
        "username": {"type": ["string", "null"]},
    },
    "required": ["message"],
}


@event_router.register(
    ClientEvent.SEND_MESSAGE,
    json_schema=send_message_schema,
    validator_callback=validator,
)
def send_message_handler(
    router: "BroadcastRouter", session_id: str, data: dict[str, Any]
) -> None:
    """
    Broadcasts a chat message to every session, the sender included.

    Request Data:
        {
            "message": str (required, non-blank),
            "username": str (optional display name override)
        }

    The message text is forwarded verbatim. The sender's last-seen time is
    updated after the broadcast.
    """
    message: str = data["message"]
    if not message.strip():
        raise MalformedPayloadError(
            "Message text is required", event=ClientEvent.SEND_MESSAGE
        )

    logger.debug(
        f"Message from {session_id}: {message[:LOG_MESSAGE_PREVIEW_CHARS]}"
    )

    router.broadcast(
        ServerEvent.NEW_MESSAGE,
        NewMessageModel(
            id=session_id,
            message=message,
            time=local_time(),
            timestamp=iso_now(),
            username=display_name(router, session_id, data.get("username")),
        ),
    )
    router.registry.touch_last_seen(session_id)


# ============================================================================
# TYPING INDICATORS
# ============================================================================

typing_schema: JsonSchemaType = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "username": {"type": ["string", "null"]},
    },
}


@event_router.register(
    ClientEvent.TYPING, json_schema=typing_schema, validator_callback=validator
)
def typing_handler(
    router: "BroadcastRouter", session_id: str, data: dict[str, Any]
) -> None:
    """
    Tells everyone but the sender that the sender is typing.

    Request Data:
        {
            "username": str (optional)
        }
    """
    router.broadcast_except(
        session_id,
        ServerEvent.USER_TYPING,
        UserTypingModel(
            id=session_id,
            username=display_name(router, session_id, data.get("username")),
        ),
    )


@event_router.register(ClientEvent.STOP_TYPING)
def stop_typing_handler(
    router: "BroadcastRouter", session_id: str, data: dict[str, Any]
) -> None:
    """Tells everyone but the sender that the sender stopped typing."""
    router.broadcast_except(
        session_id, ServerEvent.USER_STOP_TYPING, session_id
    )
