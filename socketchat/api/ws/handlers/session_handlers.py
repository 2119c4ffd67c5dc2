"""
Per-session handlers: username changes and latency probes.
"""

from typing import TYPE_CHECKING, Any

from socketchat.api.ws.constants import ClientEvent, ServerEvent
from socketchat.api.ws.validation import validator
from socketchat.logging import logger
from socketchat.managers.session_registry import SessionRegistry
from socketchat.routing import event_router
from socketchat.schemas.generic_typing import JsonSchemaType
from socketchat.schemas.response import (
    PongModel,
    UsernameChangedModel,
    UsernameUpdatedModel,
)
from socketchat.settings import app_settings
from socketchat.utils.timestamps import epoch_millis, local_time

if TYPE_CHECKING:
    from socketchat.managers.broadcast_router import BroadcastRouter


update_username_schema: JsonSchemaType = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "newUsername": {
            "type": "string",
            "maxLength": app_settings.MAX_USERNAME_LENGTH,
        },
    },
    "required": ["newUsername"],
}


@event_router.register(
    ClientEvent.UPDATE_USERNAME,
    json_schema=update_username_schema,
    validator_callback=validator,
)
def update_username_handler(
    router: "BroadcastRouter", session_id: str, data: dict[str, Any]
) -> None:
    """
    Renames the sender.

    Request Data:
        {
            "newUsername": str (required)
        }

    On success everyone receives `username-changed` and the new roster, and
    the sender receives `username-updated` with success=true. A blank name
    changes nothing: only the sender is answered, with success=false and
    its current name.
    """
    session = router.registry.get(session_id)
    old_username = (
        session.username
        if session is not None
        else SessionRegistry.default_username(session_id)
    )

    requested = data["newUsername"].strip()
    if not requested:
        logger.debug(f"Blank username from {session_id} ignored")
        router.unicast(
            session_id,
            ServerEvent.USERNAME_UPDATED,
            UsernameUpdatedModel(success=False, new_username=old_username),
        )
        return

    updated = router.registry.update_username(session_id, requested)
    new_username = updated.username if updated is not None else requested

    logger.info(f"{session_id} renamed {old_username} -> {new_username}")

    router.broadcast(
        ServerEvent.USERNAME_CHANGED,
        UsernameChangedModel(
            id=session_id,
            old_username=old_username,
            new_username=new_username,
            time=local_time(),
        ),
    )
    router.broadcast_roster()
    router.unicast(
        session_id,
        ServerEvent.USERNAME_UPDATED,
        UsernameUpdatedModel(success=True, new_username=new_username),
    )


@event_router.register(ClientEvent.PING)
def ping_handler(
    router: "BroadcastRouter", session_id: str, data: dict[str, Any]
) -> None:
    """Answers a latency probe with the server's clock in epoch milliseconds."""
    router.unicast(
        session_id, ServerEvent.PONG, PongModel(timestamp=epoch_millis())
    )
