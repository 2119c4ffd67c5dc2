import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from socketchat.api.ws.constants import ServerEvent
from socketchat.utils.timestamps import to_iso


class CamelModel(BaseModel):  # type: ignore[misc]
    """Payload model serialized with camelCase keys for browser clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RosterEntryModel(CamelModel):
    id: str
    username: str
    connected_at: datetime
    last_seen: datetime

    @field_serializer("connected_at", "last_seen")
    def _serialize_timestamp(self, value: datetime) -> str:
        return to_iso(value)


class WelcomeModel(CamelModel):
    message: str
    id: str
    username: str
    users_count: int
    server_time: str
    server_version: str


class UserJoinedModel(CamelModel):
    id: str
    username: str
    time: str


class UserLeftModel(CamelModel):
    id: str
    username: str
    reason: str


class NewMessageModel(CamelModel):
    id: str
    message: str
    time: str
    timestamp: str
    username: str


class UserTypingModel(CamelModel):
    id: str
    username: str


class UsernameChangedModel(CamelModel):
    id: str
    old_username: str
    new_username: str
    time: str


class UsernameUpdatedModel(CamelModel):
    success: bool
    new_username: str


class PongModel(CamelModel):
    timestamp: int


class ServerShutdownModel(CamelModel):
    message: str
    timestamp: str


class ErrorModel(CamelModel):
    event: str | None = None
    message: str


class EventResponseModel(BaseModel):  # type: ignore[misc]
    """
    Outbound WebSocket frame: `{"event": <name>, "data": <payload>}`.

    Payload models are dumped to plain JSON types when the frame is built so
    the frame can be serialized once and queued for many recipients.
    """

    event: ServerEvent = Field(frozen=True)
    data: Any = None

    @classmethod
    def build(cls, event: ServerEvent, payload: Any = None) -> "EventResponseModel":
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", by_alias=True)
        elif isinstance(payload, list):
            payload = [
                item.model_dump(mode="json", by_alias=True)
                if isinstance(item, BaseModel)
                else item
                for item in payload
            ]
        return cls(event=event, data=payload)

    def to_text(self) -> str:
        """Serialize the frame for a WebSocket text message."""
        return json.dumps(self.model_dump(mode="json"))
