from typing import Any

from pydantic import BaseModel, Field, field_validator


class EventRequestModel(BaseModel):
    """
    Inbound WebSocket frame.

    Attributes:
        event: Name of the client event (see ClientEvent).
        data: Event payload; omitted or null for events without one.
    """

    event: str = Field(frozen=True, min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def _empty_payload(cls, value: Any) -> Any:
        # Clients may send `"data": null` for payload-less events
        return {} if value is None else value
