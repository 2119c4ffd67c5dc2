from datetime import datetime

from pydantic import BaseModel, Field

from socketchat.schemas.response import RosterEntryModel


class Session(BaseModel):
    """
    Server-side record of one open client connection.

    Attributes:
        id: Connection identifier assigned at connect; registry key.
        username: Display name, never empty.
        remote_address: Peer address captured at connect.
        connected_at: UTC time the connection was opened.
        last_seen: UTC time the session last sent a chat message.
    """

    id: str = Field(frozen=True)
    username: str = Field(min_length=1)
    remote_address: str = Field(frozen=True)
    connected_at: datetime = Field(frozen=True)
    last_seen: datetime

    def to_roster_entry(self) -> RosterEntryModel:
        """Public view of the session; the remote address is never exposed."""
        return RosterEntryModel(
            id=self.id,
            username=self.username,
            connected_at=self.connected_at,
            last_seen=self.last_seen,
        )
