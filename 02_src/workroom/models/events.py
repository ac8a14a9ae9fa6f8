"""Push channel event models."""

from dataclasses import dataclass, field
from enum import Enum


class ChannelEvent(str, Enum):
    """Event names carried on the push channel."""

    JOIN = "workroom:join"
    MESSAGE_NEW = "message:new"
    TYPING = "typing"
    FINALISE_UPDATE = "workroom:finalise:update"
    FINALISED = "workroom:finalised"
    ERROR = "error"


@dataclass
class PushEvent:
    """A single envelope exchanged over the push channel."""

    event: ChannelEvent
    data: dict = field(default_factory=dict)

    def to_wire(self) -> dict:
        """Envelope as a JSON-ready dict."""
        return {"event": self.event.value, "data": self.data}

    @classmethod
    def from_wire(cls, raw: dict) -> "PushEvent | None":
        """Parse an envelope; unknown events yield None."""
        try:
            event = ChannelEvent(raw.get("event"))
        except ValueError:
            return None
        data = raw.get("data")
        return cls(event=event, data=data if isinstance(data, dict) else {})
