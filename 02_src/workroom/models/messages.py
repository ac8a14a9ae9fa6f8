"""Message-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AttachmentKind(str, Enum):
    """Media kind of an attachment, derived from type and filename."""

    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"


class Reaction(str, Enum):
    """Local-only reaction a viewer can put on a message."""

    LIKE = "like"
    HEART = "heart"
    FIRE = "fire"


@dataclass(frozen=True)
class Attachment:
    """Canonical attachment reference."""

    url: str
    name: str | None
    kind: AttachmentKind


@dataclass(frozen=True)
class Message:
    """A single server-confirmed message in a room."""

    id: str
    sender_id: str | None
    text: str | None
    timestamp: datetime
    attachments: tuple[Attachment, ...] = field(default_factory=tuple)

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """Total order of the room: timestamp, then id."""
        return (self.timestamp, self.id)


@dataclass
class PendingFile:
    """A file selected in the composer but not yet sent."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class MessagePage:
    """One batch of raw message records from the history collaborator."""

    items: list[dict]
    next_cursor: str | None = None
