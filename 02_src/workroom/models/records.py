"""Backend record models (what the reference backend persists)."""

from dataclasses import dataclass, field
from datetime import datetime


def iso(ts: datetime | None) -> str | None:
    """Fixed-width ISO-8601, so stored strings sort chronologically."""
    return ts.isoformat(timespec="microseconds") if ts else None


@dataclass
class WorkroomRecord:
    """A room bound to one task engagement."""

    room_id: str
    title: str
    client_id: str
    worker_id: str
    created_at: datetime
    client_finalised: bool = False
    worker_finalised: bool = False
    finalised_at: datetime | None = None
    expire_at: datetime | None = None

    def role_of(self, user_id: str) -> str | None:
        if user_id == self.client_id:
            return "client"
        if user_id == self.worker_id:
            return "worker"
        return None

    def flags(self) -> dict:
        return {
            "workroomId": self.room_id,
            "clientFinalised": self.client_finalised,
            "workerFinalised": self.worker_finalised,
            "finalisedAt": iso(self.finalised_at),
        }


@dataclass
class StoredAttachment:
    """Attachment metadata as recorded by the backend."""

    url: str
    public_id: str
    type: str  # "image", "video", "file"
    original_name: str
    size: int
    content_type: str

    def to_wire(self) -> dict:
        return {
            "url": self.url,
            "public_id": self.public_id,
            "type": self.type,
            "original_name": self.original_name,
            "size": self.size,
            "contentType": self.content_type,
        }


@dataclass
class StoredMessage:
    """A message row."""

    id: str
    room_id: str
    sender_id: str
    text: str
    created_at: datetime
    attachments: list[StoredAttachment] = field(default_factory=list)
    deleted: bool = False
    deleted_at: datetime | None = None

    def to_wire(self) -> dict:
        return {
            "_id": self.id,
            "workroomId": self.room_id,
            "sender": self.sender_id,
            "text": self.text,
            "attachments": [a.to_wire() for a in self.attachments],
            "createdAt": iso(self.created_at),
        }
