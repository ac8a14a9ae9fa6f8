"""Core data models for the workroom."""

from .messages import (
    Attachment,
    AttachmentKind,
    Message,
    MessagePage,
    PendingFile,
    Reaction,
)
from .room import Role, RoomMeta, RoomPhase, RoomState
from .events import ChannelEvent, PushEvent
from .records import StoredAttachment, StoredMessage, WorkroomRecord

__all__ = [
    # Messages
    "Attachment",
    "AttachmentKind",
    "Message",
    "MessagePage",
    "PendingFile",
    "Reaction",
    # Room
    "Role",
    "RoomMeta",
    "RoomPhase",
    "RoomState",
    # Push channel
    "ChannelEvent",
    "PushEvent",
    # Backend records
    "StoredAttachment",
    "StoredMessage",
    "WorkroomRecord",
]
