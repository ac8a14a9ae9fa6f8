"""Workroom messaging core."""

from .clients import DisabledPushChannel, WebSocketPushChannel, WorkroomApiClient
from .config import WorkroomSettings
from .delivery import DeliveryChannelManager, MessageList
from .errors import (
    CollaboratorError,
    EmptyMessageError,
    PushChannelError,
    RoomLockedError,
    SubmitFailedError,
    TransientError,
    ValidationError,
    WorkroomError,
)
from .models import (
    Attachment,
    AttachmentKind,
    ChannelEvent,
    Message,
    PendingFile,
    Reaction,
    Role,
    RoomMeta,
    RoomPhase,
    RoomState,
)
from .outbox import Composer
from .presence import ReactionBoard, TypingIndicator, TypingSignal
from .room import FinalisationHandshake, RoomStateTracker
from .session import WorkroomSession

__all__ = [
    # Session
    "WorkroomSession",
    "WorkroomSettings",
    # Models
    "Attachment",
    "AttachmentKind",
    "ChannelEvent",
    "Message",
    "PendingFile",
    "Reaction",
    "Role",
    "RoomMeta",
    "RoomPhase",
    "RoomState",
    # Components
    "RoomStateTracker",
    "FinalisationHandshake",
    "MessageList",
    "DeliveryChannelManager",
    "Composer",
    "TypingIndicator",
    "TypingSignal",
    "ReactionBoard",
    # Collaborators
    "WorkroomApiClient",
    "WebSocketPushChannel",
    "DisabledPushChannel",
    # Errors
    "WorkroomError",
    "ValidationError",
    "EmptyMessageError",
    "RoomLockedError",
    "TransientError",
    "CollaboratorError",
    "SubmitFailedError",
    "PushChannelError",
]
