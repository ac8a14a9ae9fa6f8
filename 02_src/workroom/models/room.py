"""Room-related data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Party of a workroom."""

    CLIENT = "client"
    WORKER = "worker"


class RoomPhase(str, Enum):
    """Finalisation lifecycle of a room."""

    OPEN = "open"
    ONE_PARTY_FINALISED = "one_party_finalised"
    LOCKED = "locked"


@dataclass
class RoomState:
    """Finalisation flags of a room."""

    client_finalised: bool = False
    worker_finalised: bool = False
    finalised_at: datetime | None = None


@dataclass
class RoomMeta:
    """Room metadata as seen by one participant."""

    room_id: str
    role: Role
    state: RoomState
    title: str = ""
    client_id: str | None = None
    worker_id: str | None = None
