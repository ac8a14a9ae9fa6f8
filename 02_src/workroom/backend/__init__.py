"""Backend module."""

from .hub import Connection, RoomHub
from .service import MAX_ATTACHMENTS, MAX_TEXT_LENGTH, Upload, WorkroomService

__all__ = [
    "Connection",
    "RoomHub",
    "MAX_ATTACHMENTS",
    "MAX_TEXT_LENGTH",
    "Upload",
    "WorkroomService",
]
