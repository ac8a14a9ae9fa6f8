"""WorkroomService: room access, messages and the finalise handshake."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from ..config import WorkroomSettings
from ..errors import (
    AccessDeniedError,
    EmptyMessageError,
    RoomLockedError,
    RoomNotFoundError,
    ValidationError,
)
from ..logging_config import get_logger
from ..models import ChannelEvent, StoredAttachment, StoredMessage, WorkroomRecord
from ..storage import IStorage
from .hub import RoomHub

logger = get_logger(__name__)

MAX_TEXT_LENGTH = 2000
MAX_ATTACHMENTS = 10


@dataclass
class Upload:
    """A file received with a message write."""

    filename: str
    content_type: str
    size: int


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _kind_of(content_type: str) -> str:
    if content_type.startswith("image/"):
        return "image"
    if content_type.startswith("video/"):
        return "video"
    return "file"


class WorkroomService:
    """Backend side of the workroom collaborators."""

    def __init__(
        self,
        storage: IStorage,
        hub: RoomHub,
        settings: WorkroomSettings | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._storage = storage
        self._hub = hub
        self._settings = settings or WorkroomSettings()
        self._clock = clock

    async def create_room(
        self, client_id: str, worker_id: str, title: str = "", room_id: str | None = None
    ) -> WorkroomRecord:
        """Open a room for a task engagement."""
        room = WorkroomRecord(
            room_id=room_id or uuid.uuid4().hex[:12],
            title=title,
            client_id=client_id,
            worker_id=worker_id,
            created_at=self._clock(),
        )
        await self._storage.save_room(room)
        logger.info("Workroom %s created", room.room_id)
        return room

    async def access(self, room_id: str, user_id: str) -> tuple[WorkroomRecord, str]:
        """Return the room and the caller's role, or raise."""
        room = await self._storage.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        role = room.role_of(user_id)
        if role is None:
            raise AccessDeniedError("Access denied")
        return room, role

    async def get_meta(self, room_id: str, user_id: str) -> dict:
        room, role = await self.access(room_id, user_id)
        return {
            **room.flags(),
            "title": room.title,
            "createdBy": room.client_id,
            "selectedApplicant": room.worker_id,
            "role": role,
        }

    async def list_messages(
        self, room_id: str, user_id: str, cursor: str | None = None, limit: int | None = None
    ) -> dict:
        await self.access(room_id, user_id)
        page_size = min(max(limit or self._settings.history_page_size, 1), 200)
        messages, next_cursor = await self._storage.list_messages(room_id, cursor, page_size)
        return {
            "items": [m.to_wire() for m in messages],
            "nextCursor": next_cursor,
        }

    async def post_message(
        self, room_id: str, user_id: str, text: str | None, uploads: list[Upload]
    ) -> StoredMessage:
        """Store a message and relay it to the rest of the room."""
        room, _ = await self.access(room_id, user_id)
        if room.finalised_at is not None:
            raise RoomLockedError(room_id)

        body = (text or "").strip()
        if len(body) > MAX_TEXT_LENGTH:
            raise ValidationError("Message too long")
        if len(uploads) > MAX_ATTACHMENTS:
            raise ValidationError(f"At most {MAX_ATTACHMENTS} attachments")
        if not body and not uploads:
            raise EmptyMessageError()

        message_id = uuid.uuid4().hex
        attachments = []
        for upload in uploads:
            public_id = f"cyphire/workrooms/{room_id}/{uuid.uuid4().hex}"
            attachments.append(
                StoredAttachment(
                    url=f"/files/{public_id}/{upload.filename}",
                    public_id=public_id,
                    type=_kind_of(upload.content_type),
                    original_name=upload.filename,
                    size=upload.size,
                    content_type=upload.content_type,
                )
            )

        message = StoredMessage(
            id=message_id,
            room_id=room_id,
            sender_id=user_id,
            text=body,
            created_at=self._clock(),
            attachments=attachments,
        )
        # The room may have locked while this request was in flight
        if not await self._storage.save_message(message):
            raise RoomLockedError(room_id)

        await self._hub.broadcast(room_id, ChannelEvent.MESSAGE_NEW, message.to_wire())
        return message

    async def delete_message(self, room_id: str, user_id: str, message_id: str) -> StoredMessage | None:
        await self.access(room_id, user_id)
        return await self._storage.soft_delete_message(room_id, message_id, self._clock())

    async def finalise(self, room_id: str, user_id: str) -> dict:
        """Record the caller's finalise; lock and broadcast when both are in."""
        room, role = await self.access(room_id, user_id)
        if room.finalised_at is not None:
            return room.flags()

        result = await self._storage.finalise_room(
            room_id,
            role,
            self._clock(),
            timedelta(days=self._settings.retention_days),
        )
        if result is None:
            raise RoomNotFoundError(room_id)
        updated, newly_locked = result

        flags = updated.flags()
        await self._hub.broadcast(room_id, ChannelEvent.FINALISE_UPDATE, flags)
        if newly_locked:
            logger.info("Workroom %s finalised", room_id)
            await self._hub.broadcast(
                room_id,
                ChannelEvent.FINALISED,
                {"workroomId": room_id, "finalisedAt": flags["finalisedAt"]},
            )
        return flags

    async def purge_expired(self) -> int:
        removed = await self._storage.purge_expired(self._clock())
        if removed:
            logger.info("Purged %d expired workroom(s)", removed)
        return removed
