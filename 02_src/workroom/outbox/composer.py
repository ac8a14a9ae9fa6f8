"""Composer implementation."""

from datetime import datetime, timezone
from typing import Protocol

from ..clients.protocols import IMessageWriteClient
from ..errors import EmptyMessageError, SubmitFailedError, TransientError
from ..logging_config import get_logger
from ..models import Message, PendingFile
from ..normalize import project_message
from ..room import RoomStateTracker

logger = get_logger(__name__)


class IMessageSink(Protocol):
    """Receives server-confirmed messages from the outbox."""

    async def deliver(self, message: Message) -> bool:
        """Merge the message into the view; False if already present."""
        ...


class Composer:
    """Draft text and pending files for one room, sent as a single unit."""

    def __init__(
        self,
        room_id: str,
        writer: IMessageWriteClient,
        tracker: RoomStateTracker,
        sink: IMessageSink,
    ):
        self._room_id = room_id
        self._writer = writer
        self._tracker = tracker
        self._sink = sink

        self._text = ""
        self._files: list[PendingFile] = []
        self._in_flight = False

    @property
    def text(self) -> str:
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        self._text = value or ""

    @property
    def files(self) -> list[PendingFile]:
        return self._files.copy()

    @property
    def is_sending(self) -> bool:
        return self._in_flight

    def add_file(self, pending: PendingFile) -> None:
        self._files.append(pending)

    def remove_file(self, index: int) -> None:
        if 0 <= index < len(self._files):
            del self._files[index]

    def clear(self) -> None:
        """Drop the draft."""
        self._text = ""
        self._files = []

    async def submit(self) -> Message | None:
        """Send the draft.

        Returns the confirmed Message, or None when another submission is
        still in flight (or the server confirmed without echoing a record).

        Raises:
            EmptyMessageError: no text and no files.
            RoomLockedError: the room is finalised.
            SubmitFailedError: the write failed; the draft is kept.
        """
        if self._in_flight:
            logger.debug("Submit ignored; one already in flight for %s", self._room_id)
            return None

        trimmed = self._text.strip()
        if not trimmed and not self._files:
            raise EmptyMessageError()
        self._tracker.require_open()

        self._in_flight = True
        try:
            record = await self._writer.post_message(
                self._room_id, trimmed or None, list(self._files)
            )
        except TransientError as e:
            logger.warning("Submit failed for %s: %s", self._room_id, e)
            raise SubmitFailedError(str(e)) from e
        finally:
            self._in_flight = False

        self.clear()
        if not record:
            return None

        message = project_message(record, datetime.now(timezone.utc))
        await self._sink.deliver(message)
        return message
