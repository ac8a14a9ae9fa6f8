"""Collaborator interfaces consumed by the workroom core."""

from typing import Awaitable, Callable, Protocol

from ..models import ChannelEvent, MessagePage, PendingFile, RoomMeta


EventHandler = Callable[[dict], Awaitable[None]]


class IAuthClient(Protocol):
    """Who is the current user."""

    async def get_current_user(self) -> str:
        """Return a stable user id."""
        ...


class IRoomMetaClient(Protocol):
    """Room metadata and finalisation flags."""

    async def get_meta(self, room_id: str) -> RoomMeta:
        """Return meta for a room as seen by the current user."""
        ...


class IMessageHistoryClient(Protocol):
    """Paginated message history."""

    async def list_messages(
        self, room_id: str, cursor: str | None = None, limit: int | None = None
    ) -> MessagePage:
        """Return a batch of raw records ordered oldest-first."""
        ...


class IMessageWriteClient(Protocol):
    """Single multi-part message write."""

    async def post_message(
        self, room_id: str, text: str | None, files: list[PendingFile]
    ) -> dict:
        """Return the server-confirmed raw message record."""
        ...


class IFinaliseClient(Protocol):
    """Per-party finalise action."""

    async def finalise(self, room_id: str) -> dict:
        """Return updated flags: clientFinalised, workerFinalised, finalisedAt."""
        ...


class IWorkroomApi(
    IAuthClient,
    IRoomMetaClient,
    IMessageHistoryClient,
    IMessageWriteClient,
    IFinaliseClient,
    Protocol,
):
    """All REST collaborators behind one client."""


class IPushChannel(Protocol):
    """Bidirectional event channel keyed by room id."""

    async def connect(self) -> None:
        """Open the channel and send the join intent."""
        ...

    async def close(self) -> None:
        """Release the channel. Safe to call more than once."""
        ...

    def subscribe(self, event: ChannelEvent, handler: EventHandler) -> None:
        """Register a handler for an incoming event."""
        ...

    def unsubscribe(self, event: ChannelEvent, handler: EventHandler) -> None:
        """Remove a previously registered handler."""
        ...

    async def send(self, event: ChannelEvent, data: dict) -> None:
        """Send an event to the room."""
        ...
