"""RoomHub: WebSocket fan-out per room."""

from dataclasses import dataclass, field
from typing import Any, Protocol

from ..logging_config import get_logger
from ..models import ChannelEvent, PushEvent

logger = get_logger(__name__)


class ISocket(Protocol):
    """Anything that can push a JSON document to one client."""

    async def send_json(self, data: Any) -> None:
        ...


@dataclass(eq=False)
class Connection:
    """One connected client."""

    user_id: str
    socket: ISocket
    rooms: set[str] = field(default_factory=set)


class RoomHub:
    """Tracks which connections joined which room and broadcasts to them."""

    def __init__(self):
        self._rooms: dict[str, set[Connection]] = {}

    def register(self, socket: ISocket, user_id: str) -> Connection:
        return Connection(user_id=user_id, socket=socket)

    def join(self, conn: Connection, room_id: str) -> None:
        self._rooms.setdefault(room_id, set()).add(conn)
        conn.rooms.add(room_id)
        logger.info("User %s joined room workroom:%s", conn.user_id, room_id)

    def leave(self, conn: Connection) -> None:
        """Drop a connection from every room it joined."""
        for room_id in list(conn.rooms):
            members = self._rooms.get(room_id)
            if members is None:
                continue
            members.discard(conn)
            if not members:
                self._rooms.pop(room_id, None)
        conn.rooms.clear()

    def members(self, room_id: str) -> list[Connection]:
        return list(self._rooms.get(room_id, ()))

    async def broadcast(
        self,
        room_id: str,
        event: ChannelEvent,
        data: dict,
        exclude: Connection | None = None,
    ) -> int:
        """Send an event to every member except exclude. Returns deliveries."""
        envelope = PushEvent(event=event, data=data).to_wire()
        delivered = 0
        for conn in self.members(room_id):
            if conn is exclude:
                continue
            try:
                await conn.socket.send_json(envelope)
                delivered += 1
            except Exception as e:
                logger.warning("Dropping connection of %s: %s", conn.user_id, e)
                self.leave(conn)
        return delivered
