"""Push channel over WebSocket."""

import asyncio
import json
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..errors import PushChannelError
from ..logging_config import get_logger
from ..models import ChannelEvent, PushEvent
from .protocols import EventHandler

logger = get_logger(__name__)


class PushChannelBase:
    """Handler registry and dispatch shared by push channel implementations."""

    def __init__(self):
        self._handlers: dict[ChannelEvent, list[EventHandler]] = {}

    def subscribe(self, event: ChannelEvent, handler: EventHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def unsubscribe(self, event: ChannelEvent, handler: EventHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    async def dispatch(self, envelope: PushEvent) -> None:
        """Call every handler for the event; one failing handler doesn't stop the rest."""
        handlers = list(self._handlers.get(envelope.event, []))
        if not handlers:
            return

        results = await asyncio.gather(
            *[handler(envelope.data) for handler in handlers],
            return_exceptions=True,
        )
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                logger.error("Error in %s handler %s: %s", envelope.event.value, i, result)


class WebSocketPushChannel(PushChannelBase):
    """JSON envelopes {"event", "data"} over a websockets connection."""

    def __init__(self, ws_url: str, room_id: str, user_id: str):
        super().__init__()
        self._ws_url = ws_url
        self._room_id = room_id
        self._user_id = user_id
        self._ws = None
        self._reader: asyncio.Task | None = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        """Open the socket, join the room and start reading."""
        if self._ws is not None:
            return

        url = f"{self._ws_url}?{urlencode({'userId': self._user_id})}"
        try:
            self._ws = await websockets.connect(url)
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            raise PushChannelError(f"Push channel connect failed: {e}") from e

        await self.send(ChannelEvent.JOIN, {"workroomId": self._room_id})
        self._reader = asyncio.create_task(self._read_loop())
        logger.info("Push channel joined %s", self._room_id)

    async def close(self) -> None:
        """Stop reading and close the socket. Idempotent."""
        reader, self._reader = self._reader, None
        if reader is not None:
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass

        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except WebSocketException as e:
                logger.debug("Push channel close error: %s", e)

    async def send(self, event: ChannelEvent, data: dict) -> None:
        if self._ws is None:
            raise PushChannelError("Push channel is not connected")
        try:
            await self._ws.send(json.dumps(PushEvent(event=event, data=data).to_wire()))
        except ConnectionClosed as e:
            self._ws = None
            raise PushChannelError(f"Push channel closed: {e}") from e

    async def _read_loop(self) -> None:
        ws = self._ws
        try:
            async for raw in ws:
                try:
                    payload = json.loads(raw)
                except ValueError:
                    logger.warning("Dropping non-JSON push frame")
                    continue

                envelope = PushEvent.from_wire(payload) if isinstance(payload, dict) else None
                if envelope is None:
                    continue
                await self.dispatch(envelope)

                if envelope.event is ChannelEvent.ERROR and envelope.data.get(
                    "workroomId", self._room_id
                ) == self._room_id:
                    # Join refused: nothing will ever arrive on this socket
                    logger.warning(
                        "Push join rejected for %s: %s",
                        self._room_id,
                        envelope.data.get("error"),
                    )
                    await ws.close()
                    break
        except ConnectionClosed as e:
            # Reconciliation keeps the room consistent without push
            logger.warning("Push channel for %s closed: %s", self._room_id, e)
        finally:
            if self._ws is ws:
                self._ws = None


class DisabledPushChannel(PushChannelBase):
    """Stand-in used when push delivery is switched off."""

    async def connect(self) -> None:
        logger.info("Push channel disabled; relying on reconciliation")

    async def close(self) -> None:
        return

    async def send(self, event: ChannelEvent, data: dict) -> None:
        raise PushChannelError("Push channel is disabled")
