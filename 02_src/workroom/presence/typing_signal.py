"""Typing signal: fire-and-forget broadcast, local expiry on receipt."""

import asyncio
from typing import Callable

from ..clients.protocols import IPushChannel
from ..errors import TransientError
from ..logging_config import get_logger
from ..models import ChannelEvent

logger = get_logger(__name__)


TypingListener = Callable[[bool], None]


class TypingIndicator:
    """Local "partner is typing" flag with a single resettable timer."""

    def __init__(self, room_id: str, self_id: str | None, timeout: float = 2.0):
        self._room_id = room_id
        self._self_id = self_id
        self._timeout = timeout
        self._typing = False
        self._handle: asyncio.TimerHandle | None = None
        self._listeners: list[TypingListener] = []

    @property
    def is_partner_typing(self) -> bool:
        return self._typing

    def add_listener(self, listener: TypingListener) -> None:
        """Register a callback fired on every on/off transition."""
        self._listeners.append(listener)

    async def handle_push(self, payload: dict) -> None:
        self.receive(payload)

    def receive(self, payload: dict) -> None:
        """Handle an incoming typing event."""
        if payload.get("workroomId") not in (None, self._room_id):
            return
        user_id = payload.get("userId")
        if user_id is not None and str(user_id) == str(self._self_id):
            return

        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._timeout, self._expire)

        if not self._typing:
            self._set(True)

    def close(self) -> None:
        """Cancel the pending timer and clear the flag."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._typing = False

    def _expire(self) -> None:
        self._handle = None
        self._set(False)

    def _set(self, value: bool) -> None:
        self._typing = value
        for listener in self._listeners:
            try:
                listener(value)
            except Exception as e:
                logger.error("Error in typing listener: %s", e, exc_info=True)


class TypingSignal:
    """Emits this user's typing events to the room."""

    def __init__(self, room_id: str, user_id: str, push: IPushChannel):
        self._room_id = room_id
        self._user_id = user_id
        self._push = push

    async def emit(self) -> None:
        """Broadcast once; failures are logged and dropped."""
        try:
            await self._push.send(
                ChannelEvent.TYPING,
                {"workroomId": self._room_id, "userId": self._user_id},
            )
        except TransientError as e:
            logger.debug("Typing signal dropped: %s", e)
