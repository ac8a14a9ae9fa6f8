"""WorkroomSession: one room view, from entry to leave."""

import asyncio

from .clients.protocols import IPushChannel, IWorkroomApi
from .config import WorkroomSettings
from .delivery import DeliveryChannelManager
from .errors import PushChannelError
from .logging_config import room_logger
from .models import ChannelEvent, Message, RoomMeta
from .outbox import Composer
from .presence import ReactionBoard, TypingIndicator, TypingSignal
from .room import FinalisationHandshake, RoomStateTracker


class WorkroomSession:
    """Wires the messaging components for one room and one viewer.

    Usable as an async context manager; leaving runs on every exit path.
    """

    def __init__(
        self,
        room_id: str,
        api: IWorkroomApi,
        push: IPushChannel,
        settings: WorkroomSettings | None = None,
    ):
        self._room_id = room_id
        self._api = api
        self._push = push
        self._settings = settings or WorkroomSettings()
        self._log = room_logger(__name__, room_id)

        # Components (will be initialized in enter())
        self._user_id: str | None = None
        self._meta: RoomMeta | None = None
        self._tracker: RoomStateTracker | None = None
        self._handshake: FinalisationHandshake | None = None
        self._delivery: DeliveryChannelManager | None = None
        self._composer: Composer | None = None
        self._typing: TypingIndicator | None = None
        self._typing_signal: TypingSignal | None = None
        self._reactions = ReactionBoard()
        self._push_connected = False

    async def __aenter__(self) -> "WorkroomSession":
        await self.enter()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.leave()

    async def enter(self) -> None:
        """Initialize components in dependency order."""
        self._log.info("Entering workroom")
        try:
            await self._enter()
        except BaseException:
            await self.leave()
            raise

    async def _enter(self) -> None:
        # 1. Current user, read once
        self._user_id = await self._api.get_current_user()

        # 2. Meta and finalisation flags
        self._meta = await self._api.get_meta(self._room_id)
        self._tracker = RoomStateTracker(self._room_id, self._meta.state)

        # 3. Handshake (tracker + finalise/meta collaborators)
        self._handshake = FinalisationHandshake(
            room_id=self._room_id,
            role=self._meta.role,
            tracker=self._tracker,
            finaliser=self._api,
            meta_client=self._api,
        )

        # 4. Delivery manager (history + push)
        self._delivery = DeliveryChannelManager(
            room_id=self._room_id,
            history=self._api,
            push=self._push,
            settings=self._settings,
        )
        self._delivery.add_reconcile_hook(self._handshake.refresh)

        # 5. Composer feeds confirmations back through delivery
        self._composer = Composer(
            room_id=self._room_id,
            writer=self._api,
            tracker=self._tracker,
            sink=self._delivery,
        )

        # 6. Typing
        self._typing = TypingIndicator(
            self._room_id, self._user_id, timeout=self._settings.typing_timeout
        )
        self._typing_signal = TypingSignal(self._room_id, self._user_id, self._push)

        self._push.subscribe(ChannelEvent.TYPING, self._typing.handle_push)
        self._push.subscribe(ChannelEvent.FINALISE_UPDATE, self._handshake.handle_push)
        self._push.subscribe(ChannelEvent.FINALISED, self._handshake.handle_push)
        self._push.subscribe(ChannelEvent.ERROR, self._on_push_error)

        # 7. Push connect and initial fetch run concurrently
        await asyncio.gather(self._connect_push(), self._delivery.start())
        self._log.info("Workroom ready", extra={"context": {"user_id": self._user_id}})

    async def _connect_push(self) -> None:
        """Push is best-effort; reconciliation covers its absence."""
        try:
            await self._push.connect()
            self._push_connected = True
        except PushChannelError as e:
            self._log.warning("Push unavailable: %s", e)

    async def _on_push_error(self, data: dict) -> None:
        self._push_connected = False
        self._log.warning("Push channel refused: %s", data.get("error"))

    async def leave(self) -> None:
        """Shutdown in reverse order."""
        if self._typing:
            self._typing.close()
            self._push.unsubscribe(ChannelEvent.TYPING, self._typing.handle_push)
        if self._handshake:
            self._push.unsubscribe(ChannelEvent.FINALISE_UPDATE, self._handshake.handle_push)
            self._push.unsubscribe(ChannelEvent.FINALISED, self._handshake.handle_push)
            self._push.unsubscribe(ChannelEvent.ERROR, self._on_push_error)
        try:
            if self._delivery:
                await self._delivery.stop()
        finally:
            await self._push.close()
            self._push_connected = False
            self._log.info("Left workroom")

    async def send_typing(self) -> None:
        """Tell the other party this user is typing."""
        if self._typing_signal is not None:
            await self._typing_signal.emit()

    @property
    def user_id(self) -> str:
        if self._user_id is None:
            raise RuntimeError("Session not entered")
        return self._user_id

    @property
    def meta(self) -> RoomMeta:
        if not self._meta:
            raise RuntimeError("Session not entered")
        return self._meta

    @property
    def push_connected(self) -> bool:
        return self._push_connected

    @property
    def tracker(self) -> RoomStateTracker:
        if not self._tracker:
            raise RuntimeError("Session not entered")
        return self._tracker

    @property
    def handshake(self) -> FinalisationHandshake:
        if not self._handshake:
            raise RuntimeError("Session not entered")
        return self._handshake

    @property
    def delivery(self) -> DeliveryChannelManager:
        if not self._delivery:
            raise RuntimeError("Session not entered")
        return self._delivery

    @property
    def composer(self) -> Composer:
        if not self._composer:
            raise RuntimeError("Session not entered")
        return self._composer

    @property
    def typing(self) -> TypingIndicator:
        if not self._typing:
            raise RuntimeError("Session not entered")
        return self._typing

    @property
    def reactions(self) -> ReactionBoard:
        return self._reactions

    @property
    def messages(self) -> list[Message]:
        return self.delivery.messages
