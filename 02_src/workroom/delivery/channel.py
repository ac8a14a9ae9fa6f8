"""DeliveryChannelManager: push delivery with periodic reconciliation."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable

from ..clients.protocols import IMessageHistoryClient, IPushChannel
from ..config import WorkroomSettings
from ..errors import TransientError
from ..logging_config import get_logger
from ..models import ChannelEvent, Message
from ..normalize import project_message
from .message_list import MessageList

logger = get_logger(__name__)


MessagesListener = Callable[[list[Message]], None]
ReconcileHook = Callable[[], Awaitable[None]]


class ChannelState(str, Enum):
    """Lifecycle of a DeliveryChannelManager."""

    IDLE = "idle"
    SYNCING = "syncing"
    LIVE = "live"
    CLOSED = "closed"


@dataclass
class _Delivery:
    """One unit of work for the consumer."""

    source: str  # "push", "reconcile" or "local"
    records: list[dict] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    done: asyncio.Future | None = None


class DeliveryChannelManager:
    """Keeps one room's message list eventually consistent.

    Push events, reconciliation snapshots and locally confirmed messages are
    queued and applied by a single consumer task, so the list has exactly one
    writer no matter which source produced a message.
    """

    def __init__(
        self,
        room_id: str,
        history: IMessageHistoryClient,
        push: IPushChannel,
        settings: WorkroomSettings | None = None,
    ):
        self._room_id = room_id
        self._history = history
        self._push = push
        self._settings = settings or WorkroomSettings()

        self._messages = MessageList()
        self._queue: asyncio.Queue[_Delivery] = asyncio.Queue()
        self._listeners: list[MessagesListener] = []
        self._hooks: list[ReconcileHook] = []
        self._consumer: asyncio.Task | None = None
        self._timer: asyncio.Task | None = None
        self._state = ChannelState.IDLE

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def messages(self) -> list[Message]:
        """Current view in (timestamp, id) order."""
        return self._messages.get_all()

    def add_listener(self, listener: MessagesListener) -> None:
        """Register a callback receiving the full view after each change."""
        self._listeners.append(listener)

    def add_reconcile_hook(self, hook: ReconcileHook) -> None:
        """Run an extra coroutine on every reconciliation tick."""
        self._hooks.append(hook)

    async def start(self) -> None:
        """Subscribe to push, run the initial fetch, start the reconcile timer."""
        if self._state is not ChannelState.IDLE:
            return

        self._state = ChannelState.SYNCING
        self._push.subscribe(ChannelEvent.MESSAGE_NEW, self._on_push)
        self._consumer = asyncio.create_task(self._consume())

        try:
            await self.sync()
        except TransientError as e:
            logger.warning("Initial fetch failed for %s: %s", self._room_id, e)

        if self._state is ChannelState.CLOSED:
            return
        self._state = ChannelState.LIVE
        self._timer = asyncio.create_task(self._reconcile_loop())
        logger.info(
            "Delivery started",
            extra={"context": {"room_id": self._room_id, "count": len(self._messages)}},
        )

    async def stop(self) -> None:
        """Unsubscribe and cancel the timer and consumer. Idempotent."""
        if self._state is ChannelState.CLOSED:
            return
        self._state = ChannelState.CLOSED
        self._push.unsubscribe(ChannelEvent.MESSAGE_NEW, self._on_push)

        for task in (self._timer, self._consumer):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._timer = None
        self._consumer = None

        # Work still queued was never applied; its waiters see nothing new
        while not self._queue.empty():
            pending = self._queue.get_nowait()
            if pending.done is not None and not pending.done.done():
                pending.done.set_result(0)

    async def sync(self) -> int:
        """Fetch the full history and merge it. Returns how many were new."""
        records = await self._fetch_all()
        return await self._submit(_Delivery(source="reconcile", records=records))

    async def deliver(self, message: Message) -> bool:
        """Merge a locally confirmed message. Returns True if it was new."""
        added = await self._submit(_Delivery(source="local", messages=[message]))
        return added > 0

    async def _on_push(self, payload: dict) -> None:
        room = payload.get("workroomId")
        if room is not None and room != self._room_id:
            return
        # Not awaited: the push reader must never wait on the consumer
        self._queue.put_nowait(_Delivery(source="push", records=[payload]))

    async def _submit(self, delivery: _Delivery) -> int:
        if self._consumer is None or self._consumer.done():
            return self._apply(delivery)

        delivery.done = asyncio.get_running_loop().create_future()
        self._queue.put_nowait(delivery)
        return await delivery.done

    async def _consume(self) -> None:
        while True:
            delivery = await self._queue.get()
            try:
                added = self._apply(delivery)
            except Exception as e:
                logger.error("Failed to apply %s delivery: %s", delivery.source, e, exc_info=True)
                if delivery.done is not None and not delivery.done.done():
                    delivery.done.set_exception(e)
            else:
                if delivery.done is not None and not delivery.done.done():
                    delivery.done.set_result(added)
            finally:
                self._queue.task_done()

    def _apply(self, delivery: _Delivery) -> int:
        received_at = datetime.now(timezone.utc)
        incoming = list(delivery.messages)
        incoming.extend(project_message(r, received_at) for r in delivery.records)

        added = self._messages.merge(incoming)
        if added:
            logger.debug(
                "Merged %d message(s) from %s", len(added), delivery.source
            )
            self._notify()
        return len(added)

    def _notify(self) -> None:
        view = self._messages.get_all()
        for listener in self._listeners:
            try:
                listener(view)
            except Exception as e:
                logger.error("Error in messages listener: %s", e, exc_info=True)

    async def _fetch_all(self) -> list[dict]:
        records: list[dict] = []
        cursor: str | None = None
        for _ in range(self._settings.max_history_pages):
            page = await self._history.list_messages(
                self._room_id, cursor=cursor, limit=self._settings.history_page_size
            )
            records.extend(page.items)
            if not page.next_cursor or page.next_cursor == cursor:
                break
            cursor = page.next_cursor
        else:
            logger.warning(
                "History truncated at %d pages; older messages not loaded",
                self._settings.max_history_pages,
                extra={"context": {"room_id": self._room_id, "count": len(records)}},
            )
        return records

    async def _reconcile_loop(self) -> None:
        """Fixed-interval refetch; failures wait for the next tick."""
        while self._state is ChannelState.LIVE:
            try:
                await asyncio.sleep(self._settings.reconcile_interval)
                await self.sync()
            except asyncio.CancelledError:
                break
            except TransientError as e:
                logger.warning("Reconciliation failed for %s: %s", self._room_id, e)
            except Exception as e:
                logger.error("Reconciliation error for %s: %s", self._room_id, e, exc_info=True)

            for hook in self._hooks:
                try:
                    await hook()
                except asyncio.CancelledError:
                    return
                except Exception as e:
                    logger.warning("Reconcile hook failed for %s: %s", self._room_id, e)
