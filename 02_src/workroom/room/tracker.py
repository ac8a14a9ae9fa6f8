"""RoomStateTracker: finalisation flags and derived lock state."""

from datetime import datetime, timezone
from typing import Callable

from ..errors import RoomLockedError
from ..logging_config import get_logger
from ..models import Role, RoomPhase, RoomState

logger = get_logger(__name__)


Clock = Callable[[], datetime]
LockListener = Callable[[RoomState], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RoomStateTracker:
    """Holds one room's finalisation flags.

    Flags only ever go from False to True. The room is locked when both are
    set, and finalised_at is stamped at that moment and never changed again.
    """

    def __init__(
        self,
        room_id: str,
        state: RoomState | None = None,
        clock: Clock = _utc_now,
    ):
        self._room_id = room_id
        self._clock = clock
        self._state = RoomState()
        self._lock_listeners: list[LockListener] = []

        if state is not None:
            # A terminal timestamp implies both parties finalised
            locked = state.finalised_at is not None
            self._state = RoomState(
                client_finalised=state.client_finalised or locked,
                worker_finalised=state.worker_finalised or locked,
                finalised_at=state.finalised_at,
            )
            self._settle_finalised_at(state.finalised_at)

    @property
    def room_id(self) -> str:
        return self._room_id

    @property
    def state(self) -> RoomState:
        """Copy of the current flags."""
        return RoomState(
            client_finalised=self._state.client_finalised,
            worker_finalised=self._state.worker_finalised,
            finalised_at=self._state.finalised_at,
        )

    @property
    def is_locked(self) -> bool:
        return self._state.client_finalised and self._state.worker_finalised

    @property
    def phase(self) -> RoomPhase:
        if self.is_locked:
            return RoomPhase.LOCKED
        if self._state.client_finalised or self._state.worker_finalised:
            return RoomPhase.ONE_PARTY_FINALISED
        return RoomPhase.OPEN

    def is_finalised_by(self, role: Role) -> bool:
        if role is Role.CLIENT:
            return self._state.client_finalised
        return self._state.worker_finalised

    def add_lock_listener(self, listener: LockListener) -> None:
        """Register a callback fired once when the room becomes locked."""
        self._lock_listeners.append(listener)

    def require_open(self) -> None:
        """Raise RoomLockedError if the room no longer accepts messages."""
        if self.is_locked:
            raise RoomLockedError(self._room_id)

    def apply_finalisation_update(
        self, role: Role, finalised_at: datetime | None = None
    ) -> bool:
        """Record that one party finalised. Returns True if state changed."""
        if self.is_finalised_by(role):
            return False

        was_locked = self.is_locked
        if role is Role.CLIENT:
            self._state.client_finalised = True
        else:
            self._state.worker_finalised = True

        logger.info(
            "Party finalised",
            extra={"context": {"room_id": self._room_id, "role": role.value}},
        )
        self._settle_finalised_at(finalised_at)
        if self.is_locked and not was_locked:
            self._notify_locked()
        return True

    def apply_snapshot(
        self,
        client_finalised: bool,
        worker_finalised: bool,
        finalised_at: datetime | None = None,
    ) -> bool:
        """Merge server-reported flags. Returns True if state changed.

        Raises RoomLockedError when a locked room is told to reopen.
        """
        if finalised_at is not None:
            client_finalised = worker_finalised = True

        if self.is_locked and not (client_finalised and worker_finalised):
            raise RoomLockedError(
                self._room_id, "Refusing to reopen a finalised room"
            )

        changed = False
        if client_finalised and not self._state.client_finalised:
            changed = self.apply_finalisation_update(Role.CLIENT, finalised_at) or changed
        if worker_finalised and not self._state.worker_finalised:
            changed = self.apply_finalisation_update(Role.WORKER, finalised_at) or changed
        return changed

    def _settle_finalised_at(self, candidate: datetime | None) -> None:
        """Keep finalised_at set iff both flags are set."""
        if not self.is_locked:
            self._state.finalised_at = None
            return
        if self._state.finalised_at is None:
            self._state.finalised_at = candidate or self._clock()

    def _notify_locked(self) -> None:
        logger.info(
            "Room locked",
            extra={"context": {"room_id": self._room_id}},
        )
        snapshot = self.state
        for listener in self._lock_listeners:
            try:
                listener(snapshot)
            except Exception as e:
                logger.error("Error in lock listener: %s", e, exc_info=True)
