"""FinalisationHandshake: two-party close of a room."""

from ..clients.protocols import IFinaliseClient, IRoomMetaClient
from ..errors import RoomLockedError
from ..logging_config import get_logger
from ..models import Role, RoomPhase
from ..normalize import parse_timestamp
from .tracker import RoomStateTracker

logger = get_logger(__name__)


class FinalisationHandshake:
    """Drives Open -> OnePartyFinalised -> Locked for the viewing party."""

    def __init__(
        self,
        room_id: str,
        role: Role,
        tracker: RoomStateTracker,
        finaliser: IFinaliseClient,
        meta_client: IRoomMetaClient | None = None,
    ):
        self._room_id = room_id
        self._role = role
        self._tracker = tracker
        self._finaliser = finaliser
        self._meta_client = meta_client

    @property
    def role(self) -> Role:
        return self._role

    @property
    def phase(self) -> RoomPhase:
        return self._tracker.phase

    @property
    def settlement_path(self) -> str | None:
        """Where the UI continues once the room is locked."""
        if not self._tracker.is_locked:
            return None
        return f"/workroom/{self._room_id}/complete"

    async def finalise(self) -> RoomPhase:
        """Finalise on behalf of this party. Idempotent."""
        if self._tracker.is_finalised_by(self._role):
            logger.debug("Finalise re-issued for %s; no-op", self._role.value)
            return self._tracker.phase

        # CollaboratorError propagates; the user retries explicitly
        flags = await self._finaliser.finalise(self._room_id)
        self._apply_flags(flags)
        # The caller's own flag is set even if the reply omitted it
        self._tracker.apply_finalisation_update(self._role)
        return self._tracker.phase

    async def handle_push(self, payload: dict) -> None:
        """Apply a finalise broadcast for this room."""
        if payload.get("workroomId") not in (None, self._room_id):
            return
        self._apply_flags(payload)

    async def refresh(self) -> None:
        """Re-read room meta and merge its flags."""
        if self._meta_client is None:
            return
        meta = await self._meta_client.get_meta(self._room_id)
        self._apply_state(
            meta.state.client_finalised,
            meta.state.worker_finalised,
            meta.state.finalised_at,
        )

    def _apply_flags(self, flags: dict) -> None:
        finalised_at = parse_timestamp(flags.get("finalisedAt"))
        # Absent flags keep the previous value
        client = flags.get("clientFinalised")
        worker = flags.get("workerFinalised")
        self._apply_state(
            self._tracker.state.client_finalised if client is None else bool(client),
            self._tracker.state.worker_finalised if worker is None else bool(worker),
            finalised_at,
        )

    def _apply_state(self, client: bool, worker: bool, finalised_at) -> None:
        try:
            self._tracker.apply_snapshot(client, worker, finalised_at)
        except RoomLockedError:
            logger.warning(
                "Ignoring stale flags for locked room %s", self._room_id
            )
