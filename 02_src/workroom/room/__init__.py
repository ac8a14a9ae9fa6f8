"""Room state and finalisation."""

from .handshake import FinalisationHandshake
from .tracker import RoomStateTracker

__all__ = ["FinalisationHandshake", "RoomStateTracker"]
