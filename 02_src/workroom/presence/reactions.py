"""Local-only message reactions."""

from ..models import Reaction


class ReactionBoard:
    """At most one reaction per message, held only in this view."""

    def __init__(self):
        self._reactions: dict[str, Reaction] = {}

    def toggle(self, message_id: str, reaction: Reaction) -> Reaction | None:
        """Select a reaction; selecting the active one clears it."""
        if self._reactions.get(message_id) is reaction:
            del self._reactions[message_id]
            return None
        self._reactions[message_id] = reaction
        return reaction

    def get(self, message_id: str) -> Reaction | None:
        return self._reactions.get(message_id)

    def clear(self) -> None:
        self._reactions.clear()
