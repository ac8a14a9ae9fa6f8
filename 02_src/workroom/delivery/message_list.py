"""MessageList implementation."""

import bisect
from typing import Iterable

from ..models import Message


class MessageList:
    """Id-deduplicated messages kept in (timestamp, id) order."""

    def __init__(self):
        self._by_id: dict[str, Message] = {}
        self._ordered: list[Message] = []

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._by_id

    def add(self, message: Message) -> bool:
        """Insert a message unless its id is already present."""
        if message.id in self._by_id:
            return False
        self._by_id[message.id] = message
        bisect.insort(self._ordered, message, key=lambda m: m.sort_key)
        return True

    def merge(self, messages: Iterable[Message]) -> list[Message]:
        """Insert every unseen message. Returns the ones that were added."""
        return [message for message in messages if self.add(message)]

    def get(self, message_id: str) -> Message | None:
        return self._by_id.get(message_id)

    def get_all(self) -> list[Message]:
        """Get all messages in display order."""
        return self._ordered.copy()

    def clear(self) -> None:
        self._by_id.clear()
        self._ordered.clear()
