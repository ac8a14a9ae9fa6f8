"""Field probing for message records whose shape varies by backend revision.

Each concept is resolved by walking an ordered list of candidate keys and
returning the first present value. "Present" means the key exists and the
value is neither None nor an empty string. The candidate lists below are a
versioned contract: reordering them changes which field wins when a record
carries several.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

SENDER_ID_KEYS: tuple[str, ...] = ("senderId", "userId", "authorId")
SENDER_OBJECT_KEYS: tuple[str, ...] = ("sender", "user", "author")
OBJECT_ID_KEYS: tuple[str, ...] = ("_id", "id")
TEXT_KEYS: tuple[str, ...] = ("text", "content", "message", "body", "msg", "caption")
TIMESTAMP_KEYS: tuple[str, ...] = (
    "createdAt",
    "created_at",
    "timestamp",
    "time",
    "createdOn",
    "created_on",
    "date",
)
MESSAGE_ID_KEYS: tuple[str, ...] = ("_id", "id", "messageId", "message_id")


def is_present(value: Any) -> bool:
    """True unless the value is None or an empty string."""
    return value is not None and value != ""


def first_of(record: Any, keys: Sequence[str]) -> Any:
    """Return the first present value among keys, or None."""
    if not isinstance(record, Mapping):
        return None
    for key in keys:
        value = record.get(key)
        if is_present(value):
            return value
    return None


def _as_id(value: Any) -> str | None:
    if not is_present(value) or isinstance(value, (Mapping, list, tuple)):
        return None
    return str(value)


def get_sender_id(record: Any) -> str | None:
    """Resolve the sender id: flat keys first, then nested sender objects."""
    flat = _as_id(first_of(record, SENDER_ID_KEYS))
    if flat is not None:
        return flat

    if not isinstance(record, Mapping):
        return None

    for key in SENDER_OBJECT_KEYS:
        nested = record.get(key)
        if isinstance(nested, Mapping):
            nested_id = _as_id(first_of(nested, OBJECT_ID_KEYS))
            if nested_id is not None:
                return nested_id

    # Socket relays emit "sender" as a bare id
    return _as_id(record.get("sender"))


def get_text(record: Any) -> str | None:
    """Resolve the message text."""
    value = first_of(record, TEXT_KEYS)
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return None
    return value if isinstance(value, str) else str(value)


def get_timestamp(record: Any) -> Any:
    """Resolve the raw timestamp value, unparsed."""
    return first_of(record, TIMESTAMP_KEYS)


def get_message_id(record: Any) -> str | None:
    """Resolve the message id."""
    return _as_id(first_of(record, MESSAGE_ID_KEYS))


def parse_timestamp(value: Any) -> datetime | None:
    """Convert a raw timestamp into an aware UTC datetime.

    Numbers are epoch milliseconds. Strings may be ISO-8601 (a trailing
    "Z" is accepted) or numeric. Naive values are taken as UTC.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return parse_timestamp(float(text))
        except ValueError:
            pass
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
