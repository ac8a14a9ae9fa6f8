"""Shape probing for raw backend records."""

from .attachments import guess_kind, normalize_attachment, normalize_attachments
from .fields import (
    MESSAGE_ID_KEYS,
    SENDER_ID_KEYS,
    SENDER_OBJECT_KEYS,
    TEXT_KEYS,
    TIMESTAMP_KEYS,
    first_of,
    get_message_id,
    get_sender_id,
    get_text,
    get_timestamp,
    parse_timestamp,
)
from .projection import project_message

__all__ = [
    "MESSAGE_ID_KEYS",
    "SENDER_ID_KEYS",
    "SENDER_OBJECT_KEYS",
    "TEXT_KEYS",
    "TIMESTAMP_KEYS",
    "first_of",
    "get_message_id",
    "get_sender_id",
    "get_text",
    "get_timestamp",
    "parse_timestamp",
    "guess_kind",
    "normalize_attachment",
    "normalize_attachments",
    "project_message",
]
