"""Projection of raw message records into Message view state."""

import hashlib
import json
from datetime import datetime
from typing import Any

from ..models import Message
from .attachments import normalize_attachments
from .fields import (
    get_message_id,
    get_sender_id,
    get_text,
    get_timestamp,
    parse_timestamp,
)


def _content_digest(record: Any) -> str:
    """Stable id for records that carry none, so repeated copies still dedupe."""
    basis = json.dumps(
        {
            "sender": get_sender_id(record),
            "text": get_text(record),
            "timestamp": str(get_timestamp(record)),
            "attachments": [a.url for a in normalize_attachments(record)],
        },
        sort_keys=True,
    )
    return "local-" + hashlib.sha1(basis.encode("utf-8")).hexdigest()


def project_message(record: Any, received_at: datetime) -> Message:
    """Build a Message from a raw record of unknown shape.

    Missing timestamps fall back to received_at; missing ids fall back to a
    content digest.
    """
    timestamp = parse_timestamp(get_timestamp(record)) or received_at
    return Message(
        id=get_message_id(record) or _content_digest(record),
        sender_id=get_sender_id(record),
        text=get_text(record),
        timestamp=timestamp,
        attachments=tuple(normalize_attachments(record)),
    )
