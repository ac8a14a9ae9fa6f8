"""Attachment normalisation into canonical url/name/kind records."""

import re
from collections.abc import Mapping
from typing import Any

from ..models import Attachment, AttachmentKind
from .fields import first_of

ATTACHMENT_COLLECTION_KEYS: tuple[str, ...] = (
    "attachments",
    "files",
    "media",
    "assets",
    "uploads",
)
ATTACHMENT_URL_KEYS: tuple[str, ...] = (
    "url",
    "path",
    "location",
    "secure_url",
    "src",
    "href",
)
ATTACHMENT_NAME_KEYS: tuple[str, ...] = ("name", "original_name", "filename")
ATTACHMENT_TYPE_KEYS: tuple[str, ...] = ("type", "contentType", "mimetype")

IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "gif", "webp")
VIDEO_EXTENSIONS = ("mp4", "webm", "mov")

_IMAGE_SUFFIX = re.compile(r"\.(%s)$" % "|".join(IMAGE_EXTENSIONS))
_VIDEO_SUFFIX = re.compile(r"\.(%s)$" % "|".join(VIDEO_EXTENSIONS))


def guess_kind(declared_type: Any = None, name: Any = None) -> AttachmentKind:
    """Infer media kind from a declared type and a filename."""
    declared = declared_type if isinstance(declared_type, str) else ""
    filename = name if isinstance(name, str) else ""
    probe = f"{declared} {filename}".strip().lower()

    if "image" in probe or _IMAGE_SUFFIX.search(probe):
        return AttachmentKind.IMAGE
    if "video" in probe or _VIDEO_SUFFIX.search(probe):
        return AttachmentKind.VIDEO
    return AttachmentKind.FILE


def _last_segment(url: str) -> str | None:
    segment = url.rstrip("/").split("/")[-1]
    segment = segment.split("?", 1)[0].split("#", 1)[0]
    return segment or None


def normalize_attachment(raw: Any) -> Attachment | None:
    """Project one raw attachment; None when no URL can be resolved."""
    if isinstance(raw, str):
        if not raw.strip():
            return None
        name = _last_segment(raw)
        return Attachment(url=raw, name=name, kind=guess_kind(None, name))

    if not isinstance(raw, Mapping):
        return None

    url = first_of(raw, ATTACHMENT_URL_KEYS)
    if not isinstance(url, str) or not url.strip():
        return None

    name = first_of(raw, ATTACHMENT_NAME_KEYS)
    if not isinstance(name, str):
        name = _last_segment(url)

    declared = first_of(raw, ATTACHMENT_TYPE_KEYS)
    return Attachment(url=url, name=name, kind=guess_kind(declared, name))


def normalize_attachments(record: Any) -> list[Attachment]:
    """Normalise every attachment of a raw message, dropping unresolvable ones."""
    raw = first_of(record, ATTACHMENT_COLLECTION_KEYS)
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raw = [raw]

    result = []
    for item in raw:
        attachment = normalize_attachment(item)
        if attachment is not None:
            result.append(attachment)
    return result
