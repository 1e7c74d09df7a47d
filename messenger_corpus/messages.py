"""
Decode one Messenger export file (message_N.json) into canonical messages.

The raw bytes go through escape repair first, then JSON decoding, then a shape
check. Records without a text body get a lossy placeholder built from their
attachments so that every message still yields one line of corpus text.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from messenger_corpus.config import UNKNOWN_CONTENT
from messenger_corpus.errors import MalformedEscapeSequence, SchemaError
from messenger_corpus.escapes import repair

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Checked in this order when a record has no "content"
ATTACHMENT_KINDS: Tuple[Tuple[str, str], ...] = (
    ("photos", "PHOTOS"),
    ("gifs", "GIFS"),
    ("videos", "VIDEOS"),
)


@dataclass(frozen=True)
class Participant:
    name: str


@dataclass(frozen=True)
class Message:
    content: str
    author: str
    timestamp: datetime


@dataclass(frozen=True)
class ConversationFile:
    title: str
    participants: Tuple[Participant, ...]
    messages: Tuple[Message, ...]


# --- Helpers -----------------------------------------------------------------

def utc_from_ms(ms: int) -> datetime:
    """Milliseconds since the epoch -> aware UTC datetime, exact to the millisecond."""
    return EPOCH + timedelta(milliseconds=ms)


def _require(obj: Dict[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in obj:
        raise SchemaError(f"{where}: missing required field {key!r}")
    value = obj[key]
    # bool is an int subclass; a boolean timestamp is still a schema error
    if not isinstance(value, kind) or isinstance(value, bool):
        raise SchemaError(f"{where}: field {key!r} should be {kind.__name__}, got {type(value).__name__}")
    return value


def _uris(items: Any, field: str, where: str) -> List[str]:
    if not isinstance(items, list):
        raise SchemaError(f"{where}: field {field!r} should be a list")
    uris = []
    for item in items:
        if not isinstance(item, dict):
            raise SchemaError(f"{where}: entries of {field!r} should be objects")
        uris.append(_require(item, "uri", str, f"{where}.{field}"))
    return uris


def attachment_summary(header: str, uris: List[str]) -> str:
    """`PHOTOS: a.jpg-b.jpg`. Not reversible, only deterministic."""
    return f"{header}: " + "-".join(uris)


def content_for(record: Dict[str, Any], where: str = "message") -> str:
    """
    Text of a record. Priority when "content" is missing:
      - photos, gifs, videos (first non-empty list wins)
      - sticker uri
      - UNKNOWN_CONTENT
    """
    content = record.get("content")
    if content is not None:
        if not isinstance(content, str):
            raise SchemaError(f"{where}: field 'content' should be str")
        return content

    for field, header in ATTACHMENT_KINDS:
        if record.get(field):
            return attachment_summary(header, _uris(record[field], field, where))

    sticker = record.get("sticker")
    if sticker:
        if not isinstance(sticker, dict):
            raise SchemaError(f"{where}: field 'sticker' should be an object")
        return _require(sticker, "uri", str, f"{where}.sticker")

    return UNKNOWN_CONTENT


# --- Records / files ---------------------------------------------------------

def message_from_record(record: Dict[str, Any], where: str = "message") -> Message:
    if not isinstance(record, dict):
        raise SchemaError(f"{where}: expected an object, got {type(record).__name__}")
    author = _require(record, "sender_name", str, where)
    timestamp_ms = _require(record, "timestamp_ms", int, where)
    _require(record, "type", str, where)
    return Message(
        content=content_for(record, where),
        author=author,
        timestamp=utc_from_ms(timestamp_ms),
    )


def decode_export(raw: bytes) -> Dict[str, Any]:
    """Repair and JSON-decode one export file."""
    text = repair(raw)
    try:
        # strict=False: repaired runs may put raw control characters inside strings
        data = json.loads(text, strict=False)
    except json.JSONDecodeError as e:
        raise SchemaError(f"export is not valid JSON after repair: {e}") from e
    if not isinstance(data, dict):
        raise SchemaError(f"export root should be an object, got {type(data).__name__}")
    return data


def parse_conversation_file(raw: bytes, source: Optional[str] = None) -> ConversationFile:
    """
    Parse one message_N.json payload.

    Raises MalformedEscapeSequence when the escape runs are corrupt and
    SchemaError when the decoded document has the wrong shape.
    """
    where = source or "export"
    try:
        data = decode_export(raw)
    except MalformedEscapeSequence as e:
        raise MalformedEscapeSequence(f"{where}: {e}", offset=e.offset) from e
    except SchemaError as e:
        raise SchemaError(f"{where}: {e}") from e

    title = _require(data, "title", str, where)

    participants = []
    for i, p in enumerate(_require(data, "participants", list, where)):
        if not isinstance(p, dict):
            raise SchemaError(f"{where}.participants[{i}]: expected an object")
        participants.append(Participant(_require(p, "name", str, f"{where}.participants[{i}]")))

    messages = tuple(
        message_from_record(r, f"{where}.messages[{i}]")
        for i, r in enumerate(_require(data, "messages", list, where))
    )
    logger.debug(f"Decoded {len(messages)} messages from {where}")
    return ConversationFile(title=title, participants=tuple(participants), messages=messages)
