"""
Session segmentation.

A session is a run of messages from one conversation with no gap longer than
CONVERSATION_TIMEOUT between neighbours. Each session has an anchor (its first
timestamp); message offsets and the session's month/year label are measured
from it. The splitter reuses `elapsed_seconds` and `is_session_break`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from messenger_corpus.config import CONVERSATION_TIMEOUT
from messenger_corpus.messages import Message


@dataclass(frozen=True)
class TaggedMessage:
    """A message plus the archive-level conversation it came from."""

    message: Message
    conversation_id: str


def elapsed_seconds(earlier: datetime, later: datetime) -> int:
    """Whole seconds from `earlier` to `later`, truncated toward zero."""
    return int((later - earlier).total_seconds())


def is_session_break(previous: datetime, current: datetime) -> bool:
    return elapsed_seconds(previous, current) > CONVERSATION_TIMEOUT


@dataclass(frozen=True)
class SegmentCursor:
    """Fold state carried from one message to the next."""

    conversation_id: str
    anchor: datetime
    last: datetime

    @classmethod
    def start(cls, tagged: TaggedMessage) -> "SegmentCursor":
        ts = tagged.message.timestamp
        return cls(tagged.conversation_id, ts, ts)

    def breaks_at(self, tagged: TaggedMessage) -> bool:
        # either condition closes the segment on its own
        return (
            tagged.conversation_id != self.conversation_id
            or is_session_break(self.last, tagged.message.timestamp)
        )

    def extend(self, tagged: TaggedMessage) -> "SegmentCursor":
        """Same segment, one message later. Callers have already ruled out a break."""
        return SegmentCursor(self.conversation_id, self.anchor, tagged.message.timestamp)

    def advance(self, tagged: TaggedMessage) -> "SegmentCursor":
        if self.breaks_at(tagged):
            return SegmentCursor.start(tagged)
        return self.extend(tagged)


@dataclass
class Segment:
    conversation_id: str
    anchor: datetime
    messages: List[Message] = field(default_factory=list)

    def offset(self, message: Message) -> int:
        return elapsed_seconds(self.anchor, message.timestamp)


def segment(tagged: Iterable[TaggedMessage]) -> List[Segment]:
    """Group an ordered tagged stream into sessions. Input order is kept."""
    segments: List[Segment] = []
    cursor: Optional[SegmentCursor] = None
    for item in tagged:
        if cursor is None or cursor.breaks_at(item):
            cursor = SegmentCursor.start(item)
            segments.append(Segment(item.conversation_id, cursor.anchor))
        else:
            cursor = cursor.extend(item)
        segments[-1].messages.append(item.message)
    return segments


def tag(messages: Iterable[Message], conversation_id: str) -> List[TaggedMessage]:
    return [TaggedMessage(m, conversation_id) for m in messages]
