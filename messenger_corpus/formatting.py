"""
Render sessions as corpus text.

    |Alice Bob|
    |EOM||3 2021 0 Alice|: hi
    |EOM||3 2021 42 Bob|: hey
    <|endoftext|>|Alice Bob|
    ...

Each session starts with a header naming the conversation's participants,
messages are joined by the end-of-message delimiter and sessions by the
end-of-conversation delimiter.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Sequence

from messenger_corpus.config import EOC, EOM
from messenger_corpus.messages import Message, Participant
from messenger_corpus.segment import Segment, TaggedMessage, segment


def format_header(participants: Sequence[Participant]) -> str:
    return "|" + " ".join(p.name for p in participants) + "|\n"


def format_message(seg: Segment, message: Message) -> str:
    return (
        f"|{seg.anchor.month} {seg.anchor.year} {seg.offset(message)} {message.author}|: "
        f"{message.content}\n"
    )


def format_segment(seg: Segment, participants: Sequence[Participant], eom: str = EOM) -> str:
    lines = [format_header(participants)]
    lines.extend(format_message(seg, m) for m in seg.messages)
    return eom.join(lines)


def format_segments(
    tagged: Iterable[TaggedMessage],
    participants_by_id: Mapping[str, Sequence[Participant]],
    eom: str = EOM,
) -> List[str]:
    return [
        format_segment(seg, participants_by_id[seg.conversation_id], eom)
        for seg in segment(tagged)
    ]


def format_conversation(
    tagged: Iterable[TaggedMessage],
    participants_by_id: Mapping[str, Sequence[Participant]],
    eom: str = EOM,
    eoc: str = EOC,
) -> str:
    """Full corpus text for an ordered tagged stream; empty input gives ""."""
    return eoc.join(format_segments(tagged, participants_by_id, eom))
