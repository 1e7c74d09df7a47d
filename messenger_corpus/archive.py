"""
Read conversations out of a Messenger export zip.

Exports lay threads out as `.../inbox/<thread_folder>/message_N.json`, with
long threads split over several numbered files and media in sibling folders.
The thread folder name is the conversation identity.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
import re
import zipfile
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List, Sequence, Tuple

from tqdm import tqdm

from messenger_corpus.errors import ParticipantMismatch, UnknownConversation
from messenger_corpus.messages import ConversationFile, Message, Participant, parse_conversation_file

logger = logging.getLogger(__name__)

MESSAGE_FILE_RE = re.compile(r"^message_\d+\.json$")


@dataclass(frozen=True)
class Conversation:
    name: str
    title: str
    participants: Tuple[Participant, ...]
    messages: Tuple[Message, ...]


# --- Discovery ---------------------------------------------------------------

def conversation_name(member: str) -> str | None:
    """Thread folder of a `message_N.json` member, or None for anything else."""
    path = PurePosixPath(member)
    if not MESSAGE_FILE_RE.match(path.name) or path.parent.name == "":
        return None
    return path.parent.name


def find_conversations(zf: zipfile.ZipFile) -> Dict[str, List[str]]:
    """Return {conversation_name: [member, ...]} with members sorted by name."""
    conv_map: Dict[str, List[str]] = defaultdict(list)
    for info in zf.infolist():
        if info.is_dir():
            continue
        name = conversation_name(info.filename)
        if name is not None:
            conv_map[name].append(info.filename)
    return {name: sorted(members) for name, members in conv_map.items()}


def list_conversations(archive: Path) -> List[str]:
    with zipfile.ZipFile(archive) as zf:
        return sorted(find_conversations(zf))


def members_for(conv_map: Dict[str, List[str]], name: str) -> List[str]:
    try:
        return conv_map[name]
    except KeyError:
        raise UnknownConversation(f"no conversation named {name!r} in archive") from None


# --- Loading -----------------------------------------------------------------

def _parse_member(job: Tuple[str, bytes]) -> ConversationFile:
    member, payload = job
    return parse_conversation_file(payload, source=member)


def merge_files(name: str, files: Sequence[ConversationFile]) -> Conversation:
    """
    Merge the files of one conversation.

    Every file must list the same participants. Messages are sorted by
    timestamp; the sort is stable so same-instant messages keep file order.
    """
    if not files:
        raise UnknownConversation(f"conversation {name!r} has no message files")

    participants = files[0].participants
    for i, f in enumerate(files[1:], 1):
        if f.participants != participants:
            raise ParticipantMismatch(
                f"{name}: file {i} lists participants {[p.name for p in f.participants]}, "
                f"expected {[p.name for p in participants]}"
            )

    messages = sorted((m for f in files for m in f.messages), key=lambda m: m.timestamp)
    logger.info(f"Sorted {len(messages)} messages by timestamp")
    return Conversation(
        name=name,
        title=files[-1].title,
        participants=participants,
        messages=tuple(messages),
    )


def load_conversation(
    zf: zipfile.ZipFile,
    name: str,
    members: Sequence[str],
    workers: int = 1,
    progress: bool = False,
) -> Conversation:
    """
    Parse every member of one conversation and merge them.

    With workers > 1 files are parsed in a process pool; results come back in
    member order, so the merged stream does not depend on scheduling.
    """
    jobs = []
    for member in members:
        payload = zf.read(member)
        jobs.append((member, payload))

    bar = tqdm(total=len(jobs), desc=name, unit="file", disable=not progress)
    files: List[ConversationFile] = []
    try:
        if workers > 1 and len(jobs) > 1:
            with mp.Pool(processes=min(workers, len(jobs))) as pool:
                for (member, payload), parsed in zip(jobs, pool.imap(_parse_member, jobs)):
                    files.append(parsed)
                    _log_parsed(member, payload, parsed)
                    bar.update(1)
        else:
            for member, payload in jobs:
                parsed = _parse_member((member, payload))
                files.append(parsed)
                _log_parsed(member, payload, parsed)
                bar.update(1)
    finally:
        bar.close()

    conversation = merge_files(name, files)
    logger.info(
        f"Conversation title: {conversation.title} | "
        f"Participants: {[p.name for p in conversation.participants]}"
    )
    return conversation


def _log_parsed(member: str, payload: bytes, parsed: ConversationFile) -> None:
    logger.info(
        f"Parsed {len(parsed.messages)} messages from {member} -- "
        f"{len(payload) / (1 << 20):.2f} MB"
    )
