import json
import zipfile
from datetime import datetime, timedelta, timezone

import pytest

from messenger_corpus.messages import Message

T0 = datetime(2021, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def fb_encode(obj) -> bytes:
    """Serialize like Messenger does: every non-ASCII UTF-8 byte becomes its own \\u00XX token."""
    text = json.dumps(obj, ensure_ascii=False, indent=2)
    out = []
    for ch in text:
        if ord(ch) < 0x80:
            out.append(ch)
        else:
            out.extend(f"\\u00{b:02x}" for b in ch.encode("utf-8"))
    return "".join(out).encode("ascii")


def ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def record(sender, when, content="hi", **extra):
    r = {"sender_name": sender, "timestamp_ms": ms(when), "type": "Generic"}
    if content is not None:
        r["content"] = content
    r.update(extra)
    return r


def export_doc(title, participants, records):
    return {
        "participants": [{"name": p} for p in participants],
        "messages": records,
        "title": title,
        "is_still_participant": True,
        "thread_type": "Regular",
        "thread_path": f"inbox/{title}",
    }


def msg(seconds: float, author: str = "Alice", content: str = "hi") -> Message:
    return Message(content=content, author=author, timestamp=T0 + timedelta(seconds=seconds))


@pytest.fixture
def make_export(tmp_path):
    """
    Build an export zip. `threads` maps folder name -> list of export documents
    (one per message_N.json). Extra non-thread members are added as noise.
    """
    def _make(threads, name="facebook-export.zip"):
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("messages/autofill_information.json", b"{}")
            for folder, docs in threads.items():
                base = f"messages/inbox/{folder}"
                for i, doc in enumerate(docs, 1):
                    zf.writestr(f"{base}/message_{i}.json", fb_encode(doc))
                zf.writestr(f"{base}/photos/123_456.jpg", b"\xff\xd8\xff")
        return path

    return _make


@pytest.fixture
def two_thread_export(make_export):
    alice_bob = ["Alice", "Radosław"]
    first = export_doc("Radosław", alice_bob, [
        record("Radosław", T0 + timedelta(days=3), "zrobić xD"),
        record("Alice", T0 + timedelta(days=3, seconds=30), "ok"),
    ])
    second = export_doc("Radosław", alice_bob, [
        record("Alice", T0, "cześć"),
        record("Radosław", T0 + timedelta(seconds=42), None, photos=[{"uri": "p/1.jpg", "creation_timestamp": 1}]),
    ])
    group = export_doc("Climbing", ["Alice", "Carol", "Dan"], [
        record("Carol", T0 + timedelta(hours=1), "who's in?"),
        record("Dan", T0 + timedelta(hours=1, seconds=5), "me"),
    ])
    return make_export({"radoslaw_abc123": [first, second], "climbing_xyz789": [group]})
