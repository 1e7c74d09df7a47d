from datetime import timedelta

from messenger_corpus.segment import (
    SegmentCursor,
    TaggedMessage,
    elapsed_seconds,
    is_session_break,
    segment,
    tag,
)

from conftest import T0, msg


def sizes(segments):
    return [len(s.messages) for s in segments]


def test_empty():
    assert segment([]) == []


def test_one_boundary_at_long_gap():
    stream = tag([msg(0), msg(500), msg(1200)], "c")
    segs = segment(stream)
    assert sizes(segs) == [2, 1]
    assert segs[1].anchor == T0 + timedelta(seconds=1200)


def test_gap_of_exactly_timeout_does_not_break():
    assert sizes(segment(tag([msg(0), msg(600)], "c"))) == [2]
    assert sizes(segment(tag([msg(0), msg(601)], "c"))) == [1, 1]


def test_gap_uses_whole_seconds():
    assert not is_session_break(T0, T0 + timedelta(seconds=600.9))
    assert elapsed_seconds(T0, T0 + timedelta(milliseconds=1999)) == 1


def test_anchor_is_first_message_not_previous():
    # many short gaps add up past the timeout without breaking
    stream = tag([msg(i * 500) for i in range(5)], "c")
    (seg,) = segment(stream)
    assert seg.anchor == T0
    assert [seg.offset(m) for m in seg.messages] == [0, 500, 1000, 1500, 2000]


def test_conversation_change_alone_breaks():
    stream = tag([msg(0), msg(10)], "a") + tag([msg(20)], "b")
    segs = segment(stream)
    assert [s.conversation_id for s in segs] == ["a", "b"]
    assert sizes(segs) == [2, 1]


def test_both_conditions_at_once_give_one_boundary():
    stream = tag([msg(0)], "a") + tag([msg(5000)], "b")
    assert sizes(segment(stream)) == [1, 1]


def test_cursor_is_immutable():
    first = TaggedMessage(msg(0), "c")
    cursor = SegmentCursor.start(first)
    nxt = cursor.advance(TaggedMessage(msg(100), "c"))
    assert cursor.last == T0
    assert nxt.anchor == T0 and nxt.last == T0 + timedelta(seconds=100)
    reset = nxt.advance(TaggedMessage(msg(1000), "c"))
    assert reset.anchor == reset.last == T0 + timedelta(seconds=1000)


def test_messages_keep_input_order():
    stream = tag([msg(0, content="a"), msg(1, content="b"), msg(2000, content="c")], "c")
    assert [m.content for s in segment(stream) for m in s.messages] == ["a", "b", "c"]


def test_extend_keeps_anchor():
    cursor = SegmentCursor.start(TaggedMessage(msg(0), "c"))
    nxt = cursor.extend(TaggedMessage(msg(5000), "c"))
    assert nxt.anchor == T0 and nxt.last == T0 + timedelta(seconds=5000)


def test_break_checked_once_per_message(monkeypatch):
    calls = []
    original = SegmentCursor.breaks_at

    def counting(self, tagged):
        calls.append(tagged)
        return original(self, tagged)

    monkeypatch.setattr(SegmentCursor, "breaks_at", counting)
    stream = tag([msg(0), msg(100), msg(2000), msg(2100)], "a") + tag([msg(2200)], "b")
    assert sizes(segment(stream)) == [2, 2, 1]
    # the first message starts the first segment without a check
    assert len(calls) == len(stream) - 1
