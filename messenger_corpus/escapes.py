"""
Repair Facebook's broken unicode escapes in exported JSON.

Messenger exports do not embed UTF-8 or use code-point escapes. Every byte of a
UTF-8 encoded character is written as its own `\\u00XX` token, so "ł" (bytes
c5 82) appears as `\\u00c5\\u0082`. A run of consecutive tokens has to be
gathered into a byte buffer and decoded once, since one character may span
several tokens.

A `\\u` is only the start of a token when it is preceded by an even number of
backslashes. `\\\\u0041` is an escaped backslash followed by the text "u0041"
and must be left alone; `\\\\\\u0041` is an escaped backslash followed by a
real token.
"""

from __future__ import annotations

import enum
from typing import Optional

from messenger_corpus.errors import MalformedEscapeSequence

BACKSLASH = 0x5C
LOWER_U = 0x75
TOKEN_LEN = 6
HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


class ScanState(enum.Enum):
    LITERAL = "literal"
    ESCAPE_RUN = "escape_run"


def token_value(raw: bytes, pos: int) -> Optional[int]:
    """
    Byte value of the `\\uXXXX` token at `pos`, or None if there is no token.

    Truncated tokens, non-hex digits and values above 0xff are not tokens. The
    last case is a genuine JSON code-point escape and is left to the decoder.
    """
    if pos + TOKEN_LEN > len(raw):
        return None
    if raw[pos] != BACKSLASH or raw[pos + 1] != LOWER_U:
        return None
    digits = raw[pos + 2:pos + TOKEN_LEN]
    if not all(d in HEX_DIGITS for d in digits):
        return None
    value = int(digits, 16)
    if value > 0xFF:
        return None
    return value


def starts_escape(raw: bytes, pos: int, backslashes: int) -> bool:
    """True when a token at `pos` is not itself escaped by a preceding backslash."""
    return backslashes % 2 == 0 and token_value(raw, pos) is not None


def _decode_run(buf: bytearray, start: int) -> bytes:
    try:
        bytes(buf).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedEscapeSequence(
            f"escape run at byte {start} is not valid UTF-8: {bytes(buf)!r} ({e.reason})",
            offset=start,
        ) from e
    return bytes(buf)


def repair(raw: bytes) -> str:
    """Return `raw` as text with every run of byte escapes decoded."""
    out = bytearray()
    run = bytearray()
    run_start = 0
    state = ScanState.LITERAL
    backslashes = 0
    pos = 0

    while pos < len(raw):
        if state is ScanState.ESCAPE_RUN:
            value = token_value(raw, pos)
            if value is None:
                out += _decode_run(run, run_start)
                run.clear()
                state = ScanState.LITERAL
                backslashes = 0
                continue
            run.append(value)
            pos += TOKEN_LEN
            continue

        if starts_escape(raw, pos, backslashes):
            state = ScanState.ESCAPE_RUN
            run_start = pos
            continue

        byte = raw[pos]
        out.append(byte)
        backslashes = backslashes + 1 if byte == BACKSLASH else 0
        pos += 1

    if state is ScanState.ESCAPE_RUN:
        out += _decode_run(run, run_start)

    try:
        return out.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedEscapeSequence(
            f"literal bytes are not valid UTF-8 at output byte {e.start}: {e.reason}",
            offset=e.start,
        ) from e
