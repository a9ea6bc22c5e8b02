from __future__ import annotations

from skyhash_client.protocol.cursor import LF, FrameCursor
from skyhash_client.protocol.errors import FrameMalformed

DIGIT_0 = 0x30
DIGIT_9 = 0x39


def is_digit(value: int) -> bool:
    return DIGIT_0 <= value <= DIGIT_9


def read_decimal(cursor: FrameCursor) -> int:
    """
    Read ASCII digits up to a line feed and return their base-10 value.

    The terminating line feed is consumed. Hitting the end of the buffer
    first is incomplete; any non-digit or an empty digit run is malformed.
    """
    start = cursor.pos
    value = 0
    while True:
        byte = cursor.take_byte()
        if byte == LF:
            break
        if not is_digit(byte):
            raise FrameMalformed(f"non-digit {bytes([byte])!r} in length at {cursor.pos - 1}")
        value = value * 10 + (byte - DIGIT_0)

    if cursor.pos - start == 1:
        raise FrameMalformed(f"empty length at {start}")
    return value


def read_line(cursor: FrameCursor) -> bytes:
    """
    Read a length-prefixed line: `<L>\\n` followed by L bytes.

    The cursor must point at the first digit of the prefix. The line's own
    trailing line feed is left for the caller.
    """
    size = read_decimal(cursor)
    return cursor.take(size)


def parse_count(line: bytes, tag: bytes) -> int:
    """Parse a `<tag><digits>` header line such as `*3` or `&12`."""
    if not line.startswith(tag):
        raise FrameMalformed(f"expected {tag!r} header, got {line[:1]!r}")

    digits = line[len(tag) :]
    if not digits:
        raise FrameMalformed(f"missing count after {tag!r}")
    value = 0
    for byte in digits:
        if not is_digit(byte):
            raise FrameMalformed(f"non-digit {bytes([byte])!r} in {tag!r} count")
        value = value * 10 + (byte - DIGIT_0)
    return value
