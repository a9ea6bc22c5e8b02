from __future__ import annotations

from enum import IntEnum

from skyhash_client.protocol.cursor import FrameCursor
from skyhash_client.protocol.errors import FrameIncomplete, FrameMalformed, PayloadInvalid
from skyhash_client.protocol.lines import parse_count, read_decimal, read_line
from skyhash_client.protocol.types import (
    Batch,
    DecodeOutcome,
    Element,
    FlatGroup,
    Group,
    Incomplete,
    Malformed,
    PayloadError,
    SingleItem,
    StatusElement,
    StringElement,
    UnsignedIntElement,
    resp_code_from_int,
)

# `#2\n*0\n` is the shortest complete response.
MIN_RESPONSE_SIZE = 6

U64_MAX = 2**64 - 1
U64_MAX_DIGITS = len(str(U64_MAX))

FRAME_TAG = ord("#")
METALINE_TAG = b"*"
ARRAYLINE_TAG = b"&"


class ElementTag(IntEnum):
    STRING = ord("+")
    STATUS = ord("!")
    UNSIGNED_INT = ord(":")


def decode(buffer: bytes | bytearray | memoryview) -> DecodeOutcome:
    """
    Decode one complete response from the start of `buffer`.

    Pure and re-entrant: the buffer is only read, nothing is kept between
    calls. On `Incomplete` the caller has to append more bytes and call
    again with the whole buffer.
    """
    if len(buffer) < MIN_RESPONSE_SIZE:
        return Incomplete()

    cursor = FrameCursor(buffer)
    payload_errors: list[str] = []

    try:
        declared = parse_metaframe(cursor)
        groups = [parse_group(cursor, payload_errors) for _ in range(declared)]
    except FrameIncomplete:
        return Incomplete()
    except FrameMalformed as exc:
        return Malformed(str(exc))

    return classify(groups, cursor, payload_errors)


def parse_metaframe(cursor: FrameCursor) -> int:
    """Consume `#<L>\\n*<N>\\n` and return the declared datagroup count N."""
    cursor.expect(FRAME_TAG, "metaframe tag")
    line = read_line(cursor)
    cursor.expect_lf()
    return parse_count(line, METALINE_TAG)


def parse_group(cursor: FrameCursor, payload_errors: list[str]) -> Group:
    """
    Consume `#<L>\\n&<M>\\n` followed by M elements.

    Elements whose payload can't be converted are left out of the group and
    their reason goes to `payload_errors`; the framing walk continues so the
    response is only reported once it is known to be well framed.
    """
    cursor.expect(FRAME_TAG, "group tag")
    line = read_line(cursor)
    cursor.expect_lf()
    size = parse_count(line, ARRAYLINE_TAG)

    group: Group = []
    for _ in range(size):
        try:
            group.append(decode_element(cursor))
        except PayloadInvalid as exc:
            payload_errors.append(str(exc))
    return group


def decode_element(cursor: FrameCursor) -> Element:
    """
    Consume `<tag><len>\\n<payload>\\n` and return the typed element.

    Raises PayloadInvalid only after the whole element frame was consumed.
    """
    offset = cursor.pos
    tag = cursor.take_byte()

    match tag:
        case ElementTag.STRING:
            payload = _read_payload(cursor)
            return StringElement(payload.decode("utf-8", errors="replace"))
        case ElementTag.STATUS:
            payload = _read_payload(cursor)
            code = _parse_unsigned(payload, what="status code", offset=offset)
            return StatusElement(resp_code_from_int(code))
        case ElementTag.UNSIGNED_INT:
            payload = _read_payload(cursor)
            value = _parse_unsigned(payload, what="unsigned int", offset=offset)
            if value > U64_MAX:
                raise PayloadInvalid(f"unsigned int at {offset} does not fit in 64 bits")
            return UnsignedIntElement(value)
        case _:
            raise FrameMalformed(f"unknown element tag {bytes([tag])!r} at {offset}")


def classify(groups: list[Group], cursor: FrameCursor, payload_errors: list[str]) -> DecodeOutcome:
    """
    Turn the collected groups into the outward-facing outcome.

    Single item vs flat group is a client convenience; the wire always
    carries groups.
    """
    if not cursor.at_end():
        return Malformed(f"{cursor.remaining} trailing bytes after complete response")

    consumed = cursor.pos
    if payload_errors:
        return PayloadError(payload_errors[0], consumed)

    if len(groups) == 1:
        (group,) = groups
        if len(group) == 1:
            return SingleItem(group[0], consumed)
        return FlatGroup(group, consumed)

    return Batch(groups, consumed)


def _read_payload(cursor: FrameCursor) -> bytes:
    size = read_decimal(cursor)
    payload = cursor.take(size)
    cursor.expect_lf()
    return payload


def _parse_unsigned(payload: bytes, *, what: str, offset: int) -> int:
    # bytes.isdigit() is ASCII-only and False for b""
    if not payload.isdigit():
        raise PayloadInvalid(f"{what} at {offset} is not a decimal number: {payload[:32]!r}")
    significant = payload.lstrip(b"0")
    if len(significant) > U64_MAX_DIGITS:
        raise PayloadInvalid(f"{what} at {offset} does not fit in 64 bits")
    return int(significant or b"0")
