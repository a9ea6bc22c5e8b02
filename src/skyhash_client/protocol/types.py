from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TypeAlias

# ---------------------------------------------------------------------------
# Response codes
# ---------------------------------------------------------------------------


class RespCode(IntEnum):
    """Status codes the server sends as `!` elements."""

    OKAY = 0
    NOT_FOUND = 1
    OVERWRITE_ERROR = 2
    ACTION_ERROR = 3
    PACKET_ERROR = 4
    SERVER_ERROR = 5
    OTHER_ERROR = 6
    WRONG_TYPE = 7


@dataclass(frozen=True, slots=True)
class UnknownRespCode:
    """A status code this client does not know about yet."""

    code: int


StatusCode: TypeAlias = RespCode | UnknownRespCode


def resp_code_from_int(value: int) -> StatusCode:
    try:
        return RespCode(value)
    except ValueError:
        return UnknownRespCode(value)


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StringElement:
    value: str


@dataclass(frozen=True, slots=True)
class StatusElement:
    code: StatusCode


@dataclass(frozen=True, slots=True)
class UnsignedIntElement:
    value: int


Element: TypeAlias = StringElement | StatusElement | UnsignedIntElement
Group: TypeAlias = list[Element]


# ---------------------------------------------------------------------------
# Decode outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Incomplete:
    """Not enough bytes yet. Buffer more and decode again from the start."""


@dataclass(frozen=True, slots=True)
class Malformed:
    """The framing violates the grammar; the stream can't be trusted anymore."""

    reason: str = ""


@dataclass(frozen=True, slots=True)
class PayloadError:
    """Framing was fine, but a typed payload could not be converted."""

    reason: str
    consumed: int


@dataclass(frozen=True, slots=True)
class SingleItem:
    element: Element
    consumed: int


@dataclass(frozen=True, slots=True)
class FlatGroup:
    group: Group
    consumed: int


@dataclass(frozen=True, slots=True)
class Batch:
    groups: list[Group]
    consumed: int


@dataclass(frozen=True, slots=True)
class ConnectionClosed:
    """The peer closed the transport (zero bytes read)."""


DecodeOutcome: TypeAlias = (
    Incomplete | Malformed | PayloadError | SingleItem | FlatGroup | Batch | ConnectionClosed
)

SUCCESS_OUTCOMES: tuple[type, ...] = (SingleItem, FlatGroup, Batch)


def is_success(outcome: DecodeOutcome) -> bool:
    return isinstance(outcome, SUCCESS_OUTCOMES)


__all__ = [
    "RespCode",
    "UnknownRespCode",
    "StatusCode",
    "resp_code_from_int",
    "StringElement",
    "StatusElement",
    "UnsignedIntElement",
    "Element",
    "Group",
    "Incomplete",
    "Malformed",
    "PayloadError",
    "SingleItem",
    "FlatGroup",
    "Batch",
    "ConnectionClosed",
    "DecodeOutcome",
    "SUCCESS_OUTCOMES",
    "is_success",
]
