from __future__ import annotations

from typing import Any

import orjson

from skyhash_client.protocol.types import (
    Batch,
    ConnectionClosed,
    DecodeOutcome,
    Element,
    FlatGroup,
    Incomplete,
    Malformed,
    PayloadError,
    RespCode,
    SingleItem,
    StatusElement,
    StringElement,
    UnknownRespCode,
    UnsignedIntElement,
)


def element_to_dict(element: Element) -> dict[str, Any]:
    if isinstance(element, StringElement):
        return {"type": "string", "value": element.value}
    if isinstance(element, UnsignedIntElement):
        return {"type": "unsigned_int", "value": element.value}
    if isinstance(element, StatusElement):
        code = element.code
        if isinstance(code, RespCode):
            return {"type": "status", "code": int(code), "name": code.name}
        if isinstance(code, UnknownRespCode):
            return {"type": "status", "code": code.code, "name": None}
    raise TypeError(f"Not an element: {element!r}")


def outcome_to_dict(outcome: DecodeOutcome) -> dict[str, Any]:
    """JSON-ready view of a decode outcome (used by the CLI)."""
    if isinstance(outcome, SingleItem):
        return {"outcome": "single_item", "consumed": outcome.consumed, "element": element_to_dict(outcome.element)}
    if isinstance(outcome, FlatGroup):
        return {
            "outcome": "flat_group",
            "consumed": outcome.consumed,
            "group": [element_to_dict(e) for e in outcome.group],
        }
    if isinstance(outcome, Batch):
        return {
            "outcome": "batch",
            "consumed": outcome.consumed,
            "groups": [[element_to_dict(e) for e in group] for group in outcome.groups],
        }
    if isinstance(outcome, PayloadError):
        return {"outcome": "payload_error", "consumed": outcome.consumed, "reason": outcome.reason}
    if isinstance(outcome, Malformed):
        return {"outcome": "malformed", "reason": outcome.reason}
    if isinstance(outcome, Incomplete):
        return {"outcome": "incomplete"}
    if isinstance(outcome, ConnectionClosed):
        return {"outcome": "connection_closed"}
    raise TypeError(f"Not a decode outcome: {outcome!r}")


def dumps_outcome(outcome: DecodeOutcome, *, indent: bool = False) -> bytes:
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(outcome_to_dict(outcome), option=option)
