from __future__ import annotations

from skyhash_client.protocol.types import (
    ConnectionClosed,
    DecodeOutcome,
    Incomplete,
    Malformed,
    PayloadError,
)


class SkyhashClientError(RuntimeError):
    pass


class ConnectionClosedError(SkyhashClientError):
    pass


class InvalidResponseError(SkyhashClientError):
    """The server sent bytes that violate the framing. Drop the connection."""


class ResponseParseError(SkyhashClientError):
    """A value inside a well-framed response could not be converted."""


def raise_for_outcome(outcome: DecodeOutcome) -> DecodeOutcome:
    """Return success outcomes unchanged, raise for everything else."""
    if isinstance(outcome, ConnectionClosed):
        raise ConnectionClosedError("Connection closed by peer")
    if isinstance(outcome, Malformed):
        raise InvalidResponseError(f"Invalid response: {outcome.reason}")
    if isinstance(outcome, PayloadError):
        raise ResponseParseError(f"Could not parse response: {outcome.reason}")
    if isinstance(outcome, Incomplete):
        raise SkyhashClientError("Response is incomplete")
    return outcome
