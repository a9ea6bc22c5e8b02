from __future__ import annotations

import logging
from dataclasses import dataclass, field

from skyhash_client.protocol.deserializer import decode
from skyhash_client.protocol.types import ConnectionClosed, DecodeOutcome, Incomplete, Malformed

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResponseReader:
    """
    Accumulates transport chunks until they form one response.

    - an empty chunk means the peer closed the connection
    - every feed re-decodes the whole buffer from byte 0
    - consumed bytes are dropped once the outcome is final
    """

    buffer: bytearray = field(default_factory=bytearray)

    def feed(self, chunk: bytes) -> DecodeOutcome:
        if not chunk:
            if self.buffer:
                logger.debug("Connection closed with %d buffered bytes", len(self.buffer))
            self.buffer.clear()
            return ConnectionClosed()

        self.buffer += chunk
        outcome = decode(self.buffer)

        if isinstance(outcome, Incomplete):
            return outcome

        if isinstance(outcome, Malformed):
            logger.warning("Malformed response (%d bytes): %s", len(self.buffer), outcome.reason)
            self.buffer.clear()
            return outcome

        del self.buffer[: outcome.consumed]
        return outcome

    def reset(self) -> None:
        self.buffer.clear()
