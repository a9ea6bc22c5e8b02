from __future__ import annotations

import logging
import socket
import time
from typing import Protocol

from skyhash_client.config.schema import ClientConfig
from skyhash_client.connection.errors import SkyhashClientError, raise_for_outcome
from skyhash_client.connection.reader import ResponseReader
from skyhash_client.protocol.query import Pipeline, Query
from skyhash_client.protocol.types import DecodeOutcome, Incomplete

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def sendall(self, data: bytes) -> None: ...
    def recv(self, size: int) -> bytes: ...
    def close(self) -> None: ...


class Connection:
    """
    Blocking connection over any socket-like transport.

    One request is in flight at a time: `run_query` writes the encoded frame
    and reads until the response decodes to something other than Incomplete.
    """

    def __init__(self, transport: Transport, *, read_size: int = 4096) -> None:
        self._transport = transport
        self._read_size = read_size
        self._reader = ResponseReader()
        self._closed = False

    @classmethod
    def connect(
        cls,
        host: str = "127.0.0.1",
        port: int = 2003,
        *,
        timeout: float | None = None,
        read_size: int = 4096,
    ) -> Connection:
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as exc:
            raise SkyhashClientError(f"Could not connect to {host}:{port}: {exc}") from exc

        logger.debug("Connected to %s:%s", host, port)
        return cls(sock, read_size=read_size)

    @classmethod
    def from_config(cls, config: ClientConfig) -> Connection:
        return cls.connect(config.host, config.port, timeout=config.timeout, read_size=config.read_size)

    def run_query(self, query: Query | Pipeline) -> DecodeOutcome:
        if self._closed:
            raise SkyhashClientError("Connection is closed")

        payload = query.encode()
        logger.debug("→ %d bytes (%d actions)", len(payload), len(query) if isinstance(query, Pipeline) else 1)

        start = time.perf_counter()
        try:
            self._transport.sendall(payload)
            outcome: DecodeOutcome = Incomplete()
            while isinstance(outcome, Incomplete):
                outcome = self._reader.feed(self._transport.recv(self._read_size))
        except OSError as exc:
            self._reader.reset()
            raise SkyhashClientError(f"Network error: {exc}") from exc

        logger.debug("← %s in %.2f ms", type(outcome).__name__, (time.perf_counter() - start) * 1000.0)
        return outcome

    def execute(self, query: Query | Pipeline) -> DecodeOutcome:
        return raise_for_outcome(self.run_query(query))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._transport.close()

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
