from __future__ import annotations

import asyncio
import logging
import time
from typing import Protocol

from skyhash_client.config.schema import ClientConfig
from skyhash_client.connection.errors import SkyhashClientError, raise_for_outcome
from skyhash_client.connection.reader import ResponseReader
from skyhash_client.protocol.query import Pipeline, Query
from skyhash_client.protocol.types import DecodeOutcome, Incomplete

logger = logging.getLogger(__name__)


class ByteStreamReader(Protocol):
    async def read(self, n: int = -1) -> bytes: ...


class ByteStreamWriter(Protocol):
    def write(self, data: bytes) -> None: ...
    async def drain(self) -> None: ...
    def close(self) -> None: ...
    async def wait_closed(self) -> None: ...


class AsyncConnection:
    """
    asyncio counterpart of Connection.

    A lock keeps one request in flight; concurrent callers queue up.
    Timeouts are left to the caller (e.g. asyncio.wait_for).
    """

    def __init__(self, reader: ByteStreamReader, writer: ByteStreamWriter, *, read_size: int = 4096) -> None:
        self._reader = reader
        self._writer = writer
        self._read_size = read_size
        self._responses = ResponseReader()
        self._lock = asyncio.Lock()
        self._closed = False

    @classmethod
    async def connect(
        cls,
        host: str = "127.0.0.1",
        port: int = 2003,
        *,
        timeout: float | None = None,
        read_size: int = 4096,
    ) -> AsyncConnection:
        try:
            reader, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
        except (OSError, asyncio.TimeoutError) as exc:
            raise SkyhashClientError(f"Could not connect to {host}:{port}: {exc}") from exc

        logger.debug("Connected to %s:%s", host, port)
        return cls(reader, writer, read_size=read_size)

    @classmethod
    async def from_config(cls, config: ClientConfig) -> AsyncConnection:
        return await cls.connect(config.host, config.port, timeout=config.timeout, read_size=config.read_size)

    async def run_query(self, query: Query | Pipeline) -> DecodeOutcome:
        if self._closed:
            raise SkyhashClientError("Connection is closed")

        payload = query.encode()
        async with self._lock:
            start = time.perf_counter()
            try:
                self._writer.write(payload)
                await self._writer.drain()
                outcome: DecodeOutcome = Incomplete()
                while isinstance(outcome, Incomplete):
                    outcome = self._responses.feed(await self._reader.read(self._read_size))
            except OSError as exc:
                self._responses.reset()
                raise SkyhashClientError(f"Network error: {exc}") from exc
            except asyncio.CancelledError:
                # a half-read response can't be resumed later
                self._responses.reset()
                raise

        logger.debug("← %s in %.2f ms", type(outcome).__name__, (time.perf_counter() - start) * 1000.0)
        return outcome

    async def execute(self, query: Query | Pipeline) -> DecodeOutcome:
        return raise_for_outcome(await self.run_query(query))

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()
        await self._writer.wait_closed()

    async def __aenter__(self) -> AsyncConnection:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
