from __future__ import annotations

import asyncio

import pytest

from skyhash_client.connection.aio import AsyncConnection
from skyhash_client.connection.errors import ConnectionClosedError, SkyhashClientError
from skyhash_client.protocol.query import Query
from skyhash_client.protocol.types import (
    ConnectionClosed,
    FlatGroup,
    RespCode,
    SingleItem,
    StatusElement,
    StringElement,
    UnsignedIntElement,
)

HEY = b"#2\n*1\n#2\n&1\n+4\nHEY!\n"
MGET_REPLY = b"#2\n*1\n#2\n&2\n:2\n42\n!1\n1\n"


class FakeWriter:
    def __init__(self) -> None:
        self.written = bytearray()
        self.closed = False

    def write(self, data: bytes) -> None:
        self.written += data

    async def drain(self) -> None:
        return None

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None


def test_run_query_over_stream_reader() -> None:
    async def run() -> None:
        reader = asyncio.StreamReader()
        writer = FakeWriter()
        reader.feed_data(HEY[:9])
        reader.feed_data(HEY[9:])

        con = AsyncConnection(reader, writer)
        outcome = await con.run_query(Query("heya"))

        assert outcome == SingleItem(StringElement("HEY!"), len(HEY))
        assert bytes(writer.written) == b"*1\n_1\n+4\nheya\n"

        await con.aclose()
        assert writer.closed is True

    asyncio.run(run())


def test_eof_is_connection_closed() -> None:
    async def run() -> None:
        reader = asyncio.StreamReader()
        reader.feed_data(HEY[:4])
        reader.feed_eof()

        con = AsyncConnection(reader, FakeWriter())
        assert await con.run_query(Query("heya")) == ConnectionClosed()

        with pytest.raises(ConnectionClosedError):
            await con.execute(Query("heya"))

    asyncio.run(run())


def test_closed_connection_refuses_queries() -> None:
    async def run() -> None:
        async with AsyncConnection(asyncio.StreamReader(), FakeWriter()) as con:
            pass

        with pytest.raises(SkyhashClientError):
            await con.run_query(Query("heya"))

    asyncio.run(run())


def test_against_local_server() -> None:
    replies = {
        Query("heya").encode(): [HEY[:5], HEY[5:]],
        Query("MGET", "x", "y").encode(): [MGET_REPLY],
    }

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        for request, chunks in replies.items():
            assert await reader.readexactly(len(request)) == request
            for chunk in chunks:
                writer.write(chunk)
                await writer.drain()
                await asyncio.sleep(0)
        writer.close()

    async def run() -> None:
        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            async with await AsyncConnection.connect("127.0.0.1", port, timeout=5.0) as con:
                assert await con.execute(Query("heya")) == SingleItem(StringElement("HEY!"), len(HEY))
                assert await con.execute(Query("MGET", "x", "y")) == FlatGroup(
                    [UnsignedIntElement(42), StatusElement(RespCode.NOT_FOUND)],
                    len(MGET_REPLY),
                )
        finally:
            server.close()
            await server.wait_closed()

    asyncio.run(run())
