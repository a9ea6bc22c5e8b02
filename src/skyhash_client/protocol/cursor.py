from __future__ import annotations

from dataclasses import dataclass

from skyhash_client.protocol.errors import FrameIncomplete, FrameMalformed

LF = 0x0A


@dataclass(slots=True)
class FrameCursor:
    """
    Scan position over a response buffer.

    The cursor only references the buffer; it never copies it. Every parsing
    step shares one cursor and moves it forward. Reads past the end raise
    FrameIncomplete, unexpected bytes raise FrameMalformed.
    """

    buffer: bytes | bytearray | memoryview
    pos: int = 0

    @property
    def remaining(self) -> int:
        return len(self.buffer) - self.pos

    def at_end(self) -> bool:
        return self.pos >= len(self.buffer)

    def peek(self) -> int:
        if self.at_end():
            raise FrameIncomplete("buffer ends before next byte")
        return self.buffer[self.pos]

    def take_byte(self) -> int:
        value = self.peek()
        self.pos += 1
        return value

    def take(self, size: int) -> bytes:
        if self.remaining < size:
            raise FrameIncomplete(f"need {size} bytes, {self.remaining} left")
        chunk = bytes(self.buffer[self.pos : self.pos + size])
        self.pos += size
        return chunk

    def expect(self, tag: int, what: str) -> None:
        found = self.take_byte()
        if found != tag:
            raise FrameMalformed(f"expected {what} {chr(tag)!r} at {self.pos - 1}, got {bytes([found])!r}")

    def expect_lf(self) -> None:
        self.expect(LF, "line feed")
