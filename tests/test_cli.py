from __future__ import annotations

import io
from pathlib import Path

import orjson
import pytest

from skyhash_client import cli
from skyhash_client.connection.sync import Connection

HEY = b"#2\n*1\n#2\n&1\n+4\nHEY!\n"


class FakeSocket:
    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = list(chunks)
        self.sent: list[bytes] = []

    def sendall(self, data: bytes) -> None:
        self.sent.append(data)

    def recv(self, size: int) -> bytes:
        return self.chunks.pop(0) if self.chunks else b""

    def close(self) -> None:
        pass


def test_decode_file(tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]) -> None:
    path = tmp_path / "reply.bin"
    path.write_bytes(HEY)

    assert cli.main(["decode", str(path)]) == cli.EXIT_OK

    out = orjson.loads(capsysbinary.readouterr().out)
    assert out == {"outcome": "single_item", "consumed": 20, "element": {"type": "string", "value": "HEY!"}}


def test_decode_escaped_stdin(monkeypatch: pytest.MonkeyPatch, capsysbinary: pytest.CaptureFixture[bytes]) -> None:
    escaped = rb"#2\n*1\n#2\n&2\n!1\n1\n:1\n7\n"
    monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(escaped)))

    assert cli.main(["decode", "--escaped", "-"]) == cli.EXIT_OK

    out = orjson.loads(capsysbinary.readouterr().out)
    assert out["outcome"] == "flat_group"
    assert out["group"] == [
        {"type": "status", "code": 1, "name": "NOT_FOUND"},
        {"type": "unsigned_int", "value": 7},
    ]


def test_decode_malformed_exits_with_error_outcome(
    tmp_path: Path, capsysbinary: pytest.CaptureFixture[bytes]
) -> None:
    path = tmp_path / "reply.bin"
    path.write_bytes(HEY + b"junk")

    assert cli.main(["decode", str(path)]) == cli.EXIT_ERROR_OUTCOME
    assert orjson.loads(capsysbinary.readouterr().out)["outcome"] == "malformed"


def test_decode_missing_file(tmp_path: Path) -> None:
    assert cli.main(["decode", str(tmp_path / "nope.bin")]) == cli.EXIT_FAILURE


def test_query_uses_config_and_overrides(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsysbinary: pytest.CaptureFixture[bytes],
) -> None:
    config_path = tmp_path / "client.yml"
    config_path.write_text("host: db1\nport: 2008\n", encoding="utf-8")

    seen: dict[str, object] = {}
    sock = FakeSocket([HEY])

    def fake_connect(cls, host, port, *, timeout=None, read_size=4096):  # type: ignore[no-untyped-def]
        seen.update(host=host, port=port, timeout=timeout)
        return cls(sock, read_size=read_size)

    monkeypatch.setattr(Connection, "connect", classmethod(fake_connect))

    code = cli.main(["query", "heya", "--config", str(config_path), "--port", "2009", "--timeout", "1.5"])

    assert code == cli.EXIT_OK
    assert seen == {"host": "db1", "port": 2009, "timeout": 1.5}
    assert sock.sent == [b"*1\n_1\n+4\nheya\n"]
    assert orjson.loads(capsysbinary.readouterr().out)["element"]["value"] == "HEY!"


def test_query_with_invalid_port_fails_before_connecting(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail_connect(cls, *args, **kwargs):  # type: ignore[no-untyped-def]
        raise AssertionError("should not connect")

    monkeypatch.setattr(Connection, "connect", classmethod(fail_connect))

    assert cli.main(["query", "heya", "--port", "70000"]) == cli.EXIT_FAILURE


def test_query_reads_environment_before_flags(monkeypatch: pytest.MonkeyPatch, capsysbinary: pytest.CaptureFixture[bytes]) -> None:
    monkeypatch.setenv("SKYHASH_HOST", "db9")
    monkeypatch.setenv("SKYHASH_PORT", "2010")

    seen: dict[str, object] = {}

    def fake_connect(cls, host, port, *, timeout=None, read_size=4096):  # type: ignore[no-untyped-def]
        seen.update(host=host, port=port)
        return cls(FakeSocket([HEY]), read_size=read_size)

    monkeypatch.setattr(Connection, "connect", classmethod(fake_connect))

    assert cli.main(["query", "heya", "--port", "2011"]) == cli.EXIT_OK
    assert seen == {"host": "db9", "port": 2011}
    capsysbinary.readouterr()
