from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, BinaryIO, Sequence

from skyhash_client.config.loader import ConfigLoadError, load_client_config, validate_config
from skyhash_client.config.schema import ClientConfig
from skyhash_client.connection.errors import SkyhashClientError
from skyhash_client.connection.sync import Connection
from skyhash_client.protocol.deserializer import decode
from skyhash_client.protocol.query import Query
from skyhash_client.protocol.render import dumps_outcome
from skyhash_client.protocol.types import DecodeOutcome, is_success

LOG = logging.getLogger("skyhash_client")

EXIT_OK = 0
EXIT_ERROR_OUTCOME = 1
EXIT_FAILURE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="skyhash")

    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "info"),
        choices=("critical", "error", "warning", "info", "debug"),
        help="Log level (default: env LOG_LEVEL or info)",
    )
    parser.add_argument("--indent", action="store_true", help="Pretty-print JSON output")

    sub = parser.add_subparsers(dest="cmd", required=True)

    query = sub.add_parser("query", help="Send one query and print the decoded response")
    query.add_argument("args", nargs="+", help="Query arguments, e.g. GET x")
    query.add_argument("--config", dest="config_path", default=None, help="YAML/JSON client config; SKYHASH_* environment variables override it")
    query.add_argument("--host", default=None)
    query.add_argument("--port", type=int, default=None)
    query.add_argument("--timeout", type=float, default=None)

    dec = sub.add_parser("decode", help="Decode a captured raw response")
    dec.add_argument("source", nargs="?", default="-", help="File to read, '-' for stdin")
    dec.add_argument(
        "--escaped",
        action="store_true",
        help=r"Input is text with backslash escapes (e.g. '#2\n*1\n...')",
    )

    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def resolve_config(ns: argparse.Namespace) -> ClientConfig:
    base = load_client_config(ns.config_path)

    overrides: dict[str, Any] = {}
    for name in ("host", "port", "timeout"):
        value = getattr(ns, name)
        if value is not None:
            overrides[name] = value

    if not overrides:
        return base
    return validate_config({**base.model_dump(), **overrides}, source="command line")


def read_source(source: str, *, escaped: bool, stdin: BinaryIO | None = None) -> bytes:
    if source == "-":
        raw = (stdin or sys.stdin.buffer).read()
    else:
        raw = Path(source).read_bytes()

    if escaped:
        raw = raw.decode("unicode_escape").encode("latin-1")
    return raw


def emit(outcome: DecodeOutcome, *, indent: bool, out: BinaryIO | None = None) -> int:
    stream = out or sys.stdout.buffer
    stream.write(dumps_outcome(outcome, indent=indent) + b"\n")
    stream.flush()
    return EXIT_OK if is_success(outcome) else EXIT_ERROR_OUTCOME


def run_query(ns: argparse.Namespace) -> int:
    config = resolve_config(ns)
    query = Query(*ns.args)

    LOG.debug("Sending %d arguments to %s:%s", len(query), config.host, config.port)
    with Connection.from_config(config) as con:
        outcome = con.run_query(query)
    return emit(outcome, indent=ns.indent)


def run_decode(ns: argparse.Namespace) -> int:
    data = read_source(ns.source, escaped=ns.escaped)
    LOG.debug("Decoding %d bytes from %s", len(data), ns.source)
    return emit(decode(data), indent=ns.indent)


def main(argv: Sequence[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)
    setup_logging(ns.log_level)

    try:
        if ns.cmd == "query":
            return run_query(ns)
        if ns.cmd == "decode":
            return run_decode(ns)
    except (ConfigLoadError, SkyhashClientError) as exc:
        LOG.error("%s", exc)
        return EXIT_FAILURE
    except (OSError, UnicodeError) as exc:
        LOG.error("Could not read %s: %s", getattr(ns, "source", "input"), exc)
        return EXIT_FAILURE

    return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
