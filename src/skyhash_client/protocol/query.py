from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass(slots=True, init=False)
class Query:
    """
    One action sent to the server, e.g. `Query("SET", "x", 100)`.

    Arguments are turned into strings. A query encodes as:

        *1\\n
        _<argument count>\\n
        +<bytes>\\n<argument>\\n      (once per argument)
    """

    args: list[str]

    def __init__(self, *args: Any) -> None:
        self.args = []
        for value in args:
            self.arg(value)

    def arg(self, value: Any) -> Query:
        text = str(value)
        if not text:
            raise ValueError("Argument cannot be empty")
        self.args.append(text)
        return self

    def extend(self, values: Iterable[Any]) -> Query:
        for value in values:
            self.arg(value)
        return self

    def __len__(self) -> int:
        return len(self.args)

    def encode_dataframe(self) -> bytes:
        out = bytearray(b"_%d\n" % len(self.args))
        for text in self.args:
            data = text.encode("utf-8")
            out += b"+%d\n" % len(data)
            out += data
            out += b"\n"
        return bytes(out)

    def encode(self) -> bytes:
        return b"*1\n" + self.encode_dataframe()


@dataclass(slots=True)
class Pipeline:
    """Several queries written at once; the server answers with one datagroup per query."""

    queries: list[Query] = field(default_factory=list)

    def add(self, query: Query) -> Pipeline:
        self.queries.append(query)
        return self

    def __len__(self) -> int:
        return len(self.queries)

    def encode(self) -> bytes:
        if not self.queries:
            raise ValueError("Pipeline must contain at least one query")
        parts = [b"*%d\n" % len(self.queries)]
        parts.extend(query.encode_dataframe() for query in self.queries)
        return b"".join(parts)
