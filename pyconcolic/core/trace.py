"""Concolic trace metadata.
A ConcolicTrace is the persisted form of one tracing run: an opaque buffer of
JSON lines, one record per line. It is attached to a testcase by the tracing
stage and read back lazily by the mutation stage.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator

from pyconcolic.core.exceptions import TraceFormatError
from pyconcolic.core.expressions import (
    PathConstraint,
    SymExpr,
    SymExprRef,
    expression_from_dict,
)

TraceRecord = tuple[SymExprRef, SymExpr]


def encode_record(ref: SymExprRef, expr: SymExpr) -> str:
    """Encode a single record as one JSON line."""
    return json.dumps({"id": int(ref), "kind": expr.KIND, **expr.to_dict()}, separators=(",", ":"))


def decode_record(line: str) -> TraceRecord:
    """Decode one JSON line into a record.
    Raises:
        TraceFormatError: if the line is not a well-formed record.
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise TraceFormatError(f"invalid trace line: {e}") from e
    if not isinstance(data, dict):
        raise TraceFormatError(f"trace line is not an object: {line!r}")
    try:
        ref = data.pop("id")
        kind = data.pop("kind")
    except KeyError as e:
        raise TraceFormatError(f"trace line is missing {e.args[0]!r}") from e
    if not isinstance(ref, int) or isinstance(ref, bool):
        raise TraceFormatError(f"expression id must be an integer, got {ref!r}")
    try:
        expr = expression_from_dict(kind, data)
    except KeyError as e:
        raise TraceFormatError(f"unknown expression kind {kind!r}") from e
    except TypeError as e:
        raise TraceFormatError(f"bad fields for {kind}: {e}") from e
    return SymExprRef(ref), expr


class ConcolicTrace:
    """Serialized concolic trace owned by a testcase.
    The trace is immutable; iter_messages() decodes it from the start on
    every call so the mutation stage can replay it as often as needed.
    """

    def __init__(self, buffer: bytes = b"") -> None:
        self._buffer = buffer

    @classmethod
    def from_records(cls, records: Iterable[TraceRecord]) -> ConcolicTrace:
        lines = [encode_record(ref, expr) for ref, expr in records]
        return cls("\n".join(lines).encode("utf-8"))

    @classmethod
    def from_bytes(cls, data: bytes) -> ConcolicTrace:
        trace = cls(bytes(data))
        # decode once so corrupted buffers fail at load time, not mid-stage
        for _ in trace.iter_messages():
            pass
        return trace

    def to_bytes(self) -> bytes:
        return self._buffer

    def iter_messages(self) -> Iterator[TraceRecord]:
        """Lazily decode the records in trace order."""
        try:
            text = self._buffer.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TraceFormatError(f"trace buffer is not UTF-8: {e}") from e
        for line in text.splitlines():
            if line.strip():
                yield decode_record(line)

    def path_constraint_count(self) -> int:
        return sum(1 for _, expr in self.iter_messages() if isinstance(expr, PathConstraint))

    def __iter__(self) -> Iterator[TraceRecord]:
        return self.iter_messages()

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_messages())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConcolicTrace):
            return NotImplemented
        return self._buffer == other._buffer

    def __hash__(self) -> int:
        return hash(self._buffer)

    def __repr__(self) -> str:
        return f"ConcolicTrace({len(self._buffer)} bytes)"


class TraceRecorder:
    """Collects records as the instrumented runtime reports them.
    Example:
        recorder = TraceRecorder()
        x = recorder.record(InputByte(offset=0))
        c = recorder.record(Integer(value=65, bits=8))
        eq = recorder.record(Equal(a=x, b=c))
        recorder.record(PathConstraint(constraint=eq, taken=False))
        trace = recorder.create_trace()
    """

    def __init__(self, first_id: int = 1) -> None:
        self._first_id = first_id
        self._next_id = first_id
        self._records: list[TraceRecord] = []

    def record(self, expr: SymExpr) -> SymExprRef:
        """Append a record and return the id assigned to it."""
        ref = SymExprRef(self._next_id)
        self._next_id += 1
        self._records.append((ref, expr))
        return ref

    @property
    def records(self) -> list[TraceRecord]:
        return list(self._records)

    def create_trace(self) -> ConcolicTrace:
        return ConcolicTrace.from_records(self._records)

    def reset(self) -> None:
        self._next_id = self._first_id
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


__all__ = [
    "TraceRecord",
    "ConcolicTrace",
    "TraceRecorder",
    "encode_record",
    "decode_record",
]
