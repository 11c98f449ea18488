"""Valgrind trace reader.

Trace lines look like:

    I 0400d7d4,8
     L 7ff0005b8,8
     S 7ff0005c8,8
     M 0421c7f0,4

i.e. an operation code, a hex address and a decimal access size. Lines that
do not have this shape are skipped without complaint.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional


class TraceError(Exception):
    """Raised when a trace file cannot be read."""


class Operation(Enum):
    INSTRUCTION = 'I'
    LOAD = 'L'
    STORE = 'S'
    MODIFY = 'M'

    @property
    def access_count(self) -> int:
        # data accesses this operation makes; instruction fetches make none
        if self is Operation.MODIFY:
            return 2
        if self is Operation.INSTRUCTION:
            return 0
        return 1


@dataclass(frozen=True)
class TraceEvent:
    op: Operation
    address: int
    size: int = 0

    def __str__(self):
        return f"{self.op.value} {self.address:x},{self.size}"


_LINE_RE = re.compile(r'^\s*([ILSM])\s+([0-9a-fA-F]+),(\d+)')


def parse_trace_line(line: str) -> Optional[TraceEvent]:
    """Parse one trace line; returns None for anything unrecognised."""
    m = _LINE_RE.match(line)
    if m is None:
        return None
    op, addr, size = m.groups()
    return TraceEvent(Operation(op), int(addr, 16), int(size))


class TraceReader:
    """Iterates the events of an open trace file.

    The file is opened on construction so a missing trace fails before any
    access is simulated. Use it as a context manager to close the file.
    """

    def __init__(self, path):
        self.path = path
        try:
            self._fh = open(path, 'r', encoding='utf-8', errors='replace')
        except OSError as e:
            raise TraceError(f"{path}: {e.strerror or e}") from e

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def closed(self) -> bool:
        return self._fh.closed

    def __iter__(self) -> Iterator[TraceEvent]:
        for line in self._fh:
            event = parse_trace_line(line)
            if event is not None:
                yield event

    def close(self):
        self._fh.close()


def read_trace(path) -> TraceReader:
    """Open the trace at `path`; iterate the result for its events."""
    return TraceReader(path)
