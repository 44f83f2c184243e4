"""
Reader for valgrind lackey style memory traces.

Each line holds ``<kind> <hex-address>,<size>``, e.g.::

    I 0400d7d4,8
     M 0421c7f0,4
     L 04f6b868,8

Reading stops at the first malformed line; everything before it is replayed.
"""

from __future__ import annotations

import re
from typing import Generator, Iterable, Iterator, Optional

from csim.entity.model import AccessKind, AccessRecord, TraceError

import logging
logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"^\s*(\S)\s+(?:0[xX])?([0-9a-fA-F]+),(-?\d+)\s*$")
_KINDS = {kind.value: kind for kind in AccessKind}


class UnknownKind:
    """Well formed line with a kind letter the simulator does not replay."""

    def __init__(self, letter: str):
        self.letter = letter

    def __repr__(self):
        return f"UnknownKind({self.letter!r})"


def parse_trace_line(line: str) -> Optional[AccessRecord | UnknownKind]:
    match = _LINE_RE.match(line)
    if not match:
        return None
    letter, address, size = match.groups()
    if letter not in _KINDS:
        return UnknownKind(letter)
    return AccessRecord(_KINDS[letter], int(address, 16), int(size))


def iter_trace(lines: Iterable[str]) -> Generator[AccessRecord, None, None]:
    for lineno, line in enumerate(lines, 1):
        if not line.strip():
            continue
        record = parse_trace_line(line)
        if record is None:
            logger.warning("malformed trace line %d: %r, stop reading", lineno, line.rstrip("\n"))
            return
        if isinstance(record, UnknownKind):
            logger.warning("unknown access kind %r on line %d, skipped", record.letter, lineno)
            continue
        yield record


class TraceReader:
    """Owns the trace file handle for the duration of a ``with`` block."""

    def __init__(self, path: str):
        self.path = path
        self._file = None

    def __enter__(self) -> 'TraceReader':
        try:
            # undecodable bytes become U+FFFD so the line fails to parse and ends the trace
            self._file = open(self.path, "r", encoding="utf-8", errors="replace")
        except OSError as e:
            raise TraceError(f"cannot open trace {self.path}: {e.strerror}") from e
        logger.info("reading trace %s", self.path)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None

    @property
    def closed(self) -> bool:
        return self._file is None

    def __iter__(self) -> Iterator[AccessRecord]:
        if self._file is None:
            raise TraceError(f"trace {self.path} is not open")
        return iter_trace(self._file)


def read_trace(path: str) -> Generator[AccessRecord, None, None]:
    with TraceReader(path) as reader:
        yield from reader


__all__ = ["TraceReader", "UnknownKind", "iter_trace", "parse_trace_line", "read_trace"]
