"""Destinations for converted lines."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Protocol, TextIO

log = logging.getLogger(__name__)


class OutputSink(Protocol):
    """Receives finished lines in order, then is closed exactly once."""

    def put_line(self, text: str) -> None: ...

    def close(self) -> None: ...


class StreamSink:
    """Writes lines to an already-open text stream, e.g. ``sys.stdout``.

    The stream is flushed on close but left open; the caller owns it.
    """

    def __init__(self, stream: TextIO | None = None, name: str = "STDOUT") -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.name = name
        self.lines_written = 0
        self.closed = False

    def put_line(self, text: str) -> None:
        if self.closed:
            raise ValueError(f"sink {self.name} is closed")
        self.stream.write(text + "\n")
        self.lines_written += 1

    def close(self) -> None:
        if self.closed:
            return
        self.stream.flush()
        self.closed = True
        log.debug("Wrote %d line(s) to %s", self.lines_written, self.name)


class FileSink(StreamSink):
    """Writes lines to a UTF-8 file, created (with parents) on construction."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self.path = path
        super().__init__(path.open("w", encoding="utf-8", newline="\n"), name=str(path))

    def close(self) -> None:
        if self.closed:
            return
        super().close()
        self.stream.close()


class ListSink:
    """Collects lines in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.closed = False

    def put_line(self, text: str) -> None:
        if self.closed:
            raise ValueError("sink is closed")
        self.lines.append(text)

    def close(self) -> None:
        self.closed = True
