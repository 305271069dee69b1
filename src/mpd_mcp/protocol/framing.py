"""Frame reader for the MPD line protocol.

The daemon speaks newline-terminated UTF-8 text. A few responses embed a raw
binary span, announced by a ``binary: <length>`` line::

    size: 52311\\n
    type: image/jpeg\\n
    binary: 8192\\n
    <8192 raw bytes>\\n
    OK\\n

The reader turns the byte stream into two kinds of frame, ``Line`` and
``Binary``. It knows nothing about what the lines mean; that is the job of
:mod:`mpd_mcp.protocol.parser`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

from ..errors import IncompleteLine, Malformed, ShortRead

LINE_TERMINATOR = b"\n"
MAX_LINE_LENGTH = 64 * 1024  # generous; real MPD lines stay far below this
ENCODING = "utf-8"


@dataclass(frozen=True)
class Line:
    """One protocol line with its terminator stripped."""

    text: str


@dataclass(frozen=True)
class Binary:
    """A raw binary span read after a ``binary: <length>`` line."""

    data: bytes
    declared_length: int

    def __repr__(self) -> str:
        return f"Binary(declared_length={self.declared_length}, data_len={len(self.data)})"


Frame = Line | Binary


class FrameReader:
    """Pull frames off a buffered binary stream.

    ``stream`` is anything with ``readline(limit)`` and ``read(n)``, normally
    the object returned by ``socket.makefile("rb")``. The reader is stateful:
    every call consumes bytes from the stream.
    """

    def __init__(self, stream: BinaryIO, max_line_length: int = MAX_LINE_LENGTH) -> None:
        self._stream = stream
        self._max_line_length = max_line_length

    def next_line(self) -> Line | None:
        """Read the next line.

        Returns:
            The line, or ``None`` when the stream ended cleanly between lines.

        Raises:
            IncompleteLine: The stream ended after a partial line.
            Malformed: The line is too long or is not valid UTF-8.
        """
        raw = self._stream.readline(self._max_line_length + 1)
        if not raw:
            return None
        if not raw.endswith(LINE_TERMINATOR):
            if len(raw) > self._max_line_length:
                raise Malformed(f"Line exceeds {self._max_line_length} bytes")
            raise IncompleteLine(raw)

        try:
            text = raw[:-1].decode(ENCODING)
        except UnicodeDecodeError as exc:
            raise Malformed(f"Line is not valid {ENCODING}: {exc}") from exc
        return Line(text)

    def next_binary(self, declared_length: int) -> Binary:
        """Read exactly ``declared_length`` bytes plus the trailing newline.

        Raises:
            ShortRead: The stream ended before the payload was complete.
            Malformed: The payload is not followed by a newline.
        """
        if declared_length < 0:
            raise Malformed(f"Negative binary length {declared_length}")

        buf = bytearray()
        while len(buf) < declared_length:
            chunk = self._stream.read(declared_length - len(buf))
            if not chunk:
                raise ShortRead(declared_length, len(buf))
            buf.extend(chunk)

        terminator = self._stream.read(1)
        if not terminator:
            raise ShortRead(declared_length + 1, len(buf))
        if terminator != LINE_TERMINATOR:
            raise Malformed(
                f"Binary payload of {declared_length} bytes not followed by a newline"
            )
        return Binary(data=bytes(buf), declared_length=declared_length)
