"""Tests for the frame reader."""

import io

import pytest

from mpd_mcp.errors import IncompleteLine, Malformed, ShortRead
from mpd_mcp.protocol.framing import Binary, FrameReader, Line


class TrickleStream(io.RawIOBase):
    """Raw stream that hands out one byte per read, like a slow socket."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buf) -> int:
        if self._pos >= len(self._data) or len(buf) == 0:
            return 0
        buf[0] = self._data[self._pos]
        self._pos += 1
        return 1


def _reader(data: bytes, **kwargs) -> FrameReader:
    return FrameReader(io.BytesIO(data), **kwargs)


def test_lines_then_end_of_stream():
    reader = _reader(b"volume: 80\nOK\n")
    assert reader.next_line() == Line("volume: 80")
    assert reader.next_line() == Line("OK")
    assert reader.next_line() is None


def test_empty_line_is_a_line():
    reader = _reader(b"\n")
    assert reader.next_line() == Line("")


def test_stream_ending_mid_line():
    """A partial line at end of stream is a framing error, not a line."""
    reader = _reader(b"OK\nvolu")
    assert reader.next_line() == Line("OK")
    with pytest.raises(IncompleteLine) as exc_info:
        reader.next_line()
    assert exc_info.value.partial == b"volu"


def test_line_too_long():
    reader = _reader(b"a" * 20 + b"\n", max_line_length=10)
    with pytest.raises(Malformed):
        reader.next_line()


def test_line_at_length_limit():
    reader = _reader(b"a" * 10 + b"\n", max_line_length=10)
    assert reader.next_line() == Line("a" * 10)


def test_invalid_utf8():
    reader = _reader(b"Title: \xff\xfe\n")
    with pytest.raises(Malformed):
        reader.next_line()


def test_utf8_line():
    reader = _reader("Artist: Björk\n".encode("utf-8"))
    assert reader.next_line() == Line("Artist: Björk")


def test_binary_exact_length():
    """Payload bytes may contain newlines; only the declared length counts."""
    reader = _reader(b"ab\n\nOK\n")
    frame = reader.next_binary(3)
    assert frame == Binary(data=b"ab\n", declared_length=3)
    assert reader.next_line() == Line("OK")


def test_binary_zero_length():
    reader = _reader(b"\nOK\n")
    assert reader.next_binary(0).data == b""
    assert reader.next_line() == Line("OK")


def test_binary_short_read():
    reader = _reader(b"ab")
    with pytest.raises(ShortRead) as exc_info:
        reader.next_binary(5)
    assert exc_info.value.expected == 5
    assert exc_info.value.received == 2


def test_binary_missing_trailing_newline_at_eof():
    reader = _reader(b"abc")
    with pytest.raises(ShortRead):
        reader.next_binary(3)


def test_binary_wrong_trailing_byte():
    reader = _reader(b"abcX")
    with pytest.raises(Malformed):
        reader.next_binary(3)


def test_binary_negative_length():
    with pytest.raises(Malformed):
        _reader(b"").next_binary(-1)


def test_partial_reads_are_reassembled():
    data = b"size: 4\nbinary: 4\n\x00\x01\x02\x03\nOK\n"
    reader = FrameReader(io.BufferedReader(TrickleStream(data), buffer_size=1))
    assert reader.next_line() == Line("size: 4")
    assert reader.next_line() == Line("binary: 4")
    assert reader.next_binary(4).data == b"\x00\x01\x02\x03"
    assert reader.next_line() == Line("OK")
    assert reader.next_line() is None


def test_binary_repr():
    r = repr(Binary(data=b"x" * 10, declared_length=10))
    assert "data_len=10" in r
