"""Tests for response decoding."""

import io

import pytest

from mpd_mcp.errors import BadGreeting, CommandError, Malformed, TransportError
from mpd_mcp.protocol.framing import FrameReader, Line
from mpd_mcp.protocol.parser import (
    LIST_OK,
    AckCode,
    AckError,
    Ok,
    OkWithBinary,
    RecordSet,
    Version,
    check,
    decode_response,
    parse_ack,
    parse_greeting,
)


def _decode(data: bytes, **kwargs):
    reader = FrameReader(io.BytesIO(data))
    return decode_response(reader, **kwargs), reader


def test_decode_key_value_block():
    outcome, _ = _decode(b"volume: 80\nstate: play\nOK\n")
    assert isinstance(outcome, Ok)
    assert outcome.ok
    assert outcome.records.pairs == [("volume", "80"), ("state", "play")]


def test_decode_empty_ok():
    outcome, _ = _decode(b"OK\n")
    assert outcome == Ok(RecordSet())


def test_value_keeps_later_separators():
    outcome, _ = _decode(b"Title: Part 1: The Beginning\nOK\n")
    assert outcome.records.get("Title") == "Part 1: The Beginning"


def test_repeated_keys_preserved_in_order():
    outcome, _ = _decode(b"file: a.mp3\nfile: b.mp3\nOK\n")
    assert outcome.records.get_all("file") == ["a.mp3", "b.mp3"]


def test_decode_unknown_command_ack():
    outcome, _ = _decode(b'ACK [5@0]{unknown} unknown command "bogus"\n')
    assert outcome == AckError(
        code=5, command_index=0, command="unknown", message='unknown command "bogus"'
    )
    assert not outcome.ok
    assert outcome.ack_code is AckCode.UNKNOWN


def test_ack_discards_partial_records():
    outcome, reader = _decode(b"file: a.mp3\nACK [50@0] {play} No such song\nOK\n")
    assert isinstance(outcome, AckError)
    assert outcome.message == "No such song"
    # decoding stops right after the ACK line
    assert reader.next_line() == Line("OK")


def test_parse_ack_unknown_code():
    ack = parse_ack("ACK [999@2] {foo} something new")
    assert ack.code == 999
    assert ack.command_index == 2
    assert ack.ack_code is None


def test_parse_ack_malformed():
    with pytest.raises(Malformed):
        parse_ack("ACK something went wrong")


def test_malformed_ack_in_response():
    with pytest.raises(Malformed):
        _decode(b"ACK oops\n")


def test_line_without_separator():
    with pytest.raises(Malformed):
        _decode(b"volume 80\nOK\n")


def test_stream_ends_before_terminator():
    with pytest.raises(TransportError):
        _decode(b"volume: 80\n")


def test_binary_payload():
    data = b"size: 5\ntype: image/png\nbinary: 5\nhello\nOK\n"
    outcome, _ = _decode(data)
    assert isinstance(outcome, OkWithBinary)
    assert outcome.binary == b"hello"
    assert len(outcome.binary) == 5
    assert outcome.records.pairs == [
        ("size", "5"),
        ("type", "image/png"),
        ("binary", "5"),
    ]


def test_binary_payload_that_looks_like_protocol():
    """Bytes inside a binary span are never interpreted as lines."""
    payload = b"OK\nACK [1@0] {x} y\n"
    data = b"binary: %d\n" % len(payload) + payload + b"\nOK\n"
    outcome, _ = _decode(data)
    assert outcome.binary == payload


def test_binary_length_not_integer():
    with pytest.raises(Malformed):
        _decode(b"binary: lots\nOK\n")


def test_second_binary_payload_rejected():
    with pytest.raises(Malformed):
        _decode(b"binary: 1\nA\nbinary: 1\nB\nOK\n")


def test_custom_binary_fields():
    outcome, _ = _decode(b"picture: 3\nabc\nOK\n", binary_fields={"picture"})
    assert outcome.binary == b"abc"

    outcome, _ = _decode(b"binary: 3\nOK\n", binary_fields=set())
    assert isinstance(outcome, Ok)
    assert outcome.records.get("binary") == "3"


def test_list_ok_terminator():
    reader = FrameReader(io.BytesIO(b"state: play\nlist_OK\nlist_OK\nOK\n"))
    first = decode_response(reader, terminator=LIST_OK)
    second = decode_response(reader, terminator=LIST_OK)
    assert first.records.get("state") == "play"
    assert len(second.records) == 0
    assert reader.next_line() == Line("OK")


def test_plain_ok_inside_list_is_malformed():
    with pytest.raises(Malformed):
        _decode(b"OK\n", terminator=LIST_OK)


def test_parse_greeting():
    assert parse_greeting("OK MPD 0.23.5") == Version(0, 23, 5)
    assert str(Version(0, 23, 5)) == "0.23.5"
    assert Version(0, 23, 5) > Version(0, 21, 11)


@pytest.mark.parametrize("line", [
    None,
    "",
    "OK",
    "OK MPD",
    "OK MPD 0.23",
    "OK MPD zero.one.two",
    "HELLO MPD 0.23.5",
])
def test_bad_greeting(line):
    with pytest.raises(BadGreeting):
        parse_greeting(line)


def test_record_set_helpers():
    records = RecordSet([("file", "a"), ("Title", "A"), ("file", "b")])
    assert records.get("file") == "a"
    assert records.get("Album") is None
    assert records.get("Album", "?") == "?"
    assert records.keys() == ["file", "Title"]
    assert records.to_dict() == {"file": "a", "Title": "A"}
    assert "Title" in records
    assert "Album" not in records
    assert len(records) == 3
    assert list(records) == records.pairs


def test_check():
    ok = Ok(RecordSet([("a", "1")]))
    assert check(ok) is ok

    ack = AckError(code=3, command_index=0, command="password", message="incorrect password")
    with pytest.raises(CommandError) as exc_info:
        check(ack)
    assert exc_info.value.ack is ack
    assert "incorrect password" in str(exc_info.value)
