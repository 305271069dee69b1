"""Response decoding: reduce frames into one outcome per command.

A response is zero or more ``key: value`` lines closed by ``OK`` (``list_OK``
inside a command list), or a single ``ACK`` line that replaces the
terminator::

    ACK [50@0] {play} No such song
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Iterator, NamedTuple

from ..errors import BadGreeting, CommandError, Malformed, TransportError
from .framing import FrameReader

SUCCESS = "OK"
LIST_OK = "list_OK"
ACK_PREFIX = "ACK "
SEPARATOR = ": "
DEFAULT_BINARY_FIELDS = frozenset({"binary"})

_ACK_RE = re.compile(r"^ACK \[(\d+)@(\d+)\] ?\{([^}]*)\} ?(.*)$")
_GREETING_RE = re.compile(r"^OK MPD (\d+)\.(\d+)\.(\d+)$")


class AckCode(IntEnum):
    """Error codes the daemon reports in ``ACK`` lines."""

    NOT_LIST = 1
    ARG = 2
    PASSWORD = 3
    PERMISSION = 4
    UNKNOWN = 5
    NO_EXIST = 50
    PLAYLIST_MAX = 51
    SYSTEM = 52
    PLAYLIST_LOAD = 53
    UPDATE_ALREADY = 54
    PLAYER_SYNC = 55
    EXIST = 56


class Version(NamedTuple):
    """Protocol version announced in the greeting."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass
class RecordSet:
    """Ordered key/value pairs from one response block. Keys may repeat."""

    pairs: list[tuple[str, str]] = field(default_factory=list)

    def append(self, key: str, value: str) -> None:
        self.pairs.append((key, value))

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the first value stored under ``key``."""
        for k, v in self.pairs:
            if k == key:
                return v
        return default

    def get_all(self, key: str) -> list[str]:
        return [v for k, v in self.pairs if k == key]

    def keys(self) -> list[str]:
        """Distinct keys in order of first appearance."""
        return list(dict.fromkeys(k for k, _ in self.pairs))

    def to_dict(self) -> dict[str, str]:
        """Collapse to a dict, keeping the first value of repeated keys."""
        result: dict[str, str] = {}
        for k, v in self.pairs:
            result.setdefault(k, v)
        return result

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self.pairs)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)


@dataclass
class Ok:
    """Successful response."""

    records: RecordSet = field(default_factory=RecordSet)
    ok = True


@dataclass
class OkWithBinary:
    """Successful response that carried a binary payload."""

    binary: bytes
    records: RecordSet = field(default_factory=RecordSet)
    ok = True

    def __repr__(self) -> str:
        return f"OkWithBinary(binary_len={len(self.binary)}, records={self.records!r})"


@dataclass
class AckError:
    """Failure reported by the daemon for one command.

    ``command_index`` is the position of the failing command inside a command
    list, and 0 outside of one.
    """

    code: int
    command_index: int
    command: str
    message: str
    ok = False

    @property
    def ack_code(self) -> AckCode | None:
        try:
            return AckCode(self.code)
        except ValueError:
            return None

    def raise_for_error(self) -> None:
        raise CommandError(self)

    def __str__(self) -> str:
        return f"[{self.code}@{self.command_index}] {{{self.command}}} {self.message}"


ResponseOutcome = Ok | OkWithBinary | AckError


def check(outcome: ResponseOutcome) -> Ok | OkWithBinary:
    """Return a successful outcome, or raise ``CommandError`` for an ACK."""
    if isinstance(outcome, AckError):
        outcome.raise_for_error()
    return outcome


def parse_ack(line: str) -> AckError:
    """Parse ``ACK [code@index] {command} message``."""
    match = _ACK_RE.match(line)
    if match is None:
        raise Malformed("Unparseable ACK line", line)
    code, index, command, message = match.groups()
    return AckError(
        code=int(code),
        command_index=int(index),
        command=command,
        message=message,
    )


def parse_greeting(line: str | None) -> Version:
    """Parse the ``OK MPD <major>.<minor>.<patch>`` greeting line."""
    if line is None:
        raise BadGreeting(None)
    match = _GREETING_RE.match(line)
    if match is None:
        raise BadGreeting(line)
    major, minor, patch = (int(part) for part in match.groups())
    return Version(major, minor, patch)


def split_pair(line: str) -> tuple[str, str]:
    """Split a ``key: value`` line on the first separator."""
    key, sep, value = line.partition(SEPARATOR)
    if not sep or not key:
        raise Malformed("Expected 'key: value'", line)
    return key, value


def decode_response(
    reader: FrameReader,
    binary_fields: Iterable[str] = DEFAULT_BINARY_FIELDS,
    terminator: str = SUCCESS,
) -> ResponseOutcome:
    """Decode exactly one response from ``reader``.

    Args:
        reader: Source of frames, positioned at the start of a response.
        binary_fields: Keys whose value announces a binary payload length.
        terminator: The line that closes a successful response.

    Returns:
        ``Ok``, ``OkWithBinary`` or ``AckError``.

    Raises:
        TransportError: The stream ended before the response was complete.
        ProtocolError: The response violates the framing rules.
    """
    binary_fields = frozenset(binary_fields)
    records = RecordSet()
    binary: bytes | None = None

    while True:
        frame = reader.next_line()
        if frame is None:
            raise TransportError("Connection closed by the daemon")
        line = frame.text

        if line == terminator:
            if binary is not None:
                return OkWithBinary(binary=binary, records=records)
            return Ok(records=records)

        if line.startswith(ACK_PREFIX):
            # anything accumulated so far belongs to the failed command
            return parse_ack(line)

        key, value = split_pair(line)
        records.append(key, value)

        if key in binary_fields:
            if binary is not None:
                raise Malformed("Second binary payload in one response", line)
            try:
                length = int(value)
            except ValueError:
                raise Malformed("Binary length is not an integer", line) from None
            if length < 0:
                raise Malformed("Binary length is negative", line)
            binary = reader.next_binary(length).data
