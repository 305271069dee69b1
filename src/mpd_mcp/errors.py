"""Exception hierarchy for the MPD client.

Connectivity failures (``ConnectError``, ``TransportError``,
``ProtocolError``) leave the connection unusable. Daemon-reported command
failures are not exceptions at all: they come back as
:class:`~mpd_mcp.protocol.parser.AckError` values. ``MappingError`` is raised
by the typed result mapping and leaves the connection untouched.
"""

from __future__ import annotations


class MPDError(Exception):
    """Base class for every error raised by this package."""


# ─── CONNECTIVITY ────────────────────────────────────────────────────

class ConnectError(MPDError):
    """The daemon could not be reached or the handshake failed."""


class BadGreeting(ConnectError):
    """The first line sent by the daemon is not ``OK MPD <version>``."""

    def __init__(self, line: str | None) -> None:
        if line is None:
            message = "Connection closed before the greeting was received"
        else:
            message = f"Expected 'OK MPD <version>' greeting, got {line!r}"
        super().__init__(message)
        self.line = line


class TransportError(MPDError, ConnectionError):
    """A read or write on the stream failed, timed out, or hit end of stream."""


# ─── FRAMING ─────────────────────────────────────────────────────────

class ProtocolError(MPDError):
    """The daemon sent bytes that do not follow the protocol framing."""


class IncompleteLine(ProtocolError):
    """The stream ended in the middle of a line."""

    def __init__(self, partial: bytes) -> None:
        super().__init__(f"Stream ended mid-line after {len(partial)} bytes")
        self.partial = partial


class ShortRead(ProtocolError):
    """The stream ended before a declared binary payload was complete."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Binary payload truncated: expected {expected} bytes, got {received}"
        )
        self.expected = expected
        self.received = received


class Malformed(ProtocolError):
    """A line could not be interpreted (missing separator, bad ACK, ...)."""

    def __init__(self, reason: str, line: str | None = None) -> None:
        if line is not None:
            reason = f"{reason}: {line!r}"
        super().__init__(reason)
        self.line = line


# ─── ENCODING ────────────────────────────────────────────────────────

class EncodeError(MPDError, ValueError):
    """A command cannot be represented on the wire."""


class InvalidArgument(EncodeError):
    """A command name or argument contains characters that cannot be sent."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"{reason}: {value!r}")
        self.value = value


# ─── MAPPING ─────────────────────────────────────────────────────────

class MappingError(MPDError):
    """A well-formed response does not have the expected typed shape."""


class MissingField(MappingError):
    """A required key is absent from the record set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing required field {name!r}")
        self.name = name


class InvalidValue(MappingError):
    """A key is present but its value does not parse into the target type."""

    def __init__(self, name: str, raw: str, expected: str = "") -> None:
        message = f"Invalid value for {name!r}: {raw!r}"
        if expected:
            message += f" (expected {expected})"
        super().__init__(message)
        self.name = name
        self.raw = raw


# ─── COMMAND FAILURES (opt-in) ───────────────────────────────────────

class CommandError(MPDError):
    """Raised by ``AckError.raise_for_error`` for callers that prefer raising."""

    def __init__(self, ack) -> None:
        super().__init__(str(ack))
        self.ack = ack
