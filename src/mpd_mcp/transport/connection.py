"""Socket connection to a Music Player Daemon.

One connection carries one request at a time: every call writes a complete
command (or command list), flushes, and reads until the matching response is
fully decoded. A lock serializes callers that share a connection.

Any transport or framing failure closes the connection; the caller has to
``connect`` again. Errors reported by the daemon itself come back as
``AckError`` values and leave the connection usable.
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Iterable, Sequence

from ..errors import ConnectError, Malformed, MPDError, ProtocolError, TransportError
from ..protocol.commands import Command, build_password, build_ping, encode_batch, encode_command
from ..protocol.framing import FrameReader
from ..protocol.parser import (
    DEFAULT_BINARY_FIELDS,
    LIST_OK,
    SUCCESS,
    AckError,
    Ok,
    ResponseOutcome,
    Version,
    decode_response,
    parse_greeting,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6600

Address = tuple[str, int] | str


def parse_address(address: Address) -> tuple[str, int] | str:
    """Normalize ``address`` to ``(host, port)`` or a Unix socket path.

    Accepts ``(host, port)``, ``"host:port"``, ``"host"`` and absolute paths.
    """
    if isinstance(address, tuple):
        host, port = address
        return host, int(port)
    if address.startswith("/"):
        return address
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, DEFAULT_PORT
    try:
        return host, int(port)
    except ValueError:
        raise ConnectError(f"Invalid port in address {address!r}") from None


def _open_socket(address: Address, timeout: float | None) -> socket.socket:
    target = parse_address(address)
    try:
        if isinstance(target, str):
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                sock.settimeout(timeout)
                sock.connect(target)
            except OSError:
                sock.close()
                raise
            return sock
        return socket.create_connection(target, timeout=timeout)
    except OSError as e:
        raise ConnectError(f"Could not connect to MPD at {target!r}: {e}") from e


def connect(address: Address = (DEFAULT_HOST, DEFAULT_PORT), timeout: float | None = None) -> MPDConnection:
    """Open a connection and complete the greeting handshake.

    Args:
        address: ``(host, port)``, ``"host[:port]"`` or a Unix socket path.
        timeout: Per-operation socket timeout in seconds; ``None`` blocks.

    Raises:
        ConnectError: The daemon is unreachable or did not greet properly.
    """
    sock = _open_socket(address, timeout)
    return MPDConnection.from_socket(sock)


class MPDConnection:
    """A handshaken connection to the daemon.

    Usage::

        with connect(("localhost", 6600)) as conn:
            outcome = conn.execute(build_status())
    """

    def __init__(self, sock: socket.socket, version: Version, reader=None, writer=None) -> None:
        self._sock = sock
        self._reader_stream = reader if reader is not None else sock.makefile("rb")
        self._writer = writer if writer is not None else sock.makefile("wb")
        self._frames = FrameReader(self._reader_stream)
        self._version = version
        self._sequence = 0
        self._authenticated = False
        self._closed = False
        self._lock = threading.Lock()
        # guards only the closed flag; _lock is held for a whole round trip
        self._close_lock = threading.Lock()

    @classmethod
    def from_socket(cls, sock: socket.socket) -> MPDConnection:
        """Read the greeting from an already-connected socket.

        The socket is closed if the handshake fails.
        """
        reader = sock.makefile("rb")
        try:
            frame = FrameReader(reader).next_line()
            version = parse_greeting(frame.text if frame is not None else None)
        except (OSError, MPDError) as e:
            reader.close()
            sock.close()
            if isinstance(e, ConnectError):
                raise
            raise ConnectError(f"Handshake failed: {e}") from e

        logger.info("Connected to MPD %s", version)
        return cls(sock, version, reader=reader)

    # ─── STATE ───────────────────────────────────────────────────────

    @property
    def version(self) -> Version:
        return self._version

    @property
    def version_string(self) -> str:
        return str(self._version)

    @property
    def sequence(self) -> int:
        """Number of commands written so far."""
        return self._sequence

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Close the stream. Safe to call more than once, from any thread.

        A read or write blocked in another thread fails with
        ``TransportError``.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        # wake a reader blocked in recv before closing its buffered stream
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug("Error shutting down socket: %s", e)
        for resource in (self._writer, self._reader_stream, self._sock):
            try:
                resource.close()
            except OSError as e:
                logger.debug("Error closing %r: %s", resource, e)
        logger.info("Disconnected")

    def __enter__(self) -> MPDConnection:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ─── REQUESTS ────────────────────────────────────────────────────

    def execute(self, command: Command, binary_fields: Iterable[str] | None = None) -> ResponseOutcome:
        """Send one command and decode its response.

        Args:
            command: The command to run.
            binary_fields: Keys announcing a binary payload; defaults to
                ``{"binary"}``.
        """
        payload = encode_command(command)
        fields = DEFAULT_BINARY_FIELDS if binary_fields is None else frozenset(binary_fields)

        with self._lock:
            self._write(payload, command.name)
            outcome = self._decode(fields, SUCCESS)
            logger.debug("#%d %s -> %s", self._sequence, command.name, type(outcome).__name__)
        return outcome

    def execute_batch(
        self,
        commands: Sequence[Command],
        binary_fields: Iterable[str] | None = None,
    ) -> list[ResponseOutcome]:
        """Send a command list in one write and decode one outcome per command.

        Decoding stops at the first ``AckError``, which is the last element of
        the returned list; the daemon skips the remaining commands.
        """
        if not commands:
            return []

        payload = encode_batch(commands, list_ok=True)
        fields = DEFAULT_BINARY_FIELDS if binary_fields is None else frozenset(binary_fields)
        outcomes: list[ResponseOutcome] = []

        with self._lock:
            self._write(payload, f"command list of {len(commands)}")
            for command in commands:
                outcome = self._decode(fields, LIST_OK)
                outcomes.append(outcome)
                if isinstance(outcome, AckError):
                    logger.debug(
                        "#%d command list aborted at %d (%s): %s",
                        self._sequence, len(outcomes) - 1, command.name, outcome.message,
                    )
                    return outcomes
            self._expect_list_end()

        logger.debug("#%d command list of %d -> ok", self._sequence, len(commands))
        return outcomes

    def authenticate(self, secret: str) -> AckError | None:
        """Send the password.

        Returns:
            ``None`` on success, or the daemon's ``AckError``. A rejected
            password leaves the connection open but unauthenticated.
        """
        outcome = self.execute(build_password(secret))
        if isinstance(outcome, AckError):
            logger.warning("Authentication rejected: %s", outcome.message)
            return outcome
        self._authenticated = True
        return None

    def ping(self) -> bool:
        return isinstance(self.execute(build_ping()), Ok)

    # ─── INTERNALS ───────────────────────────────────────────────────

    def _write(self, payload: bytes, label: str) -> None:
        if self._closed:
            raise TransportError("Not connected to MPD")
        self._sequence += 1
        logger.debug("#%d >> %s", self._sequence, label)
        try:
            self._writer.write(payload)
            self._writer.flush()
        except (OSError, ValueError) as e:
            self._invalidate(e)
            raise TransportError(f"Write failed: {e}") from e

    def _decode(self, binary_fields: frozenset[str], terminator: str) -> ResponseOutcome:
        try:
            return decode_response(self._frames, binary_fields, terminator)
        except (TransportError, ProtocolError) as e:
            self._invalidate(e)
            raise
        except (OSError, ValueError) as e:
            self._invalidate(e)
            raise TransportError(f"Read failed: {e}") from e

    def _expect_list_end(self) -> None:
        try:
            frame = self._frames.next_line()
        except ProtocolError as e:
            self._invalidate(e)
            raise
        except (OSError, ValueError) as e:
            self._invalidate(e)
            raise TransportError(f"Read failed: {e}") from e

        if frame is None:
            error = TransportError("Connection closed by the daemon")
            self._invalidate(error)
            raise error
        if frame.text != SUCCESS:
            error = Malformed("Expected command list terminator 'OK'", frame.text)
            self._invalidate(error)
            raise error

    def _invalidate(self, reason: Exception) -> None:
        logger.warning("Dropping MPD connection after #%d: %s", self._sequence, reason)
        self.close()
