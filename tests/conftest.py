"""Shared fixtures: an in-process stand-in for the daemon."""

from __future__ import annotations

import socket

import pytest

GREETING = b"OK MPD 0.23.5\n"


class FakeDaemon:
    """The far end of a socket pair.

    Responses are written up front; the client reads them when it gets there.
    Everything the client sent can be collected afterwards with ``received``.
    """

    def __init__(self) -> None:
        self.client_sock, self.server_sock = socket.socketpair()
        # a broken test should fail, not hang
        self.client_sock.settimeout(5)

    def send(self, data: bytes) -> None:
        self.server_sock.sendall(data)

    def received(self) -> bytes:
        self.server_sock.setblocking(False)
        chunks = []
        try:
            while True:
                chunk = self.server_sock.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        except BlockingIOError:
            pass
        finally:
            self.server_sock.setblocking(True)
        return b"".join(chunks)

    def read(self, size: int) -> bytes:
        """Block until ``size`` bytes from the client have arrived."""
        self.server_sock.settimeout(5)
        data = b""
        while len(data) < size:
            chunk = self.server_sock.recv(size - len(data))
            if not chunk:
                break
            data += chunk
        self.server_sock.settimeout(None)
        return data

    def hang_up(self) -> None:
        self.server_sock.close()

    def close(self) -> None:
        self.server_sock.close()
        self.client_sock.close()


@pytest.fixture
def daemon():
    fake = FakeDaemon()
    yield fake
    fake.close()


@pytest.fixture
def conn(daemon):
    """A connection that has already completed the greeting."""
    from mpd_mcp.transport.connection import MPDConnection

    daemon.send(GREETING)
    connection = MPDConnection.from_socket(daemon.client_sock)
    yield connection
    connection.close()
