"""Connection settings, read from the environment.

Follows the variables understood by other MPD clients::

    MPD_HOST=secret@musicbox   # password@host, or a Unix socket path
    MPD_PORT=6600
    MPD_TIMEOUT=10             # seconds; unset means block
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .transport.connection import DEFAULT_HOST, DEFAULT_PORT


@dataclass(frozen=True)
class MPDSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    password: str | None = None
    timeout: float | None = None

    @property
    def address(self) -> tuple[str, int] | str:
        """The value to hand to :func:`~mpd_mcp.transport.connection.connect`."""
        if self.host.startswith("/"):
            return self.host
        return self.host, self.port

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> MPDSettings:
        env = os.environ if environ is None else environ

        host = env.get("MPD_HOST") or DEFAULT_HOST
        password = None
        # a socket path may itself contain "@", so only split host names
        if not host.startswith("/") and "@" in host:
            password, _, host = host.rpartition("@")
            host = host or DEFAULT_HOST

        raw_port = env.get("MPD_PORT")
        try:
            port = int(raw_port) if raw_port else DEFAULT_PORT
        except ValueError:
            raise ValueError(f"MPD_PORT must be an integer, got {raw_port!r}") from None

        raw_timeout = env.get("MPD_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else None
        except ValueError:
            raise ValueError(f"MPD_TIMEOUT must be a number, got {raw_timeout!r}") from None

        return cls(host=host, port=port, password=password or None, timeout=timeout)
