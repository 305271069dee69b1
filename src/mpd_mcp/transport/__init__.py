"""Stream transport to the daemon."""

from .connection import MPDConnection, connect
