"""Client for the Music Player Daemon protocol, exposed as an MCP server."""

from .errors import (
    BadGreeting,
    CommandError,
    ConnectError,
    MappingError,
    MPDError,
    ProtocolError,
    TransportError,
)
from .protocol.commands import Command
from .protocol.parser import AckError, Ok, OkWithBinary, RecordSet
from .transport.connection import MPDConnection, connect

__version__ = "0.1.0"
