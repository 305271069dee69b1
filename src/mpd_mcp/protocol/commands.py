"""Command values, wire encoding, and high-level command builders.

A command travels as one line: the name, then each argument separated by a
space. Arguments are always double-quoted, with ``\\`` and ``"`` escaped by a
backslash, so the encoding does not depend on the argument's content::

    add "Jazz/Miles Davis - So What.flac"\\n
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from ..errors import InvalidArgument, Malformed
from .framing import ENCODING

LIST_BEGIN = "command_list_begin"
LIST_OK_BEGIN = "command_list_ok_begin"
LIST_END = "command_list_end"

_FORBIDDEN_IN_ARGUMENT = ("\n", "\r")
_FORBIDDEN_IN_NAME = (" ", "\t", '"', "\\", "\n", "\r")


@dataclass(frozen=True)
class Command:
    """A command name with its ordered arguments."""

    name: str
    args: tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return encode_command(self).decode(ENCODING).rstrip("\n")


class Mode(str, Enum):
    """Playback modes toggled by ``build_set_mode``."""

    CONSUME = "consume"
    RANDOM = "random"
    REPEAT = "repeat"
    SINGLE = "single"


# ─── ENCODING ────────────────────────────────────────────────────────

def quote_argument(arg: str) -> str:
    """Quote one argument, escaping backslashes and double quotes."""
    for ch in _FORBIDDEN_IN_ARGUMENT:
        if ch in arg:
            raise InvalidArgument(arg, "Argument contains a line terminator")
    escaped = arg.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def encode_command(command: Command) -> bytes:
    """Serialize a command into the exact bytes the daemon expects."""
    name = command.name
    if not name:
        raise InvalidArgument(name, "Command name is empty")
    for ch in _FORBIDDEN_IN_NAME:
        if ch in name:
            raise InvalidArgument(name, "Command name contains a reserved character")

    parts = [name]
    parts.extend(quote_argument(arg) for arg in command.args)
    return (" ".join(parts) + "\n").encode(ENCODING)


def encode_batch(commands: Iterable[Command], list_ok: bool = True) -> bytes:
    """Serialize a pipelined command list.

    With ``list_ok`` the daemon answers every sub-command with its own
    ``list_OK`` terminator, which is what lets the responses be told apart.
    """
    begin = LIST_OK_BEGIN if list_ok else LIST_BEGIN
    body = b"".join(encode_command(cmd) for cmd in commands)
    return f"{begin}\n".encode(ENCODING) + body + f"{LIST_END}\n".encode(ENCODING)


def decode_command(line: bytes | str) -> Command:
    """Tokenize one command line the way the daemon does.

    Accepts both quoted and bare arguments. Used by test doubles and for
    inspecting captured traffic.
    """
    if isinstance(line, bytes):
        line = line.decode(ENCODING)
    if line.endswith("\n"):
        line = line[:-1]

    tokens: list[str] = []
    i = 0
    n = len(line)
    while i < n:
        if line[i] in " \t":
            i += 1
            continue
        if line[i] == '"':
            i += 1
            buf = []
            while True:
                if i >= n:
                    raise Malformed("Unterminated quoted argument", line)
                ch = line[i]
                if ch == "\\":
                    if i + 1 >= n:
                        raise Malformed("Dangling escape", line)
                    buf.append(line[i + 1])
                    i += 2
                elif ch == '"':
                    i += 1
                    break
                else:
                    buf.append(ch)
                    i += 1
            tokens.append("".join(buf))
        else:
            start = i
            while i < n and line[i] not in " \t":
                i += 1
            tokens.append(line[start:i])

    if not tokens:
        raise Malformed("Empty command line", line)
    return Command(tokens[0], tuple(tokens[1:]))


# ─── BUILDERS ────────────────────────────────────────────────────────

def build_command(name: str, *args: object) -> Command:
    """Build a command, converting every argument with ``str``."""
    return Command(name, tuple(str(a) for a in args))


def build_add(uri: str) -> Command:
    """Add a file or directory (recursively) to the queue."""
    return build_command("add", uri)


def build_clear() -> Command:
    return build_command("clear")


def build_current_song() -> Command:
    return build_command("currentsong")


def build_list_all(uri: str | None = None) -> Command:
    """List every song and directory below ``uri`` (whole database if None)."""
    if uri is None:
        return build_command("listall")
    return build_command("listall", uri)


def build_next() -> Command:
    return build_command("next")


def build_pause(state: bool = True) -> Command:
    """Pause (``True``) or resume (``False``) playback."""
    return build_command("pause", 1 if state else 0)


def build_play(position: int | None = None) -> Command:
    """Start playing at queue ``position``, or resume the current song.

    Args:
        position: Zero-based queue position.
    """
    if position is None:
        return build_command("play")
    if position < 0:
        raise ValueError(f"Queue position must be >= 0, got {position}")
    return build_command("play", position)


def build_playlist_info() -> Command:
    return build_command("playlistinfo")


def build_previous() -> Command:
    return build_command("previous")


def build_set_mode(mode: Mode | str, state: bool) -> Command:
    """Enable or disable one of the playback modes."""
    mode = Mode(mode)
    return build_command(mode.value, 1 if state else 0)


def build_status() -> Command:
    return build_command("status")


def build_stats() -> Command:
    return build_command("stats")


def build_stop() -> Command:
    return build_command("stop")


def build_update(uri: str | None = None) -> Command:
    """Rescan the music directory, or only ``uri`` below it."""
    if uri is None:
        return build_command("update")
    return build_command("update", uri)


def build_set_volume(level: int) -> Command:
    """Set the mixer volume.

    Args:
        level: Volume level 0-100.
    """
    if not 0 <= level <= 100:
        raise ValueError(f"Volume must be 0-100, got {level}")
    return build_command("setvol", level)


def build_password(secret: str) -> Command:
    return build_command("password", secret)


def build_ping() -> Command:
    return build_command("ping")


def build_album_art(uri: str, offset: int = 0) -> Command:
    """Request one chunk of the cover image stored next to ``uri``."""
    if offset < 0:
        raise ValueError(f"Offset must be >= 0, got {offset}")
    return build_command("albumart", uri, offset)


def build_read_picture(uri: str, offset: int = 0) -> Command:
    """Request one chunk of the picture embedded in ``uri``'s tags."""
    if offset < 0:
        raise ValueError(f"Offset must be >= 0, got {offset}")
    return build_command("readpicture", uri, offset)
