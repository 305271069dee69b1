"""MCP server entry point for the Music Player Daemon.

Exposes playback control, queue and database queries as tools over the
Model Context Protocol using the official Python MCP SDK with stdio
transport.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import MPDSettings
from .errors import MappingError, ProtocolError, TransportError
from .models.fields import optional_int, parse_int, require
from .models.song import parse_current_song, parse_listing, parse_playlist
from .models.stats import Stats
from .models.status import State, Status
from .protocol.commands import (
    Command,
    Mode,
    build_add,
    build_album_art,
    build_clear,
    build_current_song,
    build_list_all,
    build_next,
    build_pause,
    build_play,
    build_playlist_info,
    build_previous,
    build_set_mode,
    build_set_volume,
    build_stats,
    build_status,
    build_stop,
    build_update,
)
from .protocol.parser import AckError, OkWithBinary, ResponseOutcome
from .transport.connection import MPDConnection, connect as open_connection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "mpd",
    instructions="MCP server for controlling a Music Player Daemon",
)

# Global connection state
_connection: MPDConnection | None = None


def _get_connection() -> MPDConnection:
    """Get the active connection, raising if not connected."""
    if _connection is None or _connection.closed:
        raise RuntimeError(
            "Not connected to MPD. Use the 'connect' tool first."
        )
    return _connection


def _execute(command: Command) -> ResponseOutcome:
    """Run one command, forgetting the connection if it breaks."""
    global _connection
    conn = _get_connection()
    try:
        return conn.execute(command)
    except (TransportError, ProtocolError):
        _connection = None
        raise


def _ack_result(ack: AckError) -> dict[str, Any]:
    return {"error": ack.message, "code": ack.code, "command": ack.command}


def _simple(command: Command) -> dict[str, Any]:
    outcome = _execute(command)
    if isinstance(outcome, AckError):
        return _ack_result(outcome)
    return {"ok": True}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    host: str | None = None,
    port: int | None = None,
    password: str | None = None,
) -> dict[str, Any]:
    """Connect to MPD and complete the greeting handshake.

    Unset arguments fall back to MPD_HOST, MPD_PORT and MPD_TIMEOUT,
    then to localhost:6600.
    """
    global _connection
    if _connection is not None and not _connection.closed:
        return {
            "connected": True,
            "message": "Already connected",
            "version": _connection.version_string,
        }

    settings = MPDSettings.from_env()
    if host is not None:
        settings = replace(settings, host=host)
    if port is not None:
        settings = replace(settings, port=port)
    if password is None:
        password = settings.password

    conn = open_connection(settings.address, timeout=settings.timeout)
    result: dict[str, Any] = {
        "connected": True,
        "version": conn.version_string,
    }

    if password:
        rejected = conn.authenticate(password)
        if rejected is not None:
            result["authenticated"] = False
            result["error"] = rejected.message
        else:
            result["authenticated"] = True

    _connection = conn
    return result


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to MPD."""
    global _connection
    if _connection is None:
        return {"disconnected": True}
    _connection.close()
    _connection = None
    return {"disconnected": True}


@mcp.tool()
def get_version() -> dict[str, Any]:
    """Report the protocol version announced by MPD."""
    conn = _get_connection()
    major, minor, patch = conn.version
    return {"version": conn.version_string, "major": major, "minor": minor, "patch": patch}


# ─── STATUS TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def get_status() -> dict[str, Any]:
    """Report the player state, volume, modes and current song progress."""
    outcome = _execute(build_status())
    if isinstance(outcome, AckError):
        return _ack_result(outcome)

    try:
        status = Status.from_records(outcome.records)
    except MappingError as e:
        return {"error": str(e)}

    result = status.to_dict()
    extra = status.extra
    if status.state is not State.STOP and extra is not None:
        song_outcome = _execute(build_current_song())
        if isinstance(song_outcome, AckError):
            return _ack_result(song_outcome)
        try:
            song = parse_current_song(song_outcome.records)
        except MappingError as e:
            return {"error": str(e)}
        if song is not None:
            result["song"] = song.display_name
        result["position"] = f"#{extra.pos + 1}/{status.playlist_length}"
        if extra.time is not None:
            result["progress_percent"] = extra.time.percent

    if status.updating_db is not None:
        result["message"] = f"Updating DB (#{status.updating_db}) ..."
    return result


@mcp.tool()
def current_song() -> dict[str, Any]:
    """Show the song MPD is currently playing or paused on."""
    outcome = _execute(build_current_song())
    if isinstance(outcome, AckError):
        return _ack_result(outcome)
    try:
        song = parse_current_song(outcome.records)
    except MappingError as e:
        return {"error": str(e)}
    if song is None:
        return {"song": None}
    return {"song": song.to_dict(), "display": song.display_name}


@mcp.tool()
def get_playlist() -> dict[str, Any]:
    """List the songs in the current queue."""
    outcome = _execute(build_playlist_info())
    if isinstance(outcome, AckError):
        return _ack_result(outcome)
    try:
        songs = parse_playlist(outcome.records)
    except MappingError as e:
        return {"error": str(e)}
    return {
        "songs": [
            {"position": i + 1, "display": song.display_name, "file": song.file}
            for i, song in enumerate(songs)
        ]
    }


@mcp.tool()
def list_all(uri: str | None = None) -> dict[str, Any]:
    """List all songs in the music directory, or below ``uri``."""
    outcome = _execute(build_list_all(uri))
    if isinstance(outcome, AckError):
        return _ack_result(outcome)
    entries = parse_listing(outcome.records)
    return {"files": [e.path for e in entries if e.kind == "file"]}


@mcp.tool()
def get_stats() -> dict[str, Any]:
    """Report database statistics (artists, albums, songs, play time)."""
    outcome = _execute(build_stats())
    if isinstance(outcome, AckError):
        return _ack_result(outcome)
    try:
        return Stats.from_records(outcome.records).to_dict()
    except MappingError as e:
        return {"error": str(e)}


# ─── PLAYBACK TOOLS ───────────────────────────────────────────────────

@mcp.tool()
def play(position: int | None = None) -> dict[str, Any]:
    """Start playing, optionally at a 1-based queue position.

    Args:
        position: 1-based position in the queue; omit to resume.
    """
    if position is not None and position < 1:
        return {"error": f"Position must be >= 1, got {position}"}
    return _simple(build_play(None if position is None else position - 1))


@mcp.tool()
def pause() -> dict[str, Any]:
    """Pause the currently playing song."""
    return _simple(build_pause(True))


@mcp.tool()
def next_song() -> dict[str, Any]:
    """Play the next song in the queue."""
    return _simple(build_next())


@mcp.tool()
def previous_song() -> dict[str, Any]:
    """Play the previous song in the queue."""
    return _simple(build_previous())


@mcp.tool()
def stop() -> dict[str, Any]:
    """Stop playback."""
    return _simple(build_stop())


@mcp.tool()
def set_mode(mode: str, enabled: bool) -> dict[str, Any]:
    """Turn consume, random, repeat or single mode on or off."""
    try:
        command = build_set_mode(Mode(mode), enabled)
    except ValueError:
        return {"error": f"Unknown mode '{mode}'. Valid: {[m.value for m in Mode]}"}
    return _simple(command)


@mcp.tool()
def set_volume(level: int) -> dict[str, Any]:
    """Set the mixer volume (0-100)."""
    if not 0 <= level <= 100:
        return {"error": "Volume must be 0-100"}
    return _simple(build_set_volume(level))


# ─── QUEUE & DATABASE TOOLS ───────────────────────────────────────────

@mcp.tool()
def add(uri: str) -> dict[str, Any]:
    """Add a song or directory (recursively) to the queue."""
    return _simple(build_add(uri))


@mcp.tool()
def clear() -> dict[str, Any]:
    """Clear the queue."""
    return _simple(build_clear())


@mcp.tool()
def update_database(uri: str | None = None) -> dict[str, Any]:
    """Scan the music directory for changes, or only ``uri``."""
    outcome = _execute(build_update(uri))
    if isinstance(outcome, AckError):
        return _ack_result(outcome)
    try:
        job = optional_int(outcome.records, "updating_db")
    except MappingError as e:
        return {"error": str(e)}
    return {"ok": True, "job": job}


@mcp.tool()
def get_album_art(uri: str, output_path: str) -> dict[str, Any]:
    """Download the cover image for ``uri`` and write it to ``output_path``.

    MPD sends the image in chunks; this keeps requesting from the next
    offset until the announced size has been received.
    """
    data = bytearray()
    size = None
    while size is None or len(data) < size:
        outcome = _execute(build_album_art(uri, len(data)))
        if isinstance(outcome, AckError):
            return _ack_result(outcome)
        if not isinstance(outcome, OkWithBinary):
            return {"error": "Response carried no image data"}
        try:
            size = parse_int("size", require(outcome.records, "size"))
        except MappingError as e:
            return {"error": str(e)}
        if not outcome.binary:
            break
        data.extend(outcome.binary)

    path = Path(output_path)
    path.write_bytes(bytes(data))
    logger.info("Wrote %d bytes of album art for %s to %s", len(data), uri, path)
    return {"path": str(path), "size": len(data), "complete": len(data) == size}


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("mpd://server/version")
def resource_version() -> str:
    """Protocol version of the connected daemon."""
    if _connection is None or _connection.closed:
        return json.dumps({"connected": False})
    return json.dumps({"connected": True, "version": _connection.version_string})


@mcp.resource("mpd://server/status")
def resource_status() -> str:
    """Current player status as JSON."""
    if _connection is None or _connection.closed:
        return json.dumps({"connected": False})
    return json.dumps(get_status())


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=os.environ.get("MPD_LOG_LEVEL", "INFO").upper())
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
