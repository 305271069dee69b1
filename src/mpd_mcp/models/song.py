"""Song and database listing models.

``currentsong`` returns one song; ``playlistinfo`` returns one block per queue
entry, each starting with ``file``; ``listall`` mixes ``file``, ``directory``
and ``playlist`` entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..protocol.parser import RecordSet
from .fields import optional_float, optional_int, require, split_records

SONG_BOUNDARY = ("file",)
LISTING_BOUNDARY = ("file", "directory", "playlist")

_KNOWN_KEYS = {"file", "Artist", "Title", "Album", "Name", "Pos", "Id", "duration", "Time"}


@dataclass
class Song:
    """A song from the queue or the database."""

    file: str
    artist: str | None = None
    title: str | None = None
    album: str | None = None
    name: str | None = None
    pos: int | None = None
    id: int | None = None
    duration: float | None = None
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: RecordSet) -> Song:
        duration = optional_float(records, "duration")
        if duration is None:
            # older daemons only send the rounded "Time" tag
            duration = optional_float(records, "Time")

        tags: dict[str, str] = {}
        for key, value in records:
            if key not in _KNOWN_KEYS:
                tags.setdefault(key, value)

        return cls(
            file=require(records, "file"),
            artist=records.get("Artist"),
            title=records.get("Title"),
            album=records.get("Album"),
            name=records.get("Name"),
            pos=optional_int(records, "Pos"),
            id=optional_int(records, "Id"),
            duration=duration,
            tags=tags,
        )

    @property
    def display_name(self) -> str:
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        if self.title:
            return self.title
        return self.file

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "artist": self.artist,
            "title": self.title,
            "album": self.album,
            "name": self.name,
            "pos": self.pos,
            "id": self.id,
            "duration": self.duration,
            "tags": dict(self.tags),
        }


@dataclass
class Entry:
    """One entry of a database listing."""

    kind: str  # file, directory or playlist
    path: str


def parse_current_song(records: RecordSet) -> Song | None:
    """``currentsong`` answers with an empty block when nothing is loaded."""
    if not records:
        return None
    return Song.from_records(records)


def parse_playlist(records: RecordSet) -> list[Song]:
    return [Song.from_records(r) for r in split_records(records, SONG_BOUNDARY)]


def parse_listing(records: RecordSet) -> list[Entry]:
    entries = []
    for key, value in records:
        if key in LISTING_BOUNDARY:
            entries.append(Entry(kind=key, path=value))
    return entries
