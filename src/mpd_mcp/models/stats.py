"""Database statistics model."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from ..protocol.parser import RecordSet
from .fields import optional_int, parse_int, require


@dataclass
class Stats:
    artists: int
    albums: int
    songs: int
    uptime: int
    playtime: int
    db_playtime: int
    db_update: int | None = None

    @classmethod
    def from_records(cls, records: RecordSet) -> Stats:
        def count(name: str) -> int:
            return parse_int(name, require(records, name))

        return cls(
            artists=count("artists"),
            albums=count("albums"),
            songs=count("songs"),
            uptime=count("uptime"),
            playtime=count("playtime"),
            db_playtime=count("db_playtime"),
            db_update=optional_int(records, "db_update"),
        )

    def to_dict(self) -> dict:
        return asdict(self)
