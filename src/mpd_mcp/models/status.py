"""Player status model, built from the ``status`` response."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

from ..errors import InvalidValue
from ..protocol.parser import RecordSet
from .fields import (
    optional_float,
    optional_int,
    parse_bool,
    parse_int,
    require,
)


class State(str, Enum):
    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"


class Toggle(str, Enum):
    """Value of the ``single`` and ``consume`` modes."""

    OFF = "0"
    ON = "1"
    ONESHOT = "oneshot"

    def __bool__(self) -> bool:
        return self is not Toggle.OFF


@dataclass
class Time:
    """Elapsed and total time of the current song, in whole seconds."""

    elapsed: int
    total: int

    @classmethod
    def parse(cls, raw: str) -> Time:
        elapsed, sep, total = raw.partition(":")
        if not sep:
            raise InvalidValue("time", raw, "elapsed:total")
        return cls(elapsed=parse_int("time", elapsed), total=parse_int("time", total))

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return 100 * self.elapsed // self.total


@dataclass
class Extra:
    """Position and timing of the current song; only present while one is loaded."""

    pos: int
    song_id: int | None = None
    elapsed: float | None = None
    duration: float | None = None
    time: Time | None = None


@dataclass
class Status:
    state: State
    volume: int | None = None
    repeat: bool | None = None
    random: bool | None = None
    single: Toggle = Toggle.OFF
    consume: Toggle = Toggle.OFF
    playlist_length: int = 0
    extra: Extra | None = None
    next_song: int | None = None
    next_song_id: int | None = None
    bitrate: int | None = None
    audio: str | None = None
    xfade: int | None = None
    updating_db: int | None = None
    error: str | None = None

    @classmethod
    def from_records(cls, records: RecordSet) -> Status:
        """Map a ``status`` record set.

        Raises:
            MissingField: ``state`` is absent.
            InvalidValue: A present field does not parse.
        """
        raw_state = require(records, "state")
        try:
            state = State(raw_state)
        except ValueError:
            raise InvalidValue("state", raw_state, "play, pause or stop") from None

        extra = None
        pos = optional_int(records, "song")
        if pos is not None:
            raw_time = records.get("time")
            extra = Extra(
                pos=pos,
                song_id=optional_int(records, "songid"),
                elapsed=optional_float(records, "elapsed"),
                duration=optional_float(records, "duration"),
                time=Time.parse(raw_time) if raw_time is not None else None,
            )

        return cls(
            state=state,
            volume=_parse_volume(records.get("volume")),
            repeat=_optional_bool(records, "repeat"),
            random=_optional_bool(records, "random"),
            single=_parse_toggle(records, "single"),
            consume=_parse_toggle(records, "consume"),
            playlist_length=optional_int(records, "playlistlength") or 0,
            extra=extra,
            next_song=optional_int(records, "nextsong"),
            next_song_id=optional_int(records, "nextsongid"),
            bitrate=optional_int(records, "bitrate"),
            audio=records.get("audio"),
            xfade=optional_int(records, "xfade"),
            updating_db=optional_int(records, "updating_db"),
            error=records.get("error"),
        )

    def to_dict(self) -> dict:
        d = asdict(self)
        d["state"] = self.state.value
        d["single"] = self.single.name.lower()
        d["consume"] = self.consume.name.lower()
        return d


def _parse_volume(raw: str | None) -> int | None:
    # -1 means the daemon has no mixer; newer daemons omit the key instead
    if raw is None or raw == "-1":
        return None
    volume = parse_int("volume", raw)
    if not 0 <= volume <= 100:
        raise InvalidValue("volume", raw, "0-100")
    return volume


def _optional_bool(records: RecordSet, name: str) -> bool | None:
    raw = records.get(name)
    return None if raw is None else parse_bool(name, raw)


def _parse_toggle(records: RecordSet, name: str) -> Toggle:
    raw = records.get(name)
    if raw is None:
        return Toggle.OFF
    try:
        return Toggle(raw)
    except ValueError:
        raise InvalidValue(name, raw, "0, 1 or oneshot") from None
