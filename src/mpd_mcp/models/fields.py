"""Typed field extraction over decoded record sets.

Every helper fails loudly with ``MissingField`` or ``InvalidValue`` instead of
coercing a bad value into something plausible.
"""

from __future__ import annotations

from typing import Iterable

from ..errors import InvalidValue, MissingField
from ..protocol.parser import RecordSet


def require(records: RecordSet, name: str) -> str:
    value = records.get(name)
    if value is None:
        raise MissingField(name)
    return value


def parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise InvalidValue(name, raw, "integer") from None


def parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise InvalidValue(name, raw, "number") from None


def parse_bool(name: str, raw: str) -> bool:
    """Booleans travel as ``0`` and ``1``."""
    if raw == "0":
        return False
    if raw == "1":
        return True
    raise InvalidValue(name, raw, "0 or 1")


def optional_int(records: RecordSet, name: str) -> int | None:
    raw = records.get(name)
    return None if raw is None else parse_int(name, raw)


def optional_float(records: RecordSet, name: str) -> float | None:
    raw = records.get(name)
    return None if raw is None else parse_float(name, raw)


def split_records(
    records: RecordSet,
    boundary_keys: Iterable[str] | None = None,
) -> list[RecordSet]:
    """Split a list response into one record set per entity.

    A new entity starts whenever a boundary key appears. Without explicit
    boundary keys, the first key of the response is the boundary.
    Pairs appearing before the first boundary key are grouped into a leading
    entity of their own.
    """
    if not records:
        return []

    boundaries = set(boundary_keys) if boundary_keys is not None else {records.pairs[0][0]}
    entities: list[RecordSet] = []
    current: RecordSet | None = None

    for key, value in records:
        if key in boundaries or current is None:
            current = RecordSet()
            entities.append(current)
        current.append(key, value)

    return entities
