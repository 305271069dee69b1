"""Typed results mapped from decoded record sets."""

from .song import Entry, Song
from .stats import Stats
from .status import Extra, State, Status, Time, Toggle
