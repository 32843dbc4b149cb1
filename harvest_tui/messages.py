"""Events consumed by the engine: key presses, ticks and command completions."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .schemas import ProjectWithTasks, TimeEntry


@dataclass(frozen=True, slots=True)
class KeyPress:
    key: str


@dataclass(frozen=True, slots=True)
class Tick:
    at: dt.datetime


@dataclass(frozen=True, slots=True)
class EntriesFetched:
    day: dt.date
    entries: List[TimeEntry] = field(default_factory=list)
    error: Optional[Exception] = None


@dataclass(frozen=True, slots=True)
class CatalogFetched:
    catalog: List[ProjectWithTasks] = field(default_factory=list)
    error: Optional[Exception] = None


@dataclass(frozen=True, slots=True)
class EntryCreated:
    entry: Optional[TimeEntry] = None
    error: Optional[Exception] = None


@dataclass(frozen=True, slots=True)
class EntryUpdated:
    entry_id: int
    entry: Optional[TimeEntry] = None
    error: Optional[Exception] = None


@dataclass(frozen=True, slots=True)
class EntryDeleted:
    entry_id: int
    error: Optional[Exception] = None


@dataclass(frozen=True, slots=True)
class TimerStarted:
    entry_id: int
    entry: Optional[TimeEntry] = None
    error: Optional[Exception] = None


@dataclass(frozen=True, slots=True)
class TimerStopped:
    entry_id: int
    entry: Optional[TimeEntry] = None
    error: Optional[Exception] = None


@dataclass(frozen=True, slots=True)
class RecentsSaved:
    error: Optional[Exception] = None


Message = Union[
    KeyPress,
    Tick,
    EntriesFetched,
    CatalogFetched,
    EntryCreated,
    EntryUpdated,
    EntryDeleted,
    TimerStarted,
    TimerStopped,
    RecentsSaved,
]


__all__ = [
    "CatalogFetched",
    "EntriesFetched",
    "EntryCreated",
    "EntryDeleted",
    "EntryUpdated",
    "KeyPress",
    "Message",
    "RecentsSaved",
    "Tick",
    "TimerStarted",
    "TimerStopped",
]
