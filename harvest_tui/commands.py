"""Units of work issued by the engine.

Every command returns exactly one completion message from :meth:`Command.run`, whether
the underlying call succeeded or failed. :class:`Quit` is the exception: it carries no
work and is interpreted by the runtime.
"""

from __future__ import annotations

import datetime as dt
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, ClassVar, List, Optional, Tuple

from .api_client import ApiError, HarvestClient
from .catalog import aggregate_projects_with_tasks
from .messages import (CatalogFetched, EntriesFetched, EntryCreated, EntryDeleted,
                       EntryUpdated, Message, RecentsSaved, Tick, TimerStarted,
                       TimerStopped)
from .schemas import CreateTimeEntryRequest, UpdateTimeEntryRequest
from .state import RecentSelection, RecentsStore, StateError


@dataclass(slots=True)
class Services:
    client: HarvestClient
    recents_store: RecentsStore
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], dt.datetime] = dt.datetime.now


class Command(ABC):
    # inline commands run on the engine thread instead of the worker pool
    inline: ClassVar[bool] = False
    expected_errors: ClassVar[Tuple[type, ...]] = (ApiError,)

    def run(self, services: Services) -> Message:
        try:
            return self.execute(services)
        except self.expected_errors as exc:
            return self.failed(exc, services)

    @abstractmethod
    def execute(self, services: Services) -> Message:
        """Do the work and return the success message."""

    @abstractmethod
    def failed(self, error: Exception, services: Services) -> Message:
        """Build the completion message for a call that raised *error*."""


@dataclass(frozen=True, slots=True)
class FetchEntries(Command):
    day: dt.date

    def execute(self, services: Services) -> Message:
        return EntriesFetched(day=self.day, entries=services.client.fetch_entries(self.day))

    def failed(self, error: Exception, services: Services) -> Message:
        return EntriesFetched(day=self.day, error=error)


@dataclass(frozen=True, slots=True)
class FetchCatalog(Command):
    def execute(self, services: Services) -> Message:
        projects = services.client.fetch_projects()
        assignments = services.client.fetch_task_assignments()
        return CatalogFetched(catalog=aggregate_projects_with_tasks(projects, assignments))

    def failed(self, error: Exception, services: Services) -> Message:
        return CatalogFetched(error=error)


@dataclass(frozen=True, slots=True)
class CreateEntry(Command):
    request: CreateTimeEntryRequest

    def execute(self, services: Services) -> Message:
        return EntryCreated(entry=services.client.create_entry(self.request))

    def failed(self, error: Exception, services: Services) -> Message:
        return EntryCreated(error=error)


@dataclass(frozen=True, slots=True)
class UpdateEntry(Command):
    entry_id: int
    request: UpdateTimeEntryRequest

    def execute(self, services: Services) -> Message:
        entry = services.client.update_entry(self.entry_id, self.request)
        return EntryUpdated(entry_id=self.entry_id, entry=entry)

    def failed(self, error: Exception, services: Services) -> Message:
        return EntryUpdated(entry_id=self.entry_id, error=error)


@dataclass(frozen=True, slots=True)
class DeleteEntry(Command):
    entry_id: int

    def execute(self, services: Services) -> Message:
        services.client.delete_entry(self.entry_id)
        return EntryDeleted(entry_id=self.entry_id)

    def failed(self, error: Exception, services: Services) -> Message:
        return EntryDeleted(entry_id=self.entry_id, error=error)


@dataclass(frozen=True, slots=True)
class StartTimer(Command):
    entry_id: int

    def execute(self, services: Services) -> Message:
        return TimerStarted(entry_id=self.entry_id, entry=services.client.start_timer(self.entry_id))

    def failed(self, error: Exception, services: Services) -> Message:
        return TimerStarted(entry_id=self.entry_id, error=error)


@dataclass(frozen=True, slots=True)
class StopTimer(Command):
    entry_id: int

    def execute(self, services: Services) -> Message:
        return TimerStopped(entry_id=self.entry_id, entry=services.client.stop_timer(self.entry_id))

    def failed(self, error: Exception, services: Services) -> Message:
        return TimerStopped(entry_id=self.entry_id, error=error)


@dataclass(frozen=True, slots=True)
class ScheduleTick(Command):
    delay: float

    def execute(self, services: Services) -> Message:
        services.sleep(self.delay)
        return Tick(at=services.clock())

    def failed(self, error: Exception, services: Services) -> Message:
        return Tick(at=services.clock())


@dataclass(frozen=True, slots=True)
class PersistRecents(Command):
    inline: ClassVar[bool] = True
    expected_errors: ClassVar[Tuple[type, ...]] = (StateError,)

    recents: List[RecentSelection] = field(default_factory=list)

    def execute(self, services: Services) -> Message:
        services.recents_store.save(self.recents)
        return RecentsSaved()

    def failed(self, error: Exception, services: Services) -> Message:
        return RecentsSaved(error=error)


@dataclass(frozen=True, slots=True)
class Quit:
    farewell: Optional[str] = None


__all__ = [
    "Command",
    "CreateEntry",
    "DeleteEntry",
    "FetchCatalog",
    "FetchEntries",
    "PersistRecents",
    "Quit",
    "ScheduleTick",
    "Services",
    "StartTimer",
    "StopTimer",
    "UpdateEntry",
]
