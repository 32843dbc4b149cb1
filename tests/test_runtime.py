from __future__ import annotations

import datetime as dt
import logging
import time
from pathlib import Path
from typing import Callable, List

import pytest

from harvest_tui.api_client import NotFound
from harvest_tui.commands import (Command, CreateEntry, FetchCatalog, PersistRecents,
                                  ScheduleTick, Services)
from harvest_tui.messages import CatalogFetched, EntryCreated, KeyPress, RecentsSaved, Tick
from harvest_tui.models import Model, ViewState, new_model
from harvest_tui.runtime import Program
from harvest_tui.schemas import (Client, CreateTimeEntryRequest, NamedRef, Project, Task,
                                 TaskAssignment)
from harvest_tui.state import RecentSelection, RecentsStore, StateError


class FakeClient:
    def __init__(self, entries=None, fail_entries: Exception = None) -> None:
        self.entries = entries or []
        self.fail_entries = fail_entries
        self.calls: List[str] = []

    def fetch_entries(self, day):
        self.calls.append("fetch_entries")
        if self.fail_entries is not None:
            raise self.fail_entries
        return list(self.entries)

    def fetch_projects(self):
        self.calls.append("fetch_projects")
        return [Project(id=100, name="Website", client=Client(id=10, name="Acme"))]

    def fetch_task_assignments(self):
        self.calls.append("fetch_task_assignments")
        return [TaskAssignment(id=1, project=NamedRef(id=100, name="Website"), task=Task(id=1000, name="Design"))]

    def create_entry(self, request):
        raise NotFound("Not found")


def _wait_for(program: Program, condition: Callable[[Model], bool], timeout: float = 2.0) -> Model:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        program.pump()
        if condition(program.model):
            return program.model
        time.sleep(0.01)
    raise AssertionError(f"condition not reached; view={program.model.view}")


@pytest.fixture
def services(tmp_path: Path, sample_now) -> Services:
    return Services(
        client=FakeClient(),
        recents_store=RecentsStore(tmp_path / "state.json"),
        sleep=lambda seconds: None,
        clock=lambda: sample_now,
    )


@pytest.fixture
def program(services: Services, user, sample_day, sample_now):
    program = Program(new_model(sample_day, sample_now, user=user), services)
    yield program
    program.shutdown()


def test_start_loads_entries_and_catalog(program, make_entry):
    program.services.client.entries = [make_entry(1)]
    program.start()

    model = _wait_for(program, lambda model: model.view is ViewState.LIST)

    assert [entry.id for entry in model.entries] == [1]
    assert model.catalog[0].project.name == "Website"


def test_unexpected_exception_still_yields_one_message(program, caplog):
    program.services.client.fail_entries = KeyError("boom")
    with caplog.at_level(logging.ERROR):
        program.start()
        model = _wait_for(program, lambda model: model.view is ViewState.LIST)

    assert model.entries_error.startswith("Failed to fetch time entries")
    assert "FetchEntries failed unexpectedly" in caplog.text


def test_notify_called_for_every_completion(services, user, sample_day, sample_now):
    notified = []
    program = Program(new_model(sample_day, sample_now, user=user), services, notify=lambda: notified.append(1))
    try:
        program.start()
        _wait_for(program, lambda model: model.view is ViewState.LIST)
    finally:
        program.shutdown()
    # entries, catalog and the initial tick
    assert len(notified) >= 3


def test_quit_finishes_program(program):
    program.start()
    _wait_for(program, lambda model: model.view is ViewState.LIST)

    program.send(KeyPress("q"))

    assert program.finished
    assert program.farewell == "See you next time, Ada Lovelace!"
    program.send(KeyPress("?"))
    assert program.model.view is ViewState.LIST


def test_inline_command_delivers_through_inbox(program, tmp_path: Path):
    recents = [RecentSelection(client_id=10, project_id=100, task_id=1000)]
    program._dispatch([PersistRecents(recents=recents)])

    assert program.pump() == 1
    assert RecentsStore(tmp_path / "state.json").load() == recents


def test_expected_error_becomes_failed_message(services, sample_day):
    request = CreateTimeEntryRequest(project_id=100, task_id=1000, spent_date=sample_day, hours=1.0)
    message = CreateEntry(request=request).run(services)
    assert isinstance(message, EntryCreated)
    assert isinstance(message.error, NotFound)
    assert message.entry is None


def test_fetch_catalog_aggregates(services):
    message = FetchCatalog().run(services)
    assert isinstance(message, CatalogFetched)
    assert [task.name for task in message.catalog[0].tasks] == ["Design"]


def test_schedule_tick_uses_injected_clock(services, sample_now):
    slept = []
    services.sleep = slept.append
    message = ScheduleTick(delay=5).run(services)
    assert slept == [5]
    assert message == Tick(at=sample_now)


def test_persist_recents_failure_is_reported(services, tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    services.recents_store = RecentsStore(blocker / "state.json")

    message = PersistRecents(recents=[]).run(services)

    assert isinstance(message, RecentsSaved)
    assert isinstance(message.error, StateError)


def test_command_without_failed_cannot_be_created():
    class Incomplete(Command):
        def execute(self, services):
            return Tick(at=dt.datetime(2024, 1, 1))

    with pytest.raises(TypeError):
        Incomplete()


def test_unexpected_tick_failure_uses_injected_clock(program, sample_now, caplog):
    def broken_sleep(seconds):
        raise OSError("interrupted")

    program.services.sleep = broken_sleep
    with caplog.at_level(logging.ERROR):
        message = program._execute(ScheduleTick(delay=1))

    assert message == Tick(at=sample_now)
    assert "ScheduleTick failed unexpectedly" in caplog.text


def test_no_wake_up_or_events_after_shutdown(services, user, sample_day, sample_now):
    notified = []
    program = Program(new_model(sample_day, sample_now, user=user), services, notify=lambda: notified.append(1))
    program.shutdown()

    program._deliver(RecentsSaved())
    program.send(KeyPress("?"))

    assert notified == []
    assert program.model.view is ViewState.LOADING
