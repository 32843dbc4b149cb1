from __future__ import annotations

import datetime as dt

from harvest_tui.api_client import NetworkOrTimeout
from harvest_tui.commands import FetchEntries, ScheduleTick
from harvest_tui.engine import update
from harvest_tui.messages import Tick, TimerStarted, TimerStopped
from harvest_tui.models import Severity, ViewState


def _later(base: dt.datetime, seconds: float) -> dt.datetime:
    return base + dt.timedelta(seconds=seconds)


def _ticks(commands):
    return [command for command in commands if isinstance(command, ScheduleTick)]


def test_timer_started_patches_and_refreshes(loaded_model, make_entry, sample_day):
    model, commands = update(loaded_model, TimerStarted(entry_id=1, entry=make_entry(1, running=True)))

    assert model.entries[0].is_running
    assert FetchEntries(day=sample_day) in commands
    assert model.status.text == "Timer started successfully"
    assert model.view is ViewState.LIST


def test_timer_stopped_patches_in_place_only(loaded_model, make_entry):
    loaded_model.entries[1] = make_entry(2, running=True, task=(1001, "Development"))
    model, commands = update(loaded_model, TimerStopped(entry_id=2, entry=make_entry(2, hours=0.5)))

    assert not model.entries[1].is_running
    assert model.entries[1].hours == 0.5
    assert not any(isinstance(command, FetchEntries) for command in commands)
    assert model.status.text == "Timer stopped successfully"


def test_timer_failures_set_error_status(loaded_model):
    model, _ = update(loaded_model, TimerStarted(entry_id=1, error=NetworkOrTimeout("offline")))
    assert model.status.text == "Failed to start timer: offline"
    assert model.status.severity is Severity.ERROR

    model, _ = update(model, TimerStopped(entry_id=1, error=NetworkOrTimeout("offline")))
    assert model.status.text == "Failed to stop timer: offline"


def test_running_timer_polls_after_interval(loaded_model, make_entry, sample_now, sample_day):
    loaded_model.entries[0] = make_entry(1, running=True)

    model, commands = update(loaded_model, Tick(at=_later(sample_now, 10)))
    assert not any(isinstance(command, FetchEntries) for command in commands)
    assert len(_ticks(commands)) == 1

    model, commands = update(model, Tick(at=_later(sample_now, 26)))
    assert FetchEntries(day=sample_day) in commands
    assert model.last_fetch_at == _later(sample_now, 26)


def test_no_poll_outside_list_view(loaded_model, make_entry, press, sample_now):
    loaded_model.entries[0] = make_entry(1, running=True)
    model, _ = press(loaded_model, "?")

    model, commands = update(model, Tick(at=_later(sample_now, 60)))
    assert not any(isinstance(command, FetchEntries) for command in commands)


def test_no_poll_while_loading(loaded_model, make_entry, press, sample_now):
    loaded_model.entries[0] = make_entry(1, running=True)
    model, _ = press(loaded_model, "r")

    model, commands = update(model, Tick(at=_later(sample_now, 60)))
    assert not any(isinstance(command, FetchEntries) for command in commands)


def test_status_expires_on_tick(loaded_model, press, make_entry, sample_now):
    loaded_model.entries[0] = make_entry(1, locked=True)
    model, _ = press(loaded_model, "e", now=sample_now)

    model, _ = update(model, Tick(at=_later(sample_now, 1)))
    assert model.status is not None
    model, _ = update(model, Tick(at=_later(sample_now, 4)))
    assert model.status is None


def test_tick_chain_stops_when_idle(loaded_model, sample_now):
    model, commands = update(loaded_model, Tick(at=_later(sample_now, 5)))
    assert _ticks(commands) == []
    assert not model.tick_scheduled


def test_single_tick_outstanding(loaded_model, press, make_entry, sample_now):
    model, _ = update(loaded_model, Tick(at=_later(sample_now, 5)))
    model.entries[0] = make_entry(1, locked=True)

    model, first = press(model, "e")
    model, second = press(model, "s")

    assert len(_ticks(first)) == 1
    assert _ticks(second) == []
    assert model.tick_scheduled
