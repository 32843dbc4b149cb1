"""Workflow engine.

:func:`update` is a pure reducer: it takes the current :class:`~harvest_tui.models.Model`
and one event and returns the next model together with the commands the runtime should
execute. The incoming model is never mutated. Completion messages come back through
:func:`update` as ordinary events.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, Dict, List, Optional, Tuple, Union

from . import forms
from .commands import (Command, DeleteEntry, FetchCatalog, FetchEntries, PersistRecents,
                       Quit, ScheduleTick, StartTimer, StopTimer)
from .keys import DEFAULT_KEYMAP as KEYS
from .log import get_logger
from .messages import (CatalogFetched, EntriesFetched, EntryCreated, EntryDeleted,
                       EntryUpdated, KeyPress, Message, RecentsSaved, Tick, TimerStarted,
                       TimerStopped)
from .models import Model, Severity, ViewState
from .schemas import TimeEntry
from .state import RecentSelection, add_recent

logger = get_logger(__name__)

Effect = Union[Command, Quit]
KeyHandler = Callable[[Model, str, List[Effect]], None]


def init(model: Model) -> Tuple[Model, List[Effect]]:
    """Start loading: fetch today's entries and the project catalog concurrently."""

    model = model.clone()
    model.view = ViewState.LOADING
    model.loading = True
    model.last_fetch_at = model.now
    model.tick_scheduled = True
    return model, [
        FetchEntries(day=model.current_date),
        FetchCatalog(),
        ScheduleTick(delay=model.timings.tick_interval),
    ]


def update(model: Model, event: Message, now: Optional[dt.datetime] = None) -> Tuple[Model, List[Effect]]:
    model = model.clone()
    if now is None:
        now = event.at if isinstance(event, Tick) else dt.datetime.now()
    model.now = now
    commands: List[Effect] = []

    if isinstance(event, KeyPress):
        _on_key(model, event.key, commands)
    elif isinstance(event, Tick):
        _on_tick(model, commands)
    elif isinstance(event, EntriesFetched):
        _on_entries_fetched(model, event)
    elif isinstance(event, CatalogFetched):
        _on_catalog_fetched(model, event)
    elif isinstance(event, EntryCreated):
        _on_entry_created(model, event, commands)
    elif isinstance(event, EntryUpdated):
        _on_entry_updated(model, event)
    elif isinstance(event, EntryDeleted):
        _on_entry_deleted(model, event)
    elif isinstance(event, TimerStarted):
        _on_timer_started(model, event, commands)
    elif isinstance(event, TimerStopped):
        _on_timer_stopped(model, event)
    elif isinstance(event, RecentsSaved):
        if event.error is not None:
            logger.warning("Could not save recent selections: %s", event.error)
    else:
        logger.debug("Ignoring unknown event %r", event)

    _ensure_tick(model, commands)
    return model, commands


# ----------------------------------------------------------------------
# Keys
# ----------------------------------------------------------------------
def _on_key(model: Model, key: str, commands: List[Effect]) -> None:
    if KEYS.force_quit.matches(key):
        model.quitting = True
        commands.append(Quit())
        return
    if model.view is ViewState.LOADING:
        return

    handler = _KEY_HANDLERS.get(model.view)
    if handler is None:
        return
    previous_view = model.view
    previous_status = model.status
    handler(model, key, commands)
    # transient status does not survive a view change unless the change produced it
    if model.view is not previous_view and model.status is previous_status:
        model.clear_status()


def _list_keys(model: Model, key: str, commands: List[Effect]) -> None:
    if KEYS.quit.matches(key):
        farewell = f"See you next time, {model.user.full_name}!" if model.user else None
        model.quitting = True
        commands.append(Quit(farewell=farewell))
    elif KEYS.help.matches(key):
        model.view = ViewState.HELP
    elif KEYS.up.matches(key):
        if model.selected_index > 0:
            model.selected_index -= 1
        model.clear_status()
    elif KEYS.down.matches(key):
        if model.selected_index < len(model.entries) - 1:
            model.selected_index += 1
        model.clear_status()
    elif KEYS.prev_day.matches(key):
        _focus_date(model, model.current_date - dt.timedelta(days=1), commands)
    elif KEYS.next_day.matches(key):
        _focus_date(model, model.current_date + dt.timedelta(days=1), commands)
    elif KEYS.today.matches(key):
        _focus_date(model, model.today, commands)
    elif KEYS.refresh.matches(key):
        model.loading = True
        model.last_fetch_at = model.now
        commands.append(FetchEntries(day=model.current_date))
    elif KEYS.new.matches(key) or KEYS.new_form.matches(key):
        if not model.catalog:
            model.set_status("No projects available. Please check your Harvest configuration.", Severity.ERROR)
        elif KEYS.new.matches(key):
            forms.start_wizard(model)
        else:
            forms.start_form(model)
    elif KEYS.edit.matches(key):
        _edit_selected(model)
    elif KEYS.delete.matches(key):
        _delete_selected(model)
    elif KEYS.start_stop.matches(key):
        _toggle_timer(model, commands)


def _focus_date(model: Model, day: dt.date, commands: List[Effect]) -> None:
    if day != model.current_date:
        # the cache only ever holds the focused date
        model.entries = []
    model.current_date = day
    model.selected_index = 0
    model.loading = True
    model.last_fetch_at = model.now
    model.clear_status()
    commands.append(FetchEntries(day=day))


def _edit_selected(model: Model) -> None:
    entry = model.selected_entry
    if entry is None:
        return
    if entry.is_locked:
        model.set_status("Cannot edit locked time entry.", Severity.ERROR)
    elif entry.is_running:
        model.set_status("Cannot edit running time entry. Stop the timer first.", Severity.ERROR)
    else:
        forms.start_edit(model, entry)


def _delete_selected(model: Model) -> None:
    entry = model.selected_entry
    if entry is None:
        return
    if entry.is_locked:
        model.set_status("Cannot delete locked time entry.", Severity.ERROR)
        return
    if entry.is_running:
        model.set_status("Cannot delete running time entry. Stop the timer first.", Severity.ERROR)
        return
    model.pending_delete = entry
    model.view = ViewState.CONFIRM_DELETE


def _toggle_timer(model: Model, commands: List[Effect]) -> None:
    entry = model.selected_entry
    if entry is None:
        return
    if entry.is_locked:
        verb = "stop" if entry.is_running else "start"
        model.set_status(f"Cannot {verb} locked time entry.", Severity.ERROR)
    elif entry.is_running:
        commands.append(StopTimer(entry_id=entry.id))
    else:
        commands.append(StartTimer(entry_id=entry.id))


def _help_keys(model: Model, key: str, commands: List[Effect]) -> None:
    if KEYS.help.matches(key) or KEYS.back.matches(key) or KEYS.quit.matches(key):
        model.view = ViewState.LIST


def _confirm_delete_keys(model: Model, key: str, commands: List[Effect]) -> None:
    entry = model.pending_delete
    if KEYS.confirm.matches(key):
        if entry is None or forms.refuse_while_busy(model):
            return
        model.busy = True
        commands.append(DeleteEntry(entry_id=entry.id))
    elif KEYS.cancel.matches(key) or KEYS.back.matches(key):
        model.pending_delete = None
        model.view = ViewState.LIST


_KEY_HANDLERS: Dict[ViewState, KeyHandler] = {
    ViewState.LIST: _list_keys,
    ViewState.HELP: _help_keys,
    ViewState.CONFIRM_DELETE: _confirm_delete_keys,
    ViewState.SELECT_PROJECT: forms.select_project_keys,
    ViewState.SELECT_TASK: forms.select_task_keys,
    ViewState.NOTES_INPUT: forms.notes_input_keys,
    ViewState.DURATION_INPUT: forms.duration_input_keys,
    ViewState.BILLABLE_TOGGLE: forms.billable_toggle_keys,
    ViewState.NEW_ENTRY_FORM: forms.new_entry_form_keys,
    ViewState.EDIT_ENTRY: forms.edit_entry_keys,
}


# ----------------------------------------------------------------------
# Ticks
# ----------------------------------------------------------------------
def _on_tick(model: Model, commands: List[Effect]) -> None:
    model.tick_scheduled = False
    model.today = model.now.date()

    status = model.status
    if status is not None:
        age = (model.now - status.set_at).total_seconds()
        if age >= model.timings.status_timeout:
            model.clear_status()

    if model.has_running_timer and model.view is ViewState.LIST and not model.loading:
        last = model.last_fetch_at
        if last is None or (model.now - last).total_seconds() >= model.timings.poll_interval:
            model.last_fetch_at = model.now
            commands.append(FetchEntries(day=model.current_date))


def _ensure_tick(model: Model, commands: List[Effect]) -> None:
    """Keep exactly one tick in flight while something depends on the clock."""

    if model.quitting or model.tick_scheduled:
        return
    if model.status is not None or model.has_running_timer:
        model.tick_scheduled = True
        commands.append(ScheduleTick(delay=model.timings.tick_interval))


# ----------------------------------------------------------------------
# Completions
# ----------------------------------------------------------------------
def _complete_loading(model: Model) -> None:
    if model.view is ViewState.LOADING and model.entries_loaded and model.catalog_loaded:
        model.view = ViewState.LIST


def _on_entries_fetched(model: Model, event: EntriesFetched) -> None:
    if event.day != model.current_date:
        logger.debug("Discarding entries for %s, focused date is %s", event.day, model.current_date)
        return

    model.loading = False
    model.entries_loaded = True
    if event.error is not None:
        logger.error("Fetching entries for %s failed: %s", event.day, event.error)
        model.entries_error = f"Failed to fetch time entries: {event.error}"
    else:
        model.entries = list(event.entries)
        model.entries_error = None
        model.last_fetch_at = model.now
        model.clamp_selection()
    _complete_loading(model)


def _on_catalog_fetched(model: Model, event: CatalogFetched) -> None:
    model.catalog_loaded = True
    edit = model.edit_draft
    waiting = edit is not None and edit.pending_task_change
    if edit is not None:
        edit.pending_task_change = False

    if event.error is not None:
        logger.error("Fetching projects failed: %s", event.error)
        model.catalog_error = f"Failed to fetch projects: {event.error}"
        if waiting:
            model.set_status(model.catalog_error, Severity.ERROR)
    else:
        model.catalog = list(event.catalog)
        model.catalog_error = None
        if waiting and model.view is ViewState.EDIT_ENTRY:
            if forms.open_task_selection_for_edit(model):
                model.clear_status()
            else:
                model.set_status("No tasks found for this project", Severity.ERROR)
    _complete_loading(model)


def _replace_entry(model: Model, entry: TimeEntry) -> None:
    for index, existing in enumerate(model.entries):
        if existing.id == entry.id:
            model.entries[index] = entry
            return


def _select_entry(model: Model, entry_id: int) -> bool:
    for index, entry in enumerate(model.entries):
        if entry.id == entry_id:
            model.selected_index = index
            return True
    return False


def _on_entry_created(model: Model, event: EntryCreated, commands: List[Effect]) -> None:
    model.busy = False
    # the user may have left the submitted flow while the request was in flight
    draft = model.new_draft
    own_flow = draft is not None and draft.submitted
    if event.error is not None or event.entry is None:
        logger.error("Creating entry failed: %s", event.error)
        if own_flow:
            draft.submitted = False
        model.set_status(f"Failed to create entry: {event.error}", Severity.ERROR)
        return

    entry = event.entry
    if entry.spent_date == model.current_date:
        selected = model.selected_entry
        model.entries.insert(0, entry)
        if own_flow or selected is None:
            model.selected_index = 0
        else:
            _select_entry(model, selected.id)

    selection = RecentSelection(client_id=entry.client.id, project_id=entry.project.id, task_id=entry.task.id)
    model.recents = add_recent(model.recents, selection)
    commands.append(PersistRecents(recents=list(model.recents)))

    if own_flow:
        forms.return_to_list(model)
    model.set_status("Time entry created successfully", Severity.SUCCESS)


def _on_entry_updated(model: Model, event: EntryUpdated) -> None:
    model.busy = False
    if event.error is not None or event.entry is None:
        logger.error("Updating entry %s failed: %s", event.entry_id, event.error)
        model.set_status(f"Failed to update entry: {event.error}", Severity.ERROR)
        return
    _replace_entry(model, event.entry)
    edit = model.edit_draft
    if edit is not None and edit.entry.id == event.entry_id:
        forms.return_to_list(model)
    model.set_status("Time entry updated successfully", Severity.SUCCESS)


def _on_entry_deleted(model: Model, event: EntryDeleted) -> None:
    model.busy = False
    if event.error is not None:
        logger.error("Deleting entry %s failed: %s", event.entry_id, event.error)
        model.set_status(f"Failed to delete entry: {event.error}", Severity.ERROR)
        return

    pending = model.pending_delete
    confirming = model.view is ViewState.CONFIRM_DELETE and pending is not None and pending.id == event.entry_id
    edit = model.edit_draft
    editing_deleted = edit is not None and edit.entry.id == event.entry_id

    selected = model.selected_entry
    model.entries = [entry for entry in model.entries if entry.id != event.entry_id]
    if selected is not None and selected.id != event.entry_id:
        _select_entry(model, selected.id)
    elif model.selected_index >= len(model.entries) and model.selected_index > 0:
        model.selected_index -= 1
    model.clamp_selection()

    if confirming or editing_deleted:
        forms.return_to_list(model)
    model.set_status("Time entry deleted successfully", Severity.SUCCESS)


def _on_timer_started(model: Model, event: TimerStarted, commands: List[Effect]) -> None:
    if event.error is not None or event.entry is None:
        logger.error("Starting timer for entry %s failed: %s", event.entry_id, event.error)
        model.set_status(f"Failed to start timer: {event.error}", Severity.ERROR)
        return
    _replace_entry(model, event.entry)
    # harvest stops any other running timer, so reload the day
    model.last_fetch_at = model.now
    commands.append(FetchEntries(day=model.current_date))
    model.set_status("Timer started successfully", Severity.SUCCESS)


def _on_timer_stopped(model: Model, event: TimerStopped) -> None:
    if event.error is not None or event.entry is None:
        logger.error("Stopping timer for entry %s failed: %s", event.entry_id, event.error)
        model.set_status(f"Failed to stop timer: {event.error}", Severity.ERROR)
        return
    _replace_entry(model, event.entry)
    model.set_status("Timer stopped successfully", Severity.SUCCESS)


__all__ = ["Effect", "init", "update"]
