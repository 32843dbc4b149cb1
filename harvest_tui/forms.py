"""Key handling for the entry creation wizard, the single-page form, the edit view and
the project/task pickers."""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple

from .catalog import ProjectRow, TaskRow, build_project_rows, build_task_rows, find_project
from .commands import CreateEntry, FetchCatalog, UpdateEntry
from .durations import DurationError, format_duration, parse_duration
from .keys import DEFAULT_KEYMAP as KEYS
from .keys import is_printable
from .models import EditDraft, Model, NewEntryDraft, Picker, Severity, TextField, ViewState
from .schemas import (CreateTimeEntryRequest, ProjectWithTasks, Task, TimeEntry,
                      UpdateTimeEntryRequest)


# ----------------------------------------------------------------------
# Shared helpers
# ----------------------------------------------------------------------
def return_to_list(model: Model) -> None:
    """Leave whatever flow is active and drop its draft."""

    model.view = ViewState.LIST
    model.draft = None
    model.pending_delete = None
    model.project_picker = None
    model.task_picker = None
    model.task_project = None


def edit_text(field: TextField, key: str) -> Optional[TextField]:
    if KEYS.backspace.matches(key):
        return field.backspace()
    if KEYS.clear.matches(key):
        return field.clear()
    if is_printable(key):
        return field.insert(key)
    return None


def refuse_while_busy(model: Model) -> bool:
    """One change is sent at a time; tell the user when a submit has to wait."""

    if not model.busy:
        return False
    model.set_status("Still saving the previous change, try again in a moment", Severity.WARNING)
    return True


def picker_keys(picker: Picker, key: str) -> Tuple[Picker, bool]:
    """Apply navigation/filter keys; the flag tells whether the key was consumed."""

    if picker.filtering:
        if KEYS.select.matches(key):
            return replace(picker, filtering=False), True
        if KEYS.back.matches(key):
            return replace(picker, filtering=False, query="", cursor=0), True
        if KEYS.backspace.matches(key):
            return picker.with_query(picker.query[:-1]), True
        if key in ("up", "down"):
            return picker.move(-1 if key == "up" else 1), True
        if is_printable(key):
            return picker.with_query(picker.query + key), True
        return picker, True

    if KEYS.up.matches(key):
        return picker.move(-1), True
    if KEYS.down.matches(key):
        return picker.move(1), True
    if KEYS.filter.matches(key):
        return replace(picker, filtering=True), True
    if KEYS.back.matches(key) and picker.query:
        return picker.with_query(""), True
    return picker, False


def _task_picker(entry: ProjectWithTasks, preselect: Optional[int]) -> Picker:
    rows = build_task_rows(entry)
    cursor = next((index for index, task in enumerate(entry.tasks) if task.id == preselect), 0)
    return Picker(rows=rows, cursor=cursor)


# ----------------------------------------------------------------------
# Entry points from the list view
# ----------------------------------------------------------------------
def start_wizard(model: Model) -> None:
    model.draft = NewEntryDraft(origin=ViewState.LIST)
    model.project_picker = Picker(rows=build_project_rows(model.catalog, model.recents))
    model.task_picker = None
    model.task_project = None
    model.view = ViewState.SELECT_PROJECT


def start_form(model: Model) -> None:
    model.draft = NewEntryDraft(origin=ViewState.NEW_ENTRY_FORM)
    model.project_picker = None
    model.task_picker = None
    model.task_project = None
    model.view = ViewState.NEW_ENTRY_FORM


def start_edit(model: Model, entry: TimeEntry) -> None:
    model.draft = EditDraft.for_entry(entry, format_duration(entry.hours))
    model.view = ViewState.EDIT_ENTRY


# ----------------------------------------------------------------------
# Project / task selection
# ----------------------------------------------------------------------
def select_project_keys(model: Model, key: str, commands: List) -> None:
    if model.project_picker is None:
        return
    picker, consumed = picker_keys(model.project_picker, key)
    model.project_picker = picker
    if consumed:
        return

    if KEYS.back.matches(key):
        draft = model.new_draft
        if draft is not None and draft.origin is ViewState.NEW_ENTRY_FORM:
            model.project_picker = None
            model.view = ViewState.NEW_ENTRY_FORM
        else:
            return_to_list(model)
        return

    if KEYS.select.matches(key):
        row = picker.current
        if row is None:
            return
        if not isinstance(row, ProjectRow):
            # divider rows only advance the cursor
            model.project_picker = picker.move(1)
            return
        _choose_project(model, row)


def _choose_project(model: Model, row: ProjectRow) -> None:
    entry = row.entry
    if not entry.tasks:
        model.set_status("No tasks available for this project", Severity.WARNING)
        return
    if len(entry.tasks) == 1:
        _commit_selection(model, entry, entry.tasks[0])
        return
    model.task_project = entry
    model.task_picker = _task_picker(entry, row.recent_task_id)
    model.view = ViewState.SELECT_TASK


def _commit_selection(model: Model, entry: ProjectWithTasks, task: Task) -> None:
    draft = model.new_draft
    if draft is None:
        return
    draft.project = entry
    draft.task = task
    model.task_picker = None
    model.task_project = None
    model.project_picker = None
    if draft.origin is ViewState.NEW_ENTRY_FORM:
        draft.field_index = NewEntryDraft.FIELDS.index("notes")
        model.view = ViewState.NEW_ENTRY_FORM
    else:
        model.view = ViewState.NOTES_INPUT


def select_task_keys(model: Model, key: str, commands: List) -> None:
    if model.task_picker is None:
        return
    picker, consumed = picker_keys(model.task_picker, key)
    model.task_picker = picker
    if consumed:
        return

    if KEYS.back.matches(key):
        model.task_picker = None
        model.task_project = None
        if model.edit_draft is not None:
            model.view = ViewState.EDIT_ENTRY
        elif model.project_picker is not None:
            model.view = ViewState.SELECT_PROJECT
        else:
            model.view = ViewState.NEW_ENTRY_FORM
        return

    if KEYS.select.matches(key):
        row = picker.current
        if not isinstance(row, TaskRow):
            return
        edit = model.edit_draft
        if edit is not None:
            edit.task = row.task
            model.task_picker = None
            model.task_project = None
            model.view = ViewState.EDIT_ENTRY
        elif model.task_project is not None:
            _commit_selection(model, model.task_project, row.task)


# ----------------------------------------------------------------------
# Wizard steps
# ----------------------------------------------------------------------
def notes_input_keys(model: Model, key: str, commands: List) -> None:
    draft = model.new_draft
    if draft is None:
        return
    if KEYS.back.matches(key):
        return_to_list(model)
    elif KEYS.select.matches(key):
        model.view = ViewState.DURATION_INPUT
    else:
        field = edit_text(draft.notes, key)
        if field is not None:
            draft.notes = field


def duration_input_keys(model: Model, key: str, commands: List) -> None:
    draft = model.new_draft
    if draft is None:
        return
    if KEYS.back.matches(key):
        model.view = ViewState.NOTES_INPUT
    elif KEYS.select.matches(key):
        try:
            parse_duration(draft.duration.value)
        except DurationError as exc:
            model.set_status(str(exc), Severity.ERROR)
            return
        model.view = ViewState.BILLABLE_TOGGLE
    else:
        field = edit_text(draft.duration, key)
        if field is not None:
            draft.duration = field


def billable_toggle_keys(model: Model, key: str, commands: List) -> None:
    draft = model.new_draft
    if draft is None:
        return
    if KEYS.back.matches(key):
        model.view = ViewState.DURATION_INPUT
    elif KEYS.toggle_billable.matches(key):
        draft.billable = not draft.billable
    elif KEYS.select.matches(key):
        submit_new_entry(model, commands)


def submit_new_entry(model: Model, commands: List) -> None:
    draft = model.new_draft
    if draft is None or refuse_while_busy(model):
        return
    if draft.project is None or draft.task is None:
        model.set_status("Please select a project and task", Severity.ERROR)
        return
    try:
        hours = parse_duration(draft.duration.value)
    except DurationError as exc:
        model.set_status(str(exc), Severity.ERROR)
        return

    request = CreateTimeEntryRequest(
        project_id=draft.project.project.id,
        task_id=draft.task.id,
        spent_date=model.current_date,
        hours=hours,
        notes=draft.notes.value,
        billable=draft.billable,
    )
    draft.submitted = True
    model.busy = True
    model.set_status("Creating entry...", Severity.INFO)
    commands.append(CreateEntry(request=request))


# ----------------------------------------------------------------------
# Single-page form
# ----------------------------------------------------------------------
def new_entry_form_keys(model: Model, key: str, commands: List) -> None:
    draft = model.new_draft
    if draft is None:
        return
    field_count = len(NewEntryDraft.FIELDS)
    current = NewEntryDraft.FIELDS[draft.field_index]

    if KEYS.back.matches(key):
        return_to_list(model)
    elif KEYS.next_field.matches(key):
        draft.field_index = (draft.field_index + 1) % field_count
    elif KEYS.prev_field.matches(key):
        draft.field_index = (draft.field_index - 1) % field_count
    elif KEYS.save.matches(key):
        submit_new_entry(model, commands)
    elif KEYS.form_billable.matches(key):
        draft.billable = not draft.billable
    elif KEYS.select.matches(key):
        if current == "project":
            model.project_picker = Picker(rows=build_project_rows(model.catalog, model.recents))
            model.view = ViewState.SELECT_PROJECT
        elif current == "task":
            if draft.project is None:
                model.set_status("Select a project first", Severity.WARNING)
                return
            model.task_project = draft.project
            model.task_picker = _task_picker(draft.project, draft.task.id if draft.task else None)
            model.view = ViewState.SELECT_TASK
    elif current == "notes":
        field = edit_text(draft.notes, key)
        if field is not None:
            draft.notes = field
    elif current == "duration":
        field = edit_text(draft.duration, key)
        if field is not None:
            draft.duration = field


# ----------------------------------------------------------------------
# Edit view
# ----------------------------------------------------------------------
def edit_entry_keys(model: Model, key: str, commands: List) -> None:
    draft = model.edit_draft
    if draft is None:
        return
    field_count = len(EditDraft.FIELDS)
    current = EditDraft.FIELDS[draft.field_index]

    if KEYS.back.matches(key):
        return_to_list(model)
    elif KEYS.next_field.matches(key):
        draft.field_index = (draft.field_index + 1) % field_count
    elif KEYS.prev_field.matches(key):
        draft.field_index = (draft.field_index - 1) % field_count
    elif KEYS.save.matches(key):
        submit_edit(model, commands)
    elif KEYS.select.matches(key):
        # enter only opens the task picker; it never saves
        if current == "task":
            request_task_change(model, commands)
    elif current == "notes":
        field = edit_text(draft.notes, key)
        if field is not None:
            draft.notes = field
    elif current == "duration":
        field = edit_text(draft.duration, key)
        if field is not None:
            draft.duration = field


def request_task_change(model: Model, commands: List) -> None:
    draft = model.edit_draft
    if draft is None or draft.pending_task_change:
        return
    if not model.catalog:
        draft.pending_task_change = True
        model.set_status("Loading tasks...", Severity.WARNING)
        commands.append(FetchCatalog())
        return
    if not open_task_selection_for_edit(model):
        model.set_status("No tasks found for this project", Severity.ERROR)


def open_task_selection_for_edit(model: Model) -> bool:
    draft = model.edit_draft
    if draft is None:
        return False
    entry = find_project(model.catalog, draft.entry.project.id)
    if entry is None or not entry.tasks:
        return False
    model.task_project = entry
    model.task_picker = _task_picker(entry, draft.task.id)
    model.view = ViewState.SELECT_TASK
    return True


def submit_edit(model: Model, commands: List) -> None:
    draft = model.edit_draft
    if draft is None or refuse_while_busy(model):
        return
    try:
        hours = parse_duration(draft.duration.value)
    except DurationError as exc:
        model.set_status(str(exc), Severity.ERROR)
        return

    request = UpdateTimeEntryRequest(
        hours=hours,
        notes=draft.notes.value,
        task_id=draft.task.id if draft.task_changed else None,
    )
    model.busy = True
    model.set_status("Saving entry...", Severity.INFO)
    commands.append(UpdateEntry(entry_id=draft.entry.id, request=request))


__all__ = [
    "billable_toggle_keys",
    "duration_input_keys",
    "edit_entry_keys",
    "edit_text",
    "new_entry_form_keys",
    "notes_input_keys",
    "open_task_selection_for_edit",
    "picker_keys",
    "refuse_while_busy",
    "request_task_change",
    "return_to_list",
    "select_project_keys",
    "select_task_keys",
    "start_edit",
    "start_form",
    "start_wizard",
    "submit_edit",
    "submit_new_entry",
]
