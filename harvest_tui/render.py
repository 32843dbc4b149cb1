"""Turn a model into a :class:`Screen`.

Rendering is a pure function of the model; the terminal layer only paints the result.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .catalog import ARROW, ProjectRow, TaskRow
from .durations import daily_total, format_duration
from .keys import DEFAULT_KEYMAP as KEYS
from .models import EditDraft, Model, NewEntryDraft, Picker, Severity, TextField, ViewState
from .schemas import TimeEntry

TITLE = "Harvest Time Tracker"


@dataclass(frozen=True, slots=True)
class Line:
    text: str
    detail: str = ""
    kind: str = "row"  # row, note, divider, heading, empty
    selected: bool = False
    running: bool = False
    locked: bool = False
    recent: bool = False


@dataclass(frozen=True, slots=True)
class FieldView:
    label: str
    value: str
    focused: bool = False
    placeholder: str = ""
    hint: str = ""


@dataclass(frozen=True, slots=True)
class Notice:
    text: str
    severity: Severity


@dataclass(frozen=True, slots=True)
class KeyHint:
    key: str
    label: str


@dataclass(frozen=True, slots=True)
class Screen:
    view: ViewState
    title: str
    date_label: str
    breadcrumb: Tuple[str, ...] = ()
    heading: str = ""
    total: str = ""
    context: Tuple[str, ...] = ()
    lines: Tuple[Line, ...] = ()
    fields: Tuple[FieldView, ...] = ()
    banners: Tuple[Notice, ...] = ()
    status: Optional[Notice] = None
    footer: Tuple[KeyHint, ...] = ()


# ----------------------------------------------------------------------
# Formatting helpers
# ----------------------------------------------------------------------
def format_date(day: dt.date) -> str:
    """``Mon, Jan 2, 2006``"""

    return f"{day:%a, %b} {day.day}, {day.year}"


def entries_heading(current: dt.date, today: dt.date) -> str:
    if current == today:
        return "Today's Entries"
    return f"{current:%A}'s Entries"


def entry_path(entry: TimeEntry) -> str:
    return f" {ARROW} ".join((entry.client.name, entry.project.name, entry.task.name))


def _hints(*pairs: Tuple[str, str]) -> Tuple[KeyHint, ...]:
    return tuple(KeyHint(key, label) for key, label in pairs)


def _field(label: str, field: TextField, focused: bool) -> FieldView:
    return FieldView(label=label, value=field.value, focused=focused, placeholder=field.placeholder)


def _billable_label(billable: bool) -> str:
    return "[x] Billable" if billable else "[ ] Non-billable"


# ----------------------------------------------------------------------
# Views
# ----------------------------------------------------------------------
def _loading(model: Model) -> dict:
    lines = [Line("Loading your time entries...", kind="empty")]
    lines.append(Line("Time entries", detail="done" if model.entries_loaded else "...", kind="note"))
    lines.append(Line("Projects and tasks", detail="done" if model.catalog_loaded else "...", kind="note"))
    return dict(lines=lines, footer=_hints(("ctrl+c", "quit")))


def _entry_lines(model: Model) -> List[Line]:
    if model.loading and not model.entries:
        return [Line("Loading...", kind="empty")]
    if not model.entries:
        return [
            Line("No time entries for this date", kind="empty"),
            Line(f"Press '{KEYS.new.help_key}' to create a new entry", kind="empty"),
        ]
    lines: List[Line] = []
    for index, entry in enumerate(model.entries):
        lines.append(Line(
            entry_path(entry),
            detail=format_duration(entry.hours),
            selected=index == model.selected_index,
            running=entry.is_running,
            locked=entry.is_locked,
        ))
        if entry.notes:
            lines.append(Line(f'"{entry.notes}"', kind="note", selected=index == model.selected_index))
    return lines


def _list(model: Model) -> dict:
    return dict(
        heading=entries_heading(model.current_date, model.today),
        total=format_duration(daily_total(model.entries)),
        lines=_entry_lines(model),
        footer=_hints(
            ("←/→", "day"), ("n", "new"), ("e", "edit"), ("s", "start/stop"),
            ("d", "delete"), ("?", "help"), ("q", "quit"),
        ),
    )


def _picker_lines(picker: Optional[Picker]) -> List[Line]:
    if picker is None:
        return []
    rows = picker.visible
    if not rows:
        return [Line("No matches", kind="empty")]
    cursor = min(picker.cursor, len(rows) - 1)
    lines = []
    for index, row in enumerate(rows):
        if isinstance(row, ProjectRow):
            lines.append(Line(row.label, detail="recent" if row.is_recent else "",
                              selected=index == cursor, recent=row.is_recent))
        elif isinstance(row, TaskRow):
            lines.append(Line(row.label, selected=index == cursor))
        else:
            lines.append(Line("", kind="divider"))
    return lines


def _filter_context(picker: Optional[Picker]) -> Tuple[str, ...]:
    if picker is None or not (picker.filtering or picker.query):
        return ()
    return (f"Filter: {picker.query}",)


_PICKER_FOOTER = (("↑/↓", "navigate"), ("/", "filter"), ("enter", "select"), ("esc", "back"))


def _new_entry_breadcrumb(model: Model, step: str, number: int) -> Tuple[str, ...]:
    draft = model.new_draft
    if draft is not None and draft.origin is ViewState.NEW_ENTRY_FORM:
        return ("New Time Entry", step)
    return ("New Time Entry", f"Step {number}: {step}")


def _select_project(model: Model) -> dict:
    return dict(
        breadcrumb=_new_entry_breadcrumb(model, "Choose Project", 1),
        context=_filter_context(model.project_picker),
        lines=_picker_lines(model.project_picker),
        footer=_hints(*_PICKER_FOOTER),
    )


def _select_task(model: Model) -> dict:
    if model.edit_draft is not None:
        breadcrumb: Tuple[str, ...] = ("Edit Time Entry", "Change Task")
    else:
        breadcrumb = _new_entry_breadcrumb(model, "Choose Task", 2)
    context: Tuple[str, ...] = ()
    if model.task_project is not None:
        context = (f"Project: {model.task_project.client.name} {ARROW} {model.task_project.project.name}",)
    return dict(
        breadcrumb=breadcrumb,
        context=context + _filter_context(model.task_picker),
        lines=_picker_lines(model.task_picker),
        footer=_hints(*_PICKER_FOOTER),
    )


def _draft_context(draft: NewEntryDraft) -> Tuple[str, ...]:
    if draft.project is None:
        return ()
    parts = [draft.project.client.name, draft.project.project.name]
    if draft.task is not None:
        parts.append(draft.task.name)
    return (f" {ARROW} ".join(parts),)


def _notes_input(model: Model, draft: NewEntryDraft) -> dict:
    return dict(
        breadcrumb=_new_entry_breadcrumb(model, "Enter Notes", 3),
        context=_draft_context(draft),
        fields=[_field("Notes", draft.notes, True)],
        footer=_hints(("enter", "continue"), ("esc", "cancel")),
    )


def _duration_input(model: Model, draft: NewEntryDraft) -> dict:
    lines = [Line(f"Notes: {draft.notes.value}", kind="note")] if draft.notes.value else []
    return dict(
        breadcrumb=_new_entry_breadcrumb(model, "Enter Duration", 4),
        context=_draft_context(draft),
        lines=lines,
        fields=[_field("Duration (H:MM)", draft.duration, True)],
        footer=_hints(("enter", "continue"), ("esc", "back")),
    )


def _billable_toggle(model: Model, draft: NewEntryDraft) -> dict:
    lines = []
    if draft.notes.value:
        lines.append(Line(f"Notes: {draft.notes.value}", kind="note"))
    lines.append(Line(f"Duration: {draft.duration.value}", kind="note"))
    return dict(
        breadcrumb=_new_entry_breadcrumb(model, "Billable?", 5),
        context=_draft_context(draft),
        lines=lines,
        fields=[FieldView("Billable", _billable_label(draft.billable), focused=True)],
        footer=_hints(("space", "toggle"), ("enter", "create entry"), ("esc", "back")),
    )


def _new_entry_form(model: Model, draft: NewEntryDraft) -> dict:
    focused = NewEntryDraft.FIELDS[draft.field_index]
    project = f"{draft.project.client.name} {ARROW} {draft.project.project.name}" if draft.project else ""
    fields = [
        FieldView("Project", project, focused == "project", "Press enter to choose a project"),
        FieldView("Task", draft.task.name if draft.task else "", focused == "task",
                  "Press enter to choose a task"),
        _field("Notes", draft.notes, focused == "notes"),
        _field("Duration", draft.duration, focused == "duration"),
        FieldView("Billable", _billable_label(draft.billable)),
    ]
    return dict(
        breadcrumb=("New Time Entry",),
        fields=fields,
        footer=_hints(("tab", "next field"), ("enter", "choose"), ("ctrl+b", "billable"),
                      ("ctrl+s", "save"), ("esc", "cancel")),
    )


def _edit_entry(model: Model, draft: EditDraft) -> dict:
    focused = EditDraft.FIELDS[draft.field_index]
    entry = draft.entry
    fields = [
        FieldView("Task", draft.task.name, focused == "task",
                  hint="press enter to change" if focused == "task" else ""),
        _field("Notes", draft.notes, focused == "notes"),
        _field("Duration", draft.duration, focused == "duration"),
    ]
    return dict(
        breadcrumb=("Edit Time Entry",),
        context=(f"{entry.client.name} {ARROW} {entry.project.name}",),
        fields=fields,
        footer=_hints(("tab", "next field"), ("enter", "change task"), ("ctrl+s", "save"), ("esc", "cancel")),
    )


def _confirm_delete(model: Model) -> dict:
    entry = model.pending_delete
    lines = [Line("Are you sure you want to delete this entry?", kind="heading")]
    if entry is not None:
        lines.append(Line(entry_path(entry), detail=format_duration(entry.hours)))
        if entry.notes:
            lines.append(Line(f'"{entry.notes}"', kind="note"))
    return dict(
        breadcrumb=("Confirm Delete",),
        lines=lines,
        footer=_hints(("y", "confirm"), ("n", "cancel"), ("esc", "cancel")),
    )


def _help(model: Model) -> dict:
    lines: List[Line] = []
    for section, bindings in KEYS.help_sections():
        if lines:
            lines.append(Line("", kind="empty"))
        lines.append(Line(section, kind="heading"))
        lines.extend(Line(binding.help_text, detail=binding.help_key) for binding in bindings)
    return dict(
        breadcrumb=("Help",),
        lines=lines,
        footer=_hints(("?", "close"), ("esc", "close")),
    )


def _banners(model: Model) -> Tuple[Notice, ...]:
    return tuple(
        Notice(text, Severity.ERROR)
        for text in (model.entries_error, model.catalog_error)
        if text
    )


def render(model: Model) -> Screen:
    view = model.view
    new_draft = model.new_draft
    edit_draft = model.edit_draft

    if view is ViewState.LOADING:
        parts = _loading(model)
    elif view is ViewState.SELECT_PROJECT:
        parts = _select_project(model)
    elif view is ViewState.SELECT_TASK:
        parts = _select_task(model)
    elif view is ViewState.NOTES_INPUT and new_draft is not None:
        parts = _notes_input(model, new_draft)
    elif view is ViewState.DURATION_INPUT and new_draft is not None:
        parts = _duration_input(model, new_draft)
    elif view is ViewState.BILLABLE_TOGGLE and new_draft is not None:
        parts = _billable_toggle(model, new_draft)
    elif view is ViewState.NEW_ENTRY_FORM and new_draft is not None:
        parts = _new_entry_form(model, new_draft)
    elif view is ViewState.EDIT_ENTRY and edit_draft is not None:
        parts = _edit_entry(model, edit_draft)
    elif view is ViewState.CONFIRM_DELETE:
        parts = _confirm_delete(model)
    elif view is ViewState.HELP:
        parts = _help(model)
    else:
        parts = _list(model)

    status = Notice(model.status.text, model.status.severity) if model.status else None
    return Screen(
        view=view,
        title=TITLE,
        date_label=format_date(model.current_date),
        breadcrumb=tuple(parts.get("breadcrumb", ())),
        heading=parts.get("heading", ""),
        total=parts.get("total", ""),
        context=tuple(parts.get("context", ())),
        lines=tuple(parts.get("lines", ())),
        fields=tuple(parts.get("fields", ())),
        banners=_banners(model),
        status=status,
        footer=tuple(parts.get("footer", ())),
    )


__all__ = [
    "FieldView",
    "KeyHint",
    "Line",
    "Notice",
    "Screen",
    "TITLE",
    "entries_heading",
    "entry_path",
    "format_date",
    "render",
]
