"""State held by the workflow engine."""

from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Union

from .catalog import Row
from .schemas import ProjectWithTasks, Task, TimeEntry, User
from .state import RecentSelection


class ViewState(enum.Enum):
    LOADING = "loading"
    LIST = "list"
    SELECT_PROJECT = "select_project"
    SELECT_TASK = "select_task"
    NEW_ENTRY_FORM = "new_entry_form"
    NOTES_INPUT = "notes_input"
    DURATION_INPUT = "duration_input"
    BILLABLE_TOGGLE = "billable_toggle"
    EDIT_ENTRY = "edit_entry"
    CONFIRM_DELETE = "confirm_delete"
    HELP = "help"


class Severity(enum.Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class StatusMessage:
    text: str
    severity: Severity
    set_at: dt.datetime


@dataclass(frozen=True, slots=True)
class Timings:
    tick_interval: float = 5.0
    poll_interval: float = 25.0
    status_timeout: float = 3.0


@dataclass(frozen=True, slots=True)
class TextField:
    """Single-line input.

    A prefilled field with ``replace_on_type`` set is overwritten by the first typed
    character instead of being appended to.
    """

    value: str = ""
    placeholder: str = ""
    replace_on_type: bool = False

    def insert(self, text: str) -> "TextField":
        if self.replace_on_type:
            return replace(self, value=text, replace_on_type=False)
        return replace(self, value=self.value + text)

    def backspace(self) -> "TextField":
        return replace(self, value=self.value[:-1], replace_on_type=False)

    def clear(self) -> "TextField":
        return replace(self, value="", replace_on_type=False)


@dataclass(frozen=True, slots=True)
class Picker:
    """Cursor and filter state of a selection list."""

    rows: Sequence[Row] = ()
    cursor: int = 0
    query: str = ""
    filtering: bool = False

    @property
    def visible(self) -> List[Row]:
        if not self.query:
            return list(self.rows)
        needle = self.query.lower()
        return [row for row in self.rows if row.selectable and needle in row.filter_value.lower()]

    @property
    def current(self) -> Optional[Row]:
        rows = self.visible
        if not rows:
            return None
        return rows[min(self.cursor, len(rows) - 1)]

    def move(self, delta: int) -> "Picker":
        rows = self.visible
        if not rows:
            return replace(self, cursor=0)
        return replace(self, cursor=max(0, min(self.cursor + delta, len(rows) - 1)))

    def with_query(self, query: str) -> "Picker":
        return replace(self, query=query, cursor=0)


@dataclass(slots=True)
class NewEntryDraft:
    origin: ViewState = ViewState.LIST
    project: Optional[ProjectWithTasks] = None
    task: Optional[Task] = None
    notes: TextField = field(default_factory=lambda: TextField(placeholder="Enter notes (optional)"))
    duration: TextField = field(
        default_factory=lambda: TextField("0:00", "Enter duration (e.g., 1:30)", replace_on_type=True)
    )
    billable: bool = True
    field_index: int = 0
    # a create for this draft is in flight
    submitted: bool = False

    FIELDS = ("project", "task", "notes", "duration")


@dataclass(slots=True)
class EditDraft:
    entry: TimeEntry
    task: Task
    notes: TextField
    duration: TextField
    billable: bool
    field_index: int = 0
    pending_task_change: bool = False

    FIELDS = ("task", "notes", "duration")

    @classmethod
    def for_entry(cls, entry: TimeEntry, duration_text: str) -> "EditDraft":
        return cls(
            entry=entry,
            task=entry.task,
            notes=TextField(entry.notes, "Enter notes (optional)"),
            duration=TextField(duration_text, "Enter duration (e.g., 1:30)", replace_on_type=True),
            billable=entry.is_billable,
        )

    @property
    def task_changed(self) -> bool:
        return self.task.id != self.entry.task.id


Draft = Union[NewEntryDraft, EditDraft]


@dataclass(slots=True)
class Model:
    current_date: dt.date
    today: dt.date
    now: dt.datetime
    user: Optional[User] = None
    recents: List[RecentSelection] = field(default_factory=list)
    timings: Timings = field(default_factory=Timings)
    view: ViewState = ViewState.LOADING
    entries: List[TimeEntry] = field(default_factory=list)
    catalog: List[ProjectWithTasks] = field(default_factory=list)
    selected_index: int = 0
    draft: Optional[Draft] = None
    pending_delete: Optional[TimeEntry] = None
    project_picker: Optional[Picker] = None
    task_picker: Optional[Picker] = None
    task_project: Optional[ProjectWithTasks] = None
    entries_loaded: bool = False
    catalog_loaded: bool = False
    loading: bool = False
    busy: bool = False
    entries_error: Optional[str] = None
    catalog_error: Optional[str] = None
    status: Optional[StatusMessage] = None
    last_fetch_at: Optional[dt.datetime] = None
    tick_scheduled: bool = False
    quitting: bool = False

    def clone(self) -> "Model":
        draft = replace(self.draft) if self.draft is not None else None
        return replace(self, entries=list(self.entries), recents=list(self.recents), draft=draft)

    # ------------------------------------------------------------------
    @property
    def selected_entry(self) -> Optional[TimeEntry]:
        if 0 <= self.selected_index < len(self.entries):
            return self.entries[self.selected_index]
        return None

    @property
    def has_running_timer(self) -> bool:
        return any(entry.is_running for entry in self.entries)

    @property
    def new_draft(self) -> Optional[NewEntryDraft]:
        return self.draft if isinstance(self.draft, NewEntryDraft) else None

    @property
    def edit_draft(self) -> Optional[EditDraft]:
        return self.draft if isinstance(self.draft, EditDraft) else None

    def set_status(self, text: str, severity: Severity = Severity.INFO) -> None:
        self.status = StatusMessage(text, severity, self.now)

    def clear_status(self) -> None:
        self.status = None

    def clamp_selection(self) -> None:
        if not self.entries:
            self.selected_index = 0
        else:
            self.selected_index = max(0, min(self.selected_index, len(self.entries) - 1))


def new_model(today: dt.date, now: dt.datetime, *, user: Optional[User] = None,
              recents: Sequence[RecentSelection] = (), timings: Optional[Timings] = None) -> Model:
    return Model(
        current_date=today,
        today=today,
        now=now,
        user=user,
        recents=list(recents),
        timings=timings or Timings(),
    )


__all__ = [
    "Draft",
    "EditDraft",
    "Model",
    "NewEntryDraft",
    "Picker",
    "Severity",
    "StatusMessage",
    "TextField",
    "Timings",
    "ViewState",
    "new_model",
]
