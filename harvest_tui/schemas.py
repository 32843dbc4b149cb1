"""Wire types for the Harvest API v2."""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NamedRef(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")
    id: int
    name: str = ""


class Client(NamedRef):
    pass


class Task(NamedRef):
    pass


class User(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")
    id: int
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Project(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")
    id: int
    name: str
    client: Client


class TaskAssignment(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")
    id: int
    project: NamedRef
    task: Task
    is_active: bool = True
    billable: Optional[bool] = None


class TimeEntry(BaseModel):
    """A single remote time entry as cached by the engine."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)
    id: int
    spent_date: dt.date
    hours: float = Field(default=0.0, ge=0)
    notes: str = ""
    is_running: bool = False
    is_locked: bool = False
    is_billable: bool = Field(default=True, alias="billable")
    client: Client
    project: NamedRef
    task: Task

    @field_validator("notes", mode="before")
    @classmethod
    def _none_notes(cls, value: Optional[str]) -> str:
        return value or ""

    @field_validator("hours", mode="before")
    @classmethod
    def _none_hours(cls, value: Optional[float]) -> float:
        return 0.0 if value is None else value


class ProjectWithTasks(BaseModel):
    """A project together with the tasks the user may book on it."""

    model_config = ConfigDict(frozen=True)
    project: Project
    tasks: List[Task]

    @property
    def client(self) -> Client:
        return self.project.client

    def find_task(self, task_id: int) -> Optional[Task]:
        return next((task for task in self.tasks if task.id == task_id), None)


# ----------------------------------------------------------------------
# Paginated envelopes
# ----------------------------------------------------------------------
class Page(BaseModel):
    model_config = ConfigDict(extra="ignore")
    page: int = 1
    total_pages: int = 1
    next_page: Optional[int] = None


class ProjectsPage(Page):
    projects: List[Project] = Field(default_factory=list)


class TaskAssignmentsPage(Page):
    task_assignments: List[TaskAssignment] = Field(default_factory=list)


class TimeEntriesPage(Page):
    time_entries: List[TimeEntry] = Field(default_factory=list)


# ----------------------------------------------------------------------
# Request payloads
# ----------------------------------------------------------------------
class CreateTimeEntryRequest(BaseModel):
    project_id: int
    task_id: int
    spent_date: dt.date
    hours: float = Field(ge=0)
    notes: str = ""
    billable: Optional[bool] = None

    def payload(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class UpdateTimeEntryRequest(BaseModel):
    """Partial update; fields left as ``None`` are not sent."""

    project_id: Optional[int] = None
    task_id: Optional[int] = None
    spent_date: Optional[dt.date] = None
    hours: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    billable: Optional[bool] = None

    def payload(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


__all__ = [
    "Client",
    "CreateTimeEntryRequest",
    "NamedRef",
    "Page",
    "Project",
    "ProjectWithTasks",
    "ProjectsPage",
    "Task",
    "TaskAssignment",
    "TaskAssignmentsPage",
    "TimeEntriesPage",
    "TimeEntry",
    "UpdateTimeEntryRequest",
    "User",
]
