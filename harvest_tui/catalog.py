"""Project/task catalog and the project selection list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .schemas import Project, ProjectWithTasks, Task, TaskAssignment
from .state import RecentSelection

ARROW = "→"


@dataclass(frozen=True, slots=True)
class ProjectRow:
    entry: ProjectWithTasks
    recent_task_id: Optional[int] = None

    selectable = True

    @property
    def label(self) -> str:
        return f"{self.entry.client.name} {ARROW} {self.entry.project.name}"

    @property
    def filter_value(self) -> str:
        return f"{self.entry.project.name} {self.entry.client.name}"

    @property
    def is_recent(self) -> bool:
        return self.recent_task_id is not None


@dataclass(frozen=True, slots=True)
class DividerRow:
    selectable = False
    label = ""
    filter_value = ""


@dataclass(frozen=True, slots=True)
class TaskRow:
    task: Task

    selectable = True

    @property
    def label(self) -> str:
        return self.task.name

    @property
    def filter_value(self) -> str:
        return self.task.name


Row = Union[ProjectRow, DividerRow, TaskRow]


def _sort_key(entry: ProjectWithTasks) -> tuple[str, str]:
    return (entry.project.client.name, entry.project.name)


def aggregate_projects_with_tasks(projects: Iterable[Project],
                                  assignments: Iterable[TaskAssignment]) -> List[ProjectWithTasks]:
    """Pair projects with their active task assignments.

    Projects without any assigned task are dropped; the result is ordered by client name,
    then project name.
    """

    tasks_by_project: Dict[int, List[Task]] = {}
    for assignment in assignments:
        if not assignment.is_active:
            continue
        tasks = tasks_by_project.setdefault(assignment.project.id, [])
        if all(task.id != assignment.task.id for task in tasks):
            tasks.append(assignment.task)

    catalog = [
        ProjectWithTasks(project=project, tasks=tasks_by_project[project.id])
        for project in projects
        if tasks_by_project.get(project.id)
    ]
    return sorted(catalog, key=_sort_key)


def find_project(catalog: Sequence[ProjectWithTasks], project_id: int,
                 client_id: Optional[int] = None) -> Optional[ProjectWithTasks]:
    for entry in catalog:
        if entry.project.id != project_id:
            continue
        if client_id is not None and entry.client.id != client_id:
            continue
        return entry
    return None


def build_project_rows(catalog: Sequence[ProjectWithTasks],
                       recents: Sequence[RecentSelection]) -> List[Row]:
    """Recent projects first, then a divider, then the full catalog alphabetically.

    A project referenced by a recent selection shows up twice on purpose so the lower
    section stays a complete list. Recents pointing at projects that no longer exist
    are skipped.
    """

    rows: List[Row] = []
    for recent in recents:
        match = find_project(catalog, recent.project_id, recent.client_id)
        if match is not None:
            rows.append(ProjectRow(entry=match, recent_task_id=recent.task_id))
    if rows:
        rows.append(DividerRow())
    rows.extend(ProjectRow(entry=entry) for entry in sorted(catalog, key=_sort_key))
    return rows


def build_task_rows(entry: ProjectWithTasks) -> List[Row]:
    return [TaskRow(task=task) for task in entry.tasks]


__all__ = [
    "DividerRow",
    "ProjectRow",
    "Row",
    "TaskRow",
    "aggregate_projects_with_tasks",
    "build_project_rows",
    "build_task_rows",
    "find_project",
]
