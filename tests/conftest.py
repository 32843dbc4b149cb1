from __future__ import annotations

import datetime as dt
import json
from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests

from harvest_tui.api_client import HarvestClient
from harvest_tui.engine import init, update
from harvest_tui.messages import CatalogFetched, EntriesFetched, KeyPress
from harvest_tui.models import Model, ViewState, new_model
from harvest_tui.schemas import Client, NamedRef, Project, ProjectWithTasks, Task, TimeEntry, User

SAMPLE_DAY = dt.date(2024, 3, 15)  # a Friday
SAMPLE_NOW = dt.datetime(2024, 3, 15, 9, 0)


def build_entry(entry_id: int = 1, *, hours: float = 1.5, notes: str = "", running: bool = False,
                locked: bool = False, billable: bool = True, spent_date: dt.date = SAMPLE_DAY,
                client: Tuple[int, str] = (10, "Acme"), project: Tuple[int, str] = (100, "Website"),
                task: Tuple[int, str] = (1000, "Design")) -> TimeEntry:
    return TimeEntry(
        id=entry_id,
        spent_date=spent_date,
        hours=hours,
        notes=notes,
        is_running=running,
        is_locked=locked,
        is_billable=billable,
        client=Client(id=client[0], name=client[1]),
        project=NamedRef(id=project[0], name=project[1]),
        task=Task(id=task[0], name=task[1]),
    )


def build_project(project_id: int, name: str, client_id: int, client_name: str,
                  tasks: List[Tuple[int, str]]) -> ProjectWithTasks:
    return ProjectWithTasks(
        project=Project(id=project_id, name=name, client=Client(id=client_id, name=client_name)),
        tasks=[Task(id=task_id, name=task_name) for task_id, task_name in tasks],
    )


@pytest.fixture
def sample_day() -> dt.date:
    return SAMPLE_DAY


@pytest.fixture
def sample_now() -> dt.datetime:
    return SAMPLE_NOW


@pytest.fixture
def make_entry():
    return build_entry


@pytest.fixture
def make_project():
    return build_project


@pytest.fixture
def catalog() -> List[ProjectWithTasks]:
    return [
        build_project(100, "Website", 10, "Acme", [(1000, "Design"), (1001, "Development")]),
        build_project(200, "Support", 20, "Globex", [(2000, "Maintenance")]),
    ]


@pytest.fixture
def user() -> User:
    return User(id=7, first_name="Ada", last_name="Lovelace", email="ada@example.com")


@pytest.fixture
def fresh_model(user: User) -> Model:
    model, _ = init(new_model(SAMPLE_DAY, SAMPLE_NOW, user=user))
    return model


@pytest.fixture
def loaded_model(fresh_model: Model, catalog: List[ProjectWithTasks]) -> Model:
    entries = [
        build_entry(1, hours=1.5, notes="Kickoff"),
        build_entry(2, hours=0.25, task=(1001, "Development")),
        build_entry(3, hours=2.0, client=(20, "Globex"), project=(200, "Support"), task=(2000, "Maintenance")),
    ]
    model, _ = update(fresh_model, EntriesFetched(day=SAMPLE_DAY, entries=entries), now=SAMPLE_NOW)
    model, _ = update(model, CatalogFetched(catalog=catalog), now=SAMPLE_NOW)
    assert model.view is ViewState.LIST
    return model


@pytest.fixture
def press():
    """Feed key presses through the engine, collecting every issued command."""

    def _press(model: Model, *keys: str, now: dt.datetime = SAMPLE_NOW):
        commands: list = []
        for key in keys:
            model, issued = update(model, KeyPress(key), now=now)
            commands.extend(issued)
        return model, commands

    return _press


@pytest.fixture
def type_text(press):
    def _type(model: Model, text: str):
        return press(model, *list(text))

    return _type


# ----------------------------------------------------------------------
# Fake HTTP session
# ----------------------------------------------------------------------
def make_response(status: int = 200, payload: Any = None, *, headers: Optional[Dict[str, str]] = None,
                  body: Optional[bytes] = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if body is not None:
        response._content = body
    elif payload is not None:
        response._content = json.dumps(payload).encode("utf-8")
    else:
        response._content = b""
    response.headers.update(headers or {})
    response.encoding = "utf-8"
    return response


class FakeSession:
    """Stands in for :class:`requests.Session`; replies from a queue and records calls."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected request {method} {url}")
        reply = self.responses.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def harvest_client(fake_session: FakeSession) -> HarvestClient:
    return HarvestClient("123456", "secret-token", session=fake_session)


@pytest.fixture
def entry_payload():
    def _payload(entry_id: int = 1, **overrides: Any) -> Dict[str, Any]:
        data = {
            "id": entry_id,
            "spent_date": SAMPLE_DAY.isoformat(),
            "hours": 1.5,
            "notes": "Kickoff",
            "is_running": False,
            "is_locked": False,
            "billable": True,
            "client": {"id": 10, "name": "Acme"},
            "project": {"id": 100, "name": "Website"},
            "task": {"id": 1000, "name": "Design"},
        }
        data.update(overrides)
        return data

    return _payload


@pytest.fixture
def respond():
    return make_response
