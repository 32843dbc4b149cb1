from __future__ import annotations

import json
from pathlib import Path
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .log import get_logger

MAX_RECENTS = 3

logger = get_logger(__name__)


class StateError(RuntimeError):
    """The recents file could not be read or written."""


class RecentSelection(BaseModel):
    """A (client, project, task) combination the user booked time on."""

    model_config = ConfigDict(frozen=True)
    client_id: int
    project_id: int
    task_id: int


class _StateFile(BaseModel):
    recents: List[RecentSelection] = Field(default_factory=list)


def add_recent(recents: Sequence[RecentSelection], selection: RecentSelection) -> List[RecentSelection]:
    """Return ``recents`` with ``selection`` moved to the front, deduplicated and capped."""

    remaining = [recent for recent in recents if recent != selection]
    return [selection, *remaining][:MAX_RECENTS]


class RecentsStore:
    """JSON file holding the most recently used selections."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> List[RecentSelection]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            state = _StateFile.model_validate(raw or {})
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise StateError(f"could not read state file {self.path}: {exc}") from exc
        return state.recents[:MAX_RECENTS]

    def save(self, recents: Sequence[RecentSelection]) -> None:
        state = _StateFile(recents=list(recents))
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        except OSError as exc:
            raise StateError(f"could not write state file {self.path}: {exc}") from exc
        logger.debug("Saved %d recent selection(s) to %s", len(state.recents), self.path)


__all__ = ["MAX_RECENTS", "RecentSelection", "RecentsStore", "StateError", "add_recent"]
