from __future__ import annotations

import json
from pathlib import Path

import pytest

from harvest_tui.state import MAX_RECENTS, RecentSelection, RecentsStore, StateError, add_recent


def _sel(client_id: int, project_id: int, task_id: int) -> RecentSelection:
    return RecentSelection(client_id=client_id, project_id=project_id, task_id=task_id)


def test_add_recent_to_empty_list():
    assert add_recent([], _sel(123, 456, 789)) == [_sel(123, 456, 789)]


def test_add_recent_moves_duplicate_to_front():
    recents = [_sel(1, 1, 1), _sel(2, 2, 2), _sel(3, 3, 3)]
    result = add_recent(recents, _sel(2, 2, 2))
    assert result == [_sel(2, 2, 2), _sel(1, 1, 1), _sel(3, 3, 3)]
    assert result.count(_sel(2, 2, 2)) == 1


def test_add_recent_drops_oldest_when_full():
    recents = [_sel(1, 1, 1), _sel(2, 2, 2), _sel(3, 3, 3)]
    result = add_recent(recents, _sel(4, 4, 4))
    assert len(result) == MAX_RECENTS
    assert result[0] == _sel(4, 4, 4)
    assert _sel(3, 3, 3) not in result


def test_add_recent_leaves_input_untouched():
    recents = [_sel(1, 1, 1)]
    add_recent(recents, _sel(2, 2, 2))
    assert recents == [_sel(1, 1, 1)]


def test_store_missing_file_is_empty(tmp_path: Path):
    assert RecentsStore(tmp_path / "state.json").load() == []


def test_store_round_trip_uses_recents_layout(tmp_path: Path):
    path = tmp_path / "nested" / "state.json"
    store = RecentsStore(path)
    store.save([_sel(10, 100, 1000), _sel(20, 200, 2000)])

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw == {"recents": [
        {"client_id": 10, "project_id": 100, "task_id": 1000},
        {"client_id": 20, "project_id": 200, "task_id": 2000},
    ]}
    assert store.load() == [_sel(10, 100, 1000), _sel(20, 200, 2000)]


def test_store_corrupt_file_raises(tmp_path: Path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StateError):
        RecentsStore(path).load()


def test_store_wrong_shape_raises(tmp_path: Path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"recents": [{"client_id": "x"}]}), encoding="utf-8")
    with pytest.raises(StateError):
        RecentsStore(path).load()


def test_store_save_failure_raises(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(StateError):
        RecentsStore(blocker / "state.json").save([_sel(1, 1, 1)])
