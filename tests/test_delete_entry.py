from __future__ import annotations

from harvest_tui.api_client import RemoteRejected
from harvest_tui.commands import DeleteEntry, UpdateEntry
from harvest_tui.engine import update
from harvest_tui.messages import EntryDeleted
from harvest_tui.models import Severity, ViewState


def test_delete_asks_for_confirmation(loaded_model, press):
    model, commands = press(loaded_model, "d")
    assert model.view is ViewState.CONFIRM_DELETE
    assert model.pending_delete.id == 1
    assert commands == []


def test_cancel_and_escape_return_to_list(loaded_model, press):
    for key in ("n", "escape"):
        model, commands = press(loaded_model, "d", key)
        assert model.view is ViewState.LIST
        assert model.pending_delete is None
        assert not any(isinstance(command, DeleteEntry) for command in commands)


def test_confirm_issues_delete_once(loaded_model, press):
    model, commands = press(loaded_model, "d", "y", "y")
    assert [command for command in commands if isinstance(command, DeleteEntry)] == [DeleteEntry(entry_id=1)]
    assert model.busy


def test_delete_success_removes_entry(loaded_model, press):
    model, _ = press(loaded_model, "d", "y")
    model, _ = update(model, EntryDeleted(entry_id=1))

    assert [entry.id for entry in model.entries] == [2, 3]
    assert model.view is ViewState.LIST
    assert model.pending_delete is None
    assert model.status.text == "Time entry deleted successfully"
    assert model.status.severity is Severity.SUCCESS


def test_deleting_last_row_moves_selection_up(loaded_model, press):
    model, _ = press(loaded_model, "j", "j", "d", "y")
    model, _ = update(model, EntryDeleted(entry_id=3))
    assert model.selected_index == 1


def test_deleting_only_entry_leaves_index_zero(loaded_model, press, make_entry):
    loaded_model.entries = [make_entry(1)]
    model, _ = press(loaded_model, "d", "y")
    model, _ = update(model, EntryDeleted(entry_id=1))
    assert model.entries == []
    assert model.selected_index == 0


def test_delete_failure_keeps_confirmation(loaded_model, press):
    model, _ = press(loaded_model, "d", "y")
    model, _ = update(model, EntryDeleted(entry_id=1, error=RemoteRejected("Rejected (422): locked")))

    assert model.view is ViewState.CONFIRM_DELETE
    assert model.pending_delete.id == 1
    assert len(model.entries) == 3
    assert model.status.text == "Failed to delete entry: Rejected (422): locked"
    assert not model.busy


def test_late_delete_keeps_the_flow_started_meanwhile(loaded_model, press):
    model, _ = press(loaded_model, "d", "y", "escape", "j", "e")
    assert model.view is ViewState.EDIT_ENTRY
    assert model.edit_draft.entry.id == 2

    model, _ = update(model, EntryDeleted(entry_id=1))

    assert model.view is ViewState.EDIT_ENTRY
    assert model.edit_draft.entry.id == 2
    assert [entry.id for entry in model.entries] == [2, 3]
    assert model.selected_entry.id == 2
    assert model.status.text == "Time entry deleted successfully"
    assert not model.busy


def test_late_delete_drops_an_edit_of_the_deleted_entry(loaded_model, press):
    model, _ = press(loaded_model, "d", "y", "escape", "e")
    assert model.edit_draft.entry.id == 1

    model, _ = update(model, EntryDeleted(entry_id=1))

    assert model.view is ViewState.LIST
    assert model.draft is None


def test_save_while_delete_in_flight_is_refused_with_status(loaded_model, press):
    model, commands = press(loaded_model, "d", "y", "escape", "j", "e", "c-s")

    assert not any(isinstance(command, UpdateEntry) for command in commands)
    assert model.view is ViewState.EDIT_ENTRY
    assert model.status.text == "Still saving the previous change, try again in a moment"
    assert model.status.severity is Severity.WARNING

    model, _ = update(model, EntryDeleted(entry_id=1))
    model, commands = press(model, "c-s")
    assert [command.entry_id for command in commands if isinstance(command, UpdateEntry)] == [2]
