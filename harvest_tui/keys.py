"""Key bindings.

Keys are plain strings: printable characters stand for themselves, named keys use the
lowercase names below (``up``, ``enter``, ``escape``, ``tab``, ``s-tab``, ``backspace``,
``c-c`` for ctrl+c, ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(frozen=True, slots=True)
class Binding:
    keys: Tuple[str, ...]
    help_key: str
    help_text: str

    def matches(self, key: str) -> bool:
        return key in self.keys


def _bind(keys: Tuple[str, ...], help_key: str, help_text: str) -> Binding:
    return Binding(keys=keys, help_key=help_key, help_text=help_text)


@dataclass(frozen=True, slots=True)
class KeyMap:
    # global
    force_quit: Binding = field(default_factory=lambda: _bind(("c-c",), "Ctrl+C", "Force quit"))
    quit: Binding = field(default_factory=lambda: _bind(("q",), "q", "Quit"))
    help: Binding = field(default_factory=lambda: _bind(("?",), "?", "Toggle this help"))
    back: Binding = field(default_factory=lambda: _bind(("escape",), "esc", "Go back / cancel"))

    # list navigation
    up: Binding = field(default_factory=lambda: _bind(("up", "k"), "↑/k", "Move up"))
    down: Binding = field(default_factory=lambda: _bind(("down", "j"), "↓/j", "Move down"))
    prev_day: Binding = field(default_factory=lambda: _bind(("left", "h"), "←/h", "Previous day"))
    next_day: Binding = field(default_factory=lambda: _bind(("right", "l"), "→/l", "Next day"))
    today: Binding = field(default_factory=lambda: _bind(("t",), "t", "Jump to today"))
    refresh: Binding = field(default_factory=lambda: _bind(("r",), "r", "Refresh entries"))

    # entry actions
    new: Binding = field(default_factory=lambda: _bind(("n",), "n", "New entry"))
    new_form: Binding = field(default_factory=lambda: _bind(("N",), "N", "New entry (single form)"))
    edit: Binding = field(default_factory=lambda: _bind(("e",), "e", "Edit entry"))
    delete: Binding = field(default_factory=lambda: _bind(("d",), "d", "Delete entry"))
    start_stop: Binding = field(default_factory=lambda: _bind(("s",), "s", "Start/stop timer"))

    # selection, forms, confirmation
    select: Binding = field(default_factory=lambda: _bind(("enter",), "enter", "Select"))
    filter: Binding = field(default_factory=lambda: _bind(("/",), "/", "Filter"))
    next_field: Binding = field(default_factory=lambda: _bind(("tab",), "tab", "Next field"))
    prev_field: Binding = field(default_factory=lambda: _bind(("s-tab",), "shift+tab", "Previous field"))
    save: Binding = field(default_factory=lambda: _bind(("c-s",), "ctrl+s", "Save"))
    toggle_billable: Binding = field(default_factory=lambda: _bind((" ", "tab", "b"), "space", "Toggle billable"))
    form_billable: Binding = field(default_factory=lambda: _bind(("c-b",), "ctrl+b", "Toggle billable"))
    confirm: Binding = field(default_factory=lambda: _bind(("y",), "y", "Confirm"))
    cancel: Binding = field(default_factory=lambda: _bind(("n",), "n", "Cancel"))
    backspace: Binding = field(default_factory=lambda: _bind(("backspace",), "backspace", "Delete character"))
    clear: Binding = field(default_factory=lambda: _bind(("c-u",), "ctrl+u", "Clear field"))

    def help_sections(self) -> List[Tuple[str, List[Binding]]]:
        return [
            ("Navigation", [self.up, self.down, self.prev_day, self.next_day, self.today, self.refresh]),
            ("Time Entry Actions", [self.new, self.new_form, self.edit, self.delete, self.start_stop]),
            ("General", [self.help, self.back, self.quit, self.force_quit]),
        ]


DEFAULT_KEYMAP = KeyMap()


def is_printable(key: str) -> bool:
    return len(key) == 1 and key.isprintable()


__all__ = ["Binding", "DEFAULT_KEYMAP", "KeyMap", "is_printable"]
