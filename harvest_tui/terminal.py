"""Full-screen prompt_toolkit front end."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

from prompt_toolkit import Application
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.styles import Style

from .log import get_logger
from .messages import KeyPress
from .render import Screen, render
from .runtime import Program

logger = get_logger(__name__)

Fragments = List[Tuple[str, str]]

STYLE = Style.from_dict({
    "title": "bold #f36c00",
    "date": "#f36c00",
    "breadcrumb": "bold",
    "heading": "bold underline",
    "total": "bold #f36c00",
    "context": "italic #8a8a8a",
    "selected": "reverse",
    "running": "bold #f36c00",
    "locked": "#6c6c6c",
    "note": "italic #8a8a8a",
    "divider": "#4e4e4e",
    "recent": "#5f87af",
    "field.label": "bold",
    "field.focused": "reverse",
    "field.placeholder": "#6c6c6c",
    "banner": "bold #ffffff bg:#af0000",
    "status.success": "#5faf5f",
    "status.info": "#5f87af",
    "status.warning": "#d7af00",
    "status.error": "bold #d70000",
    "footer.key": "bold",
    "footer": "#8a8a8a",
})

# prompt_toolkit key names mapped onto the engine's key vocabulary
KEY_NAMES = {
    Keys.ControlM: "enter",
    Keys.ControlJ: "enter",
    Keys.ControlI: "tab",
    Keys.BackTab: "s-tab",
    Keys.ControlH: "backspace",
    Keys.Escape: "escape",
    Keys.Up: "up",
    Keys.Down: "down",
    Keys.Left: "left",
    Keys.Right: "right",
    Keys.ControlC: "c-c",
    Keys.ControlS: "c-s",
    Keys.ControlU: "c-u",
    Keys.ControlB: "c-b",
}


def translate_key(key: str, data: str = "") -> Optional[str]:
    if key in KEY_NAMES:
        return KEY_NAMES[key]
    if key == Keys.Any or len(key) != 1:
        return data if len(data) == 1 and data.isprintable() else None
    return key


# ----------------------------------------------------------------------
# Painting
# ----------------------------------------------------------------------
def screen_fragments(screen: Screen) -> Fragments:
    out: Fragments = [
        ("class:title", f" {screen.title} "),
        ("", "  "),
        ("class:date", screen.date_label),
        ("", "\n"),
    ]
    if screen.breadcrumb:
        out += [("class:breadcrumb", " " + " > ".join(screen.breadcrumb)), ("", "\n")]
    for banner in screen.banners:
        out += [("class:banner", f" {banner.text} "), ("", "\n")]
    out.append(("", "\n"))

    if screen.heading:
        out.append(("class:heading", f" {screen.heading}"))
        if screen.total:
            out += [("", "   "), ("class:total", f"Total: {screen.total}")]
        out.append(("", "\n\n"))
    for line in screen.context:
        out += [("class:context", f" {line}"), ("", "\n")]
    if screen.context:
        out.append(("", "\n"))

    for line in screen.lines:
        out += _line_fragments(line)
    if screen.fields:
        out.append(("", "\n"))
    for field in screen.fields:
        out += _field_fragments(field)

    out.append(("", "\n"))
    if screen.status is not None:
        out += [(f"class:status.{screen.status.severity.value}", f" {screen.status.text}"), ("", "\n")]
    else:
        out.append(("", "\n"))
    for hint in screen.footer:
        out += [("class:footer.key", f" {hint.key}"), ("class:footer", f" {hint.label} ")]
    return out


def _line_fragments(line) -> Fragments:
    if line.kind == "divider":
        return [("class:divider", " " + "─" * 40), ("", "\n")]
    if line.kind == "heading":
        return [("class:heading", f" {line.text}"), ("", "\n")]
    if line.kind == "empty":
        return [("class:context", f" {line.text}"), ("", "\n")]

    style = "class:note" if line.kind == "note" else ""
    if line.locked:
        style = "class:locked"
    if line.running:
        style = "class:running"
    marker = "▸ " if line.selected and line.kind == "row" else "  "
    text = f"{marker}{line.text}"
    if line.running:
        text += "  ●"
    if line.locked:
        text += "  [locked]"
    out: Fragments = [(f"{style} class:selected" if line.selected and line.kind == "row" else style, text)]
    if line.detail:
        detail_style = "class:recent" if line.recent else "class:total"
        out += [("", "  "), (detail_style, line.detail)]
    out.append(("", "\n"))
    return out


def _field_fragments(field) -> Fragments:
    value_style = "class:field.focused" if field.focused else ""
    value = field.value
    if not value and field.placeholder:
        value_style += " class:field.placeholder"
        value = field.placeholder
    out: Fragments = [("class:field.label", f" {field.label}: "), (value_style, value or " ")]
    if field.focused:
        out.append(("", "_"))
    if field.hint:
        out.append(("class:context", f"  ({field.hint})"))
    out.append(("", "\n"))
    return out


# ----------------------------------------------------------------------
# Application
# ----------------------------------------------------------------------
def call_soon_if_open(loop: asyncio.AbstractEventLoop, callback) -> bool:
    """Schedule *callback* from a worker thread unless the UI loop is already gone."""

    if loop.is_closed():
        return False
    try:
        loop.call_soon_threadsafe(callback)
    except RuntimeError:
        # closed between the check and the call
        logger.debug("Dropping wake-up for a closed event loop")
        return False
    return True


# ----------------------------------------------------------------------
class TerminalApp:
    """Paint :class:`Screen` objects and feed key presses into a :class:`Program`."""

    def __init__(self, program: Program) -> None:
        self.program = program
        self.control = FormattedTextControl(text=self._fragments, focusable=True)
        self.application: Application = Application(
            layout=Layout(HSplit([Window(self.control, wrap_lines=True)])),
            key_bindings=self._key_bindings(),
            full_screen=True,
            style=STYLE,
        )

    def _fragments(self) -> Fragments:
        return screen_fragments(render(self.program.model))

    def _key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        def handle(event) -> None:
            key = translate_key(event.key_sequence[0].key, event.data)
            if key is None:
                return
            self.program.send(KeyPress(key))
            self._sync()

        for name in KEY_NAMES:
            kb.add(name, eager=True)(handle)
        kb.add(Keys.Any)(handle)
        return kb

    def _sync(self) -> None:
        self.program.pump()
        if self.program.finished:
            if self.application.is_running:
                self.application.exit()
            return
        self.application.invalidate()

    def _start(self) -> None:
        loop = asyncio.get_running_loop()
        self.program.notify = lambda: call_soon_if_open(loop, self._sync)
        self.program.start()

    def run(self) -> Optional[str]:
        """Run until the user quits; returns the farewell line, if any."""

        try:
            self.application.run(pre_run=self._start)
        finally:
            self.program.notify = None
            self.program.shutdown()
        return self.program.farewell


__all__ = ["KEY_NAMES", "STYLE", "TerminalApp", "call_soon_if_open", "screen_fragments", "translate_key"]
