from __future__ import annotations

import asyncio

from prompt_toolkit.keys import Keys

from harvest_tui.render import render
from harvest_tui.terminal import call_soon_if_open, screen_fragments, translate_key


def test_translate_named_keys():
    assert translate_key(Keys.ControlM) == "enter"
    assert translate_key(Keys.ControlI) == "tab"
    assert translate_key(Keys.BackTab) == "s-tab"
    assert translate_key(Keys.ControlH) == "backspace"
    assert translate_key(Keys.Escape) == "escape"
    assert translate_key(Keys.ControlC) == "c-c"
    assert translate_key(Keys.Up) == "up"


def test_translate_characters():
    assert translate_key("q") == "q"
    assert translate_key("N") == "N"
    assert translate_key(Keys.Any, "x") == "x"
    assert translate_key(Keys.F1, "\x1bOP") is None


def test_fragments_contain_screen_text(loaded_model):
    text = "".join(fragment for _, fragment in screen_fragments(render(loaded_model)))
    assert "Harvest Time Tracker" in text
    assert "Today's Entries" in text
    assert "Acme → Website → Design" in text
    assert "Total: 3:45" in text


def test_wake_up_is_dropped_once_loop_is_closed():
    loop = asyncio.new_event_loop()
    calls = []
    assert call_soon_if_open(loop, lambda: calls.append(1))
    loop.run_until_complete(asyncio.sleep(0))
    loop.close()

    assert not call_soon_if_open(loop, lambda: calls.append(2))
    assert calls == [1]
