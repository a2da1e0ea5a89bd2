from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from modal_library.adapters.textual import TextualLibraryAdapter, TextualUIHooks, translate_key
from modal_library.library import LibraryItem, SessionMirror, SortKey
from modal_library.modes import KeyInput, create_manager
from modal_library.modes.mode_manager import ModeManager
from modal_library.runtime import EngineConfig


class NullClipboard:
    def copy(self, text: str) -> None:
        del text

    def paste(self) -> Optional[str]:
        return None


def make_manager() -> ModeManager:
    items = [LibraryItem.new(title) for title in ("Dune", "Emma", "Ulysses")]
    return create_manager(
        items=items, config=EngineConfig(), clipboard=NullClipboard(), sort_key=SortKey.ADDED
    )


def test_adapter_updates_view_and_status() -> None:
    manager = make_manager()
    views: List[SessionMirror] = []
    statuses: List[str] = []
    hooks = TextualUIHooks(
        update_view=views.append,
        update_status=statuses.append,
    )
    adapter = TextualLibraryAdapter(manager, hooks)

    adapter.handle_textual_key("j")
    adapter.handle_textual_key("s")

    assert views[-1].cursor == 1
    assert views[-1].rows == ("Dune", "Emma", "Ulysses")
    assert views[-1].mode == "normal"
    assert statuses[-1] == manager.context.session.status_message


def test_adapter_relays_command_events() -> None:
    manager = make_manager()
    command_lines: List[str] = []
    events: List[tuple[str, object | None]] = []
    hooks = TextualUIHooks(
        update_view=lambda mirror: None,
        show_command=command_lines.append,
        handle_event=lambda name, payload: events.append((name, payload)),
    )
    adapter = TextualLibraryAdapter(manager, hooks)

    adapter.handle_textual_key(":", text=":")
    adapter.handle_textual_key("w", text="w")
    assert command_lines[-1] == ":w"
    adapter.handle_textual_key("ENTER")

    assert command_lines[-1] == ""
    assert ("command.submit", "w") in events
    written = next(payload for name, payload in events if name == "command.write")
    assert isinstance(written, dict)
    assert written["items"] == 3
    assert adapter.should_quit is False


def test_adapter_reports_quit() -> None:
    manager = make_manager()
    adapter = TextualLibraryAdapter(manager, TextualUIHooks(update_view=lambda mirror: None))

    for key in (":", "q"):
        adapter.handle_textual_key(key, text=key)
    adapter.handle_textual_key("ENTER")

    assert adapter.should_quit is True


def test_adapter_surfaces_visual_selection_events() -> None:
    manager = make_manager()
    events: List[Dict[str, Any]] = []
    hooks = TextualUIHooks(
        update_view=lambda mirror: None,
        handle_event=lambda name, payload: events.append({"name": name, "payload": payload}),
    )
    adapter = TextualLibraryAdapter(manager, hooks)

    adapter.handle_textual_key("v", text="v")
    adapter.handle_textual_key("j", text="j")

    visual_payloads = [event for event in events if event["name"] == "visual.selection"]
    assert visual_payloads
    assert visual_payloads[-1]["payload"]["selected"] == [0, 1]


def test_adapter_passes_modifiers() -> None:
    manager = make_manager()
    adapter = TextualLibraryAdapter(manager, TextualUIHooks(update_view=lambda mirror: None))

    adapter.handle_textual_key("G")
    adapter.handle_textual_key("o", modifiers=("ctrl",))

    assert manager.context.session.cursor == 0


def test_adapter_emits_log_lines() -> None:
    manager = make_manager()
    logs: List[str] = []
    hooks = TextualUIHooks(update_view=lambda mirror: None, log=logs.append)
    adapter = TextualLibraryAdapter(manager, hooks)

    adapter.handle_textual_key("j")

    assert any(line.startswith("key ->") for line in logs)
    assert any(line.startswith("result <-") for line in logs)


@pytest.mark.parametrize(
    ("key", "character", "expected"),
    [
        ("escape", None, KeyInput(key="ESC")),
        ("enter", None, KeyInput(key="ENTER")),
        ("shift+tab", None, KeyInput(key="BACKTAB")),
        ("space", " ", KeyInput(key=" ", text=" ")),
        ("ctrl+r", None, KeyInput(key="r", modifiers=("CTRL",))),
        ("G", "G", KeyInput(key="G", text="G")),
        ("ctrl+pageup", None, None),
        ("f5", None, None),
    ],
)
def test_translate_key(key: str, character: Optional[str], expected: Optional[KeyInput]) -> None:
    assert translate_key(key, character) == expected


def test_adapter_drops_untranslatable_events() -> None:
    manager = make_manager()
    logs: List[str] = []
    adapter = TextualLibraryAdapter(
        manager, TextualUIHooks(update_view=lambda mirror: None, log=logs.append)
    )

    assert adapter.handle_textual_event("f5") is None
    result = adapter.handle_textual_event("j", "j")

    assert result is not None and result.consumed
    assert manager.context.session.cursor == 1
    assert any(line.startswith("key -x") for line in logs)
