from __future__ import annotations

from typing import List, Optional

from modal_library.library import LibraryItem, SortKey
from modal_library.modes import EditorMode, KeyInput, VisualSelection, create_manager
from modal_library.modes.mode_manager import ModeManager
from modal_library.runtime import EngineConfig


class NullClipboard:
    def copy(self, text: str) -> None:
        del text

    def paste(self) -> Optional[str]:
        return None


def make_manager(count: int = 10) -> ModeManager:
    items = [LibraryItem.new(f"Item {index}", year=2000 + index) for index in range(count)]
    return create_manager(
        items=items, config=EngineConfig(), clipboard=NullClipboard(), sort_key=SortKey.ADDED
    )


def press(manager: ModeManager, *tokens: str) -> None:
    for token in tokens:
        manager.handle_key(KeyInput.parse(token))


def selected(manager: ModeManager) -> List[int]:
    return manager.context.selection.selected()


def test_contiguous_selection_follows_cursor() -> None:
    manager = make_manager()

    press(manager, "3", "j", "v", "4", "j")
    assert manager.mode is EditorMode.VISUAL
    assert selected(manager) == [3, 4, 5, 6, 7]

    press(manager, "o", "2", "k")
    assert manager.context.session.cursor == 1
    assert selected(manager) == [1, 2, 3, 4, 5, 6, 7]


def test_swap_keeps_selection() -> None:
    manager = make_manager()

    press(manager, "v", "2", "j", "o")

    assert manager.context.session.cursor == 0
    assert selected(manager) == [0, 1, 2]


def test_escape_records_last_range_for_marks() -> None:
    manager = make_manager()

    press(manager, "2", "j", "V", "3", "j", "ESC")
    assert manager.mode is EditorMode.NORMAL
    assert manager.context.selection.last_range == (2, 5)

    press(manager, "g", "g", "'", ">")
    assert manager.context.session.cursor == 5
    press(manager, "'", "<")
    assert manager.context.session.cursor == 2


def test_same_variant_key_exits_and_other_variant_switches() -> None:
    manager = make_manager()

    press(manager, "v", "j", "V")
    assert manager.mode is EditorMode.VISUAL_LINE
    assert selected(manager) == [0, 1]

    press(manager, "ctrl+v")
    assert manager.mode is EditorMode.VISUAL_BLOCK
    press(manager, "ctrl+v")
    assert manager.mode is EditorMode.NORMAL
    assert manager.context.selection.last_range == (0, 1)


def test_toggle_builds_scattered_set_without_updating_last_range() -> None:
    manager = make_manager()

    press(manager, "v", "j", "space", "space")
    assert selected(manager) == [0, 2]
    assert manager.context.session.cursor == 3

    press(manager, "ESC")
    assert manager.context.selection.last_range is None


def test_motion_after_toggle_collapses_to_range() -> None:
    selection = VisualSelection()
    selection.enter(EditorMode.VISUAL, 4)
    selection.toggle(10)

    selection.move_to(7)

    assert selection.selected() == [4, 5, 6, 7]


def test_reselect_restores_last_range() -> None:
    manager = make_manager()

    press(manager, "v", "2", "j", "ESC", "G", "g", "v")

    assert manager.mode is EditorMode.VISUAL
    assert selected(manager) == [0, 1, 2]


def test_visual_delete_undo_redo_scenario() -> None:
    manager = make_manager(3)
    session = manager.context.session
    originals = list(session.items)

    press(manager, "V", "G", "d")
    assert session.items == []
    assert session.status_message == "Deleted 3 items"
    assert manager.mode is EditorMode.NORMAL

    press(manager, "u")
    assert session.items == originals

    press(manager, "ctrl+r")
    assert session.items == []


def test_visual_operator_uses_scattered_set() -> None:
    manager = make_manager(5)

    press(manager, "v", "space", "space", "space", "y")

    register = manager.context.registers.get()
    assert register is not None
    assert [item.title for item in register.items] == ["Item 1", "Item 2"]


def test_select_all_then_yank() -> None:
    manager = make_manager(4)

    press(manager, "v", "ctrl+a", "y")

    register = manager.context.registers.get()
    assert register is not None
    assert len(register.items) == 4
    assert manager.context.session.status_message == "Yanked 4 items"


def test_visual_command_line_targets_selection() -> None:
    manager = make_manager(4)

    press(manager, "j", "v", "j", ":")
    assert manager.mode is EditorMode.COMMAND
    press(manager, *"tag fav", "ENTER")

    tags = [item.tags for item in manager.context.session.items]
    assert tags == [(), ("fav",), ("fav",), ()]
