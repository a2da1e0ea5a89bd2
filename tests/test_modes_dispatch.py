from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from modal_library.library import LibraryItem, SingleItem, SortKey
from modal_library.modes import EditorMode, KeyInput, ModeResult, create_manager
from modal_library.modes.mode_manager import ModeManager
from modal_library.runtime import EngineConfig


class FakeClipboard:
    def __init__(self) -> None:
        self.text: Optional[str] = None

    def copy(self, text: str) -> None:
        self.text = text

    def paste(self) -> Optional[str]:
        return self.text


def make_manager(
    count: int = 10, *, titles: Sequence[str] = (), items: Sequence[LibraryItem] = ()
) -> ModeManager:
    if not items:
        names = titles or [f"Item {index}" for index in range(count)]
        items = [LibraryItem.new(name) for name in names]
    return create_manager(
        items=items,
        config=EngineConfig(),
        clipboard=FakeClipboard(),
        sort_key=SortKey.ADDED,
    )


def press(manager: ModeManager, *tokens: str) -> Optional[ModeResult]:
    result = None
    for token in tokens:
        result = manager.handle_key(KeyInput.parse(token))
    return result


def titles(manager: ModeManager) -> List[str]:
    return [item.title for item in manager.context.session.items]


def test_digits_accumulate_into_count() -> None:
    manager = make_manager(60)

    press(manager, "5", "2")
    assert manager.context.state.count == 52

    press(manager, "j")
    assert manager.context.session.cursor == 52
    assert manager.context.state.count == 0


def test_count_is_capped() -> None:
    manager = make_manager()

    press(manager, *"9999999")

    assert manager.context.state.count == 9999


def test_zero_is_a_motion_until_count_started() -> None:
    manager = make_manager(20)
    press(manager, "5", "j")

    press(manager, "0")
    assert manager.context.session.cursor == 0

    press(manager, "1", "0", "j")
    assert manager.context.session.cursor == 10


def test_sequence_state_resets_after_inapplicable_key() -> None:
    manager = make_manager()

    press(manager, "5", "Z")
    state = manager.context.state
    assert state.count == 0
    assert state.pending_operator is None

    press(manager, "j")
    assert manager.context.session.cursor == 1


def test_escape_cancels_pending_operator() -> None:
    manager = make_manager()

    press(manager, "3", "d")
    assert manager.mode is EditorMode.PENDING
    assert manager.mirror().pending == "3d"

    press(manager, "ESC")
    assert manager.mode is EditorMode.NORMAL
    assert manager.context.state.pending_operator is None
    assert len(titles(manager)) == 10


def test_dd_deletes_current_item() -> None:
    manager = make_manager(5)
    press(manager, "j")

    press(manager, "d", "d")

    assert titles(manager) == ["Item 0", "Item 2", "Item 3", "Item 4"]
    assert manager.context.session.status_message == "Deleted 1 item"
    register = manager.context.registers.get()
    assert register is not None
    assert isinstance(register.content, SingleItem)
    assert register.content.item.title == "Item 1"


def test_counted_linewise_operator() -> None:
    manager = make_manager(5)

    press(manager, "3", "d", "d")

    assert titles(manager) == ["Item 3", "Item 4"]
    assert len(manager.context.session.history) == 1


def test_operator_with_counted_motion() -> None:
    manager = make_manager(6)

    press(manager, "d", "3", "j")

    assert titles(manager) == ["Item 4", "Item 5"]
    assert manager.mode is EditorMode.NORMAL


def test_operator_without_target_reports_status() -> None:
    manager = make_manager(3)

    press(manager, "d", "f", "z")

    assert len(titles(manager)) == 3
    assert manager.context.session.status_message == "No target for motion"
    assert manager.mode is EditorMode.NORMAL


def test_text_object_deletes_all_items_by_author() -> None:
    items = [
        LibraryItem.new("Dune", authors=("Herbert",)),
        LibraryItem.new("Emma", authors=("Austen",)),
        LibraryItem.new("Children of Dune", authors=("Herbert",)),
    ]
    manager = make_manager(items=items)

    press(manager, "d", "a", "a")

    assert titles(manager) == ["Emma"]


def test_named_register_paste_and_undo() -> None:
    manager = make_manager(titles=["Dune", "Emma", "Ulysses"])
    session = manager.context.session

    press(manager, '"', "b", "y", "y")
    register = manager.context.registers.get("b")
    assert register is not None and register.content.summary() == "Dune"
    assert len(session.history) == 0

    press(manager, '"', '"', "p")
    assert titles(manager) == ["Dune", "Emma", "Ulysses", "Dune (copy)"]
    assert session.current_item is not None
    assert session.current_item.title == "Dune (copy)"

    press(manager, "u")
    assert titles(manager) == ["Dune", "Emma", "Ulysses"]


def test_paste_of_multiple_items_has_no_suffix() -> None:
    manager = make_manager(titles=["A", "B", "C"])

    press(manager, "y", "j", "G", "p")

    assert titles(manager) == ["A", "B", "C", "A", "B"]
    assert manager.context.session.status_message == "Pasted 2 items"


def test_marks_and_jumps() -> None:
    manager = make_manager(20)
    session = manager.context.session

    press(manager, "3", "j", "m", "a", "G")
    assert session.cursor == 19

    press(manager, "'", "a")
    assert session.cursor == 3

    press(manager, "ctrl+o")
    assert session.cursor == 19

    press(manager, "'", "b")
    assert session.status_message == "No mark 'b'"
    assert session.cursor == 19


def test_find_motion_and_repeat() -> None:
    manager = make_manager(titles=["Alpha", "Beta", "Gamma", "Bravo", "Delta"])
    session = manager.context.session

    press(manager, "f", "b")
    assert session.cursor == 1

    press(manager, ";")
    assert session.cursor == 3

    press(manager, ",")
    assert session.cursor == 1


def test_undo_with_count_and_redo() -> None:
    manager = make_manager(5)

    press(manager, "d", "d", "d", "d", "d", "d")
    assert len(titles(manager)) == 2

    press(manager, "2", "u")
    assert len(titles(manager)) == 4

    press(manager, "ctrl+r")
    assert len(titles(manager)) == 3


def test_cycle_status_is_undoable() -> None:
    manager = make_manager(2)
    session = manager.context.session

    press(manager, "s")
    assert session.items[0].read_status.value == "reading"

    press(manager, "u")
    assert session.items[0].read_status.value == "unread"


def test_insert_mode_creates_item() -> None:
    manager = make_manager(2)
    session = manager.context.session

    press(manager, "i")
    assert manager.mode is EditorMode.INSERT
    press(manager, *"New Book")
    press(manager, "ENTER")

    assert manager.mode is EditorMode.NORMAL
    assert titles(manager)[-1] == "New Book"
    assert session.current_item is not None and session.current_item.title == "New Book"
    assert len(session.history) == 1


def test_change_operator_renames_item() -> None:
    manager = make_manager(titles=["Dune", "Emma"])

    press(manager, "c", "c")
    assert manager.mode is EditorMode.INSERT
    assert manager.context.session.status_message == "-- INSERT -- Dune"

    press(manager, *" Messiah")
    press(manager, "ENTER")
    assert titles(manager) == ["Dune Messiah", "Emma"]

    press(manager, "u")
    assert titles(manager) == ["Dune", "Emma"]


def test_insert_escape_discards_text() -> None:
    manager = make_manager(2)

    press(manager, "a", "x", "y", "ESC")

    assert len(titles(manager)) == 2
    assert manager.mode is EditorMode.NORMAL


def test_tag_operator_prompts_on_command_line() -> None:
    manager = make_manager(3)

    press(manager, ">", ">")
    assert manager.mode is EditorMode.COMMAND
    assert manager.mirror().command == ":tag "

    press(manager, *"todo")
    press(manager, "ENTER")

    session = manager.context.session
    assert session.items[0].tags == ("todo",)
    assert session.items[1].tags == ()
    assert manager.mode is EditorMode.NORMAL


def test_search_mode_filters_live_and_restores_on_escape() -> None:
    manager = make_manager(titles=["Dune", "Neuromancer", "Children of Dune"])

    press(manager, "/", *"dune")
    assert manager.mode is EditorMode.SEARCH
    assert titles(manager) == ["Dune", "Children of Dune"]
    assert manager.mirror().command == "/dune"

    press(manager, "ESC")
    assert titles(manager) == ["Dune", "Neuromancer", "Children of Dune"]
    assert manager.mode is EditorMode.NORMAL


def test_search_accept_then_next_match() -> None:
    manager = make_manager(titles=["Dune", "Neuromancer", "Children of Dune"])
    session = manager.context.session

    press(manager, "/", *"dune")
    press(manager, "ENTER")
    assert manager.context.state.last_search == "dune"
    assert titles(manager) == ["Dune", "Children of Dune"]

    press(manager, "n")
    assert session.cursor == 1
    assert session.status_message == "/dune [2/2]"


def test_author_search_wraps() -> None:
    items = [
        LibraryItem.new("Dune", authors=("Frank Herbert",)),
        LibraryItem.new("Emma", authors=("Jane Austen",)),
        LibraryItem.new("Children of Dune", authors=("Frank Herbert",)),
    ]
    manager = make_manager(items=items)
    session = manager.context.session

    press(manager, "*")
    assert session.cursor == 2

    press(manager, "n")
    assert session.cursor == 0


def test_panel_focus_and_sidebar_filter() -> None:
    items = [
        LibraryItem.new("Dune", libraries=("Fiction",)),
        LibraryItem.new("SICP", libraries=("Programming",)),
    ]
    manager = make_manager(items=items)
    session = manager.context.session

    press(manager, "h")
    assert session.active_panel.value == "sidebar"

    press(manager, "j", "ENTER")
    assert session.active_panel.value == "list"
    assert titles(manager) == ["Dune"]

    press(manager, "g", "r")
    assert len(titles(manager)) == 2


def test_operators_ignored_outside_list_panel() -> None:
    manager = make_manager(3)

    press(manager, "l", "d", "d")

    assert len(titles(manager)) == 3
    assert manager.mode is EditorMode.NORMAL


def test_label_jump() -> None:
    manager = make_manager(10)

    press(manager, "space", "j")
    assert manager.context.state.hints["a"] == 1
    assert manager.context.state.hints["s"] == 2

    press(manager, "s")
    assert manager.context.session.cursor == 2
    assert manager.context.state.hints == {}


def test_mirror_reports_pending_register() -> None:
    manager = make_manager(3)

    press(manager, '"', "a")
    mirror = manager.mirror()

    assert mirror.mode == "pending"
    assert mirror.pending == '"a'


def test_cursor_follows_edited_item_under_recency_sort() -> None:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    items = [
        replace(LibraryItem.new(name), updated_at=base - timedelta(days=offset))
        for offset, name in enumerate("ABCDE")
    ]
    manager = create_manager(items=items, config=EngineConfig(), clipboard=FakeClipboard())
    session = manager.context.session

    press(manager, "3", "j")
    target = session.current_item
    assert target is not None and target.title == "D"

    press(manager, "s")
    assert titles(manager)[0] == "D"
    assert session.current_item is not None and session.current_item.id == target.id

    press(manager, "s")
    assert session.current_item.id == target.id
    assert session.store.load_by_id(target.id).read_status == target.read_status.next().next()

    session.add_tag([session.cursor], "kept")
    assert session.current_item.id == target.id
