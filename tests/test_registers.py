from __future__ import annotations

from typing import Optional

import pytest

from modal_library.library import (
    ClipboardError,
    LibraryItem,
    MultipleItems,
    Path,
    RegisterBank,
    SingleItem,
    SortKey,
    SystemClipboard,
    Text,
)
from modal_library.modes import KeyInput, create_manager
from modal_library.modes.mode_manager import ModeManager
from modal_library.runtime import EngineConfig


class FakeClipboard:
    def __init__(self, text: Optional[str] = None, *, broken: bool = False) -> None:
        self.text = text
        self.broken = broken

    def copy(self, text: str) -> None:
        if self.broken:
            raise ClipboardError("no display")
        self.text = text

    def paste(self) -> Optional[str]:
        return self.text


def make_manager(clipboard: FakeClipboard, *titles: str) -> ModeManager:
    items = [
        LibraryItem.new(title, path=f"/books/{title.lower()}.pdf") for title in titles or ("Dune", "Emma")
    ]
    return create_manager(
        items=items, config=EngineConfig(), clipboard=clipboard, sort_key=SortKey.ADDED
    )


def press(manager: ModeManager, *tokens: str) -> None:
    for token in tokens:
        manager.handle_key(KeyInput.parse(token))


def test_writes_mirror_into_unnamed_register() -> None:
    bank = RegisterBank(clipboard=FakeClipboard())
    item = LibraryItem.new("Dune")

    bank.set("a", SingleItem(item))

    unnamed = bank.get()
    assert unnamed is not None
    assert unnamed.content == SingleItem(item)
    assert bank.names() == ['"', "a"]


def test_uppercase_register_appends() -> None:
    bank = RegisterBank(clipboard=FakeClipboard())
    first, second = LibraryItem.new("Dune"), LibraryItem.new("Emma")

    bank.set("a", SingleItem(first))
    register = bank.set("A", SingleItem(second))

    assert register.append is True
    assert bank.get("a") == register
    assert register.content == MultipleItems((first, second))


def test_uppercase_text_register_joins_lines() -> None:
    bank = RegisterBank(clipboard=FakeClipboard())

    bank.set("t", Text("Dune"))
    bank.set("T", Text("Emma"))

    register = bank.get("t")
    assert register is not None
    assert register.content == Text("Dune\nEmma")


@pytest.mark.parametrize("name", ["a", "Z", '"', "+", "*"])
def test_valid_register_names(name: str) -> None:
    assert RegisterBank.is_valid_name(name)


@pytest.mark.parametrize("name", ["1", "ab", "-", ""])
def test_invalid_register_names(name: str) -> None:
    assert not RegisterBank.is_valid_name(name)


def test_clipboard_register_pushes_titles() -> None:
    clipboard = FakeClipboard()
    manager = make_manager(clipboard, "Dune", "Emma", "Ulysses")

    press(manager, '"', "+", "y", "j")

    assert clipboard.text == "Dune\nEmma"
    register = manager.context.registers.get("+")
    assert register is not None
    assert len(register.items) == 2


def test_clipboard_failure_does_not_abort_yank() -> None:
    manager = make_manager(FakeClipboard(broken=True))

    press(manager, '"', "+", "y", "y")

    session = manager.context.session
    assert session.status_message.startswith('Yanked "Dune"')
    assert "clipboard unavailable" in session.status_message
    assert manager.context.registers.get() is not None


def test_clipboard_paste_is_display_only() -> None:
    manager = make_manager(FakeClipboard("hello from elsewhere"))
    session = manager.context.session

    press(manager, '"', "+", "p")

    assert session.status_message == "Pasted from clipboard: hello from elsewhere"
    assert len(session.items) == 2
    assert len(session.history) == 0


def test_empty_clipboard_falls_back_to_register() -> None:
    clipboard = FakeClipboard()
    manager = make_manager(clipboard)
    session = manager.context.session

    press(manager, '"', "+", "y", "y")
    clipboard.text = None
    press(manager, '"', "+", "p")

    assert [item.title for item in session.items] == ["Dune", "Emma", "Dune (copy)"]


def test_paste_from_empty_register() -> None:
    manager = make_manager(FakeClipboard())

    press(manager, '"', "q", "p")

    assert manager.context.session.status_message == "Register q is empty"


def test_yank_path_and_title() -> None:
    manager = make_manager(FakeClipboard())
    registers = manager.context.registers

    press(manager, "Y")
    register = registers.get()
    assert register is not None and register.content == Path("/books/dune.pdf")

    press(manager, '"', "t", "g", "y")
    register = registers.get("t")
    assert register is not None and register.content == Text("Dune")

    press(manager, "p")
    assert manager.context.session.status_message == "Register \": Dune"
    assert len(manager.context.session.items) == 2


def test_delete_writes_register() -> None:
    manager = make_manager(FakeClipboard())

    press(manager, '"', "x", "d", "d")

    register = manager.context.registers.get("x")
    assert register is not None
    assert register.content.summary() == "Dune"


def test_disabled_system_clipboard() -> None:
    clipboard = SystemClipboard(enabled=False)

    assert clipboard.paste() is None
    with pytest.raises(ClipboardError):
        clipboard.copy("text")
