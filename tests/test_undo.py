from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from modal_library.library import (
    DeleteItems,
    InMemoryItemStore,
    LibraryItem,
    LibrarySession,
    MultipleItems,
    StoreError,
    UndoTimeline,
    UpsertItems,
    apply_action,
)
from modal_library.library.registers import RegisterBank
from modal_library.library.session import SortKey
from modal_library.modes import KeyInput, create_manager
from modal_library.modes.mode_manager import ModeManager
from modal_library.runtime import EngineConfig


class FlakyStore(InMemoryItemStore):
    """Refuses to delete or upsert the ids listed in ``broken``."""

    def __init__(self, items: List[LibraryItem], broken: set[str]) -> None:
        self.broken: set[str] = set()
        super().__init__(items)
        self.broken = broken

    def upsert(self, item: LibraryItem) -> None:
        if item.id in self.broken:
            raise StoreError("disk full", item_id=item.id)
        super().upsert(item)

    def delete(self, item_id: str) -> None:
        if item_id in self.broken:
            raise StoreError("locked", item_id=item_id)
        super().delete(item_id)


class NullClipboard:
    def copy(self, text: str) -> None:
        del text

    def paste(self) -> Optional[str]:
        return None


def make_items(*titles: str) -> List[LibraryItem]:
    return [LibraryItem.new(title, authors=("Someone",)) for title in titles]


def make_session(store: InMemoryItemStore) -> LibrarySession:
    return LibrarySession(
        store,
        config=EngineConfig(),
        registers=RegisterBank(clipboard=NullClipboard()),
        sort_key=SortKey.ADDED,
    )


def test_delete_inverse_restores_exact_items() -> None:
    items = make_items("Dune", "Emma")
    store = InMemoryItemStore(items)

    result = apply_action(store, DeleteItems((items[0],)))

    assert store.list() == [items[1]]
    assert result.inverse == UpsertItems((items[0],))
    apply_action(store, result.inverse)
    assert store.list() == items


def test_upsert_inverse_restores_prior_version() -> None:
    original = make_items("Dune")[0]
    store = InMemoryItemStore([original])
    edited = original.edited(title="Dune Messiah")

    result = apply_action(store, UpsertItems((edited,)))

    assert store.load_by_id(original.id) == edited
    assert result.inverse == UpsertItems((original,))
    apply_action(store, result.inverse)
    assert store.load_by_id(original.id) == original


def test_upsert_of_new_item_inverts_to_delete() -> None:
    store = InMemoryItemStore(make_items("Dune"))
    created = LibraryItem.new("Emma")

    result = apply_action(store, UpsertItems((created,)))

    assert result.inverse == DeleteItems((created,))
    apply_action(store, result.inverse)
    assert store.load_by_id(created.id) is None


def test_push_then_undo_round_trips_store() -> None:
    items = make_items("A", "B", "C")
    store = InMemoryItemStore(items)
    session = make_session(store)
    before = store.list()

    session.delete_indices([0, 2])
    session.add_tag([0], "kept")
    assert session.undo(2) == 2

    assert store.list() == before


def test_restored_items_keep_their_position() -> None:
    items = make_items("A", "B", "C")
    session = make_session(InMemoryItemStore(items))

    session.delete_indices([1])
    session.undo()

    assert [item.title for item in session.items] == ["A", "B", "C"]


def test_redo_cleared_by_new_mutation() -> None:
    session = make_session(InMemoryItemStore(make_items("A", "B")))

    session.delete_indices([0])
    session.undo()
    assert session.history.can_redo()

    session.add_tag([0], "fresh")

    assert not session.history.can_redo()
    assert session.redo() == 0
    assert session.status_message == "Already at newest change"


def test_undo_redo_messages() -> None:
    session = make_session(InMemoryItemStore(make_items("A")))

    assert session.undo() == 0
    assert session.status_message == "Already at oldest change"

    session.rename(0, "B")
    session.undo()
    assert session.status_message == 'Undo: Rename "A"'
    assert session.items[0].title == "A"

    session.redo()
    assert session.status_message == 'Redo: Rename "A"'
    assert session.items[0].title == "B"


def test_partial_failure_reports_counts_and_keeps_completed_items() -> None:
    items = make_items("A", "B", "C", "D", "E")
    store = FlakyStore(items, broken={items[2].id})
    session = make_session(store)

    session.delete_indices(range(5))

    assert session.status_message == "Deleted 4/5 items (1 failed)"
    assert [item.title for item in session.items] == ["C"]

    session.undo()
    assert [item.title for item in session.items] == ["A", "B", "C", "D", "E"]


def test_failed_batch_pushes_nothing() -> None:
    items = make_items("A")
    store = FlakyStore(items, broken={items[0].id})
    session = make_session(store)

    session.delete_indices([0])

    assert len(session.history) == 0
    assert session.status_message == "Deleted 0/1 item (1 failed)"


def test_timeline_stamps_inverse_with_fresh_time() -> None:
    now = [datetime(2024, 1, 1, tzinfo=timezone.utc)]
    timeline = UndoTimeline(clock=lambda: now[0])
    item = LibraryItem.new("Dune")
    store = InMemoryItemStore([item])

    timeline.push("Delete", apply_action(store, DeleteItems((item,))).inverse)
    now[0] += timedelta(minutes=5)
    outcome = timeline.undo(store)

    assert outcome is not None
    redo_entry = timeline.peek_redo()
    assert redo_entry is not None
    assert redo_entry.timestamp == now[0]
    assert redo_entry.description == "Delete"
    assert redo_entry.action == DeleteItems((item,))


class UnreadableStore(InMemoryItemStore):
    """Fails to load the ids listed in ``unreadable``."""

    def __init__(self, items: List[LibraryItem], unreadable: set[str]) -> None:
        super().__init__(items)
        self.unreadable = unreadable

    def load_by_id(self, item_id: str) -> Optional[LibraryItem]:
        if item_id in self.unreadable:
            raise StoreError("io error", item_id=item_id)
        return super().load_by_id(item_id)


def make_manager(store: InMemoryItemStore) -> ModeManager:
    return create_manager(
        store, config=EngineConfig(), clipboard=NullClipboard(), sort_key=SortKey.ADDED
    )


def press(manager: ModeManager, *tokens: str) -> None:
    for token in tokens:
        manager.handle_key(KeyInput.parse(token))


def test_session_keeps_injected_empty_timeline() -> None:
    timeline = UndoTimeline()
    session = LibrarySession(
        InMemoryItemStore(make_items("Dune")),
        config=EngineConfig(),
        registers=RegisterBank(clipboard=NullClipboard()),
        history=timeline,
    )

    assert session.history is timeline


def test_yank_counts_items_the_store_cannot_read() -> None:
    items = make_items("A", "B", "C")
    manager = make_manager(UnreadableStore(items, unreadable={items[1].id}))
    session = manager.context.session

    press(manager, "3", "y", "y")

    assert session.status_message == "Yanked 2/3 items (1 failed)"
    register = session.registers.get()
    assert register is not None
    assert isinstance(register.content, MultipleItems)
    assert [item.title for item in register.content.items] == ["A", "C"]


def test_yank_with_no_readable_items_leaves_register_alone() -> None:
    items = make_items("A")
    manager = make_manager(UnreadableStore(items, unreadable={items[0].id}))
    session = manager.context.session

    press(manager, "y", "y")

    assert session.status_message == "Yanked 0/1 item (1 failed)"
    assert session.registers.get() is None


def test_delete_skips_items_the_store_cannot_read() -> None:
    items = make_items("A", "B", "C")
    manager = make_manager(UnreadableStore(items, unreadable={items[1].id}))
    session = manager.context.session

    press(manager, "3", "d", "d")

    assert session.status_message == "Deleted 2/3 items (1 failed)"
    assert [item.title for item in session.items] == ["B"]

    session.undo()
    assert [item.title for item in session.items] == ["A", "B", "C"]


def test_delete_with_no_readable_items_pushes_nothing() -> None:
    items = make_items("A")
    manager = make_manager(UnreadableStore(items, unreadable={items[0].id}))
    session = manager.context.session

    press(manager, "d", "d")

    assert session.status_message == "Deleted 0/1 item (1 failed)"
    assert len(session.history) == 0
    assert [item.title for item in session.items] == ["A"]
