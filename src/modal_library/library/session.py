"""Library session façade combining the store, list view, registers and undo."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ContextManager, Dict, Hashable, List, Optional, Sequence, Tuple

from modal_library.keymaps.models import ListView, Panel
from modal_library.runtime import telemetry
from modal_library.runtime.config import EngineConfig

from .item import LibraryItem
from .navigation import JumpList, Marks
from .registers import (
    UNNAMED,
    ClipboardError,
    MultipleItems,
    Path,
    RegisterBank,
    SingleItem,
    SystemClipboard,
    Text,
    content_for,
)
from .search import SearchFn, default_search, matches_term
from .store import ItemStore, StoreError
from .undo import (
    Action,
    ActionResult,
    DeleteItems,
    UndoTimeline,
    UpsertItems,
    apply_action,
)


class SortKey(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    TITLE = "title"
    YEAR = "year"
    YEAR_ASC = "year_asc"
    RATING = "rating"
    FRECENCY = "frecency"


_SORTERS: Dict[SortKey, Tuple[Callable[[LibraryItem], object], bool]] = {
    SortKey.ADDED: (lambda item: 0, False),
    SortKey.UPDATED: (lambda item: item.updated_at, True),
    SortKey.TITLE: (lambda item: item.title.lower(), False),
    SortKey.YEAR: (lambda item: item.year or 0, True),
    SortKey.YEAR_ASC: (lambda item: item.year or 0, False),
    SortKey.RATING: (lambda item: item.rating or 0, True),
    SortKey.FRECENCY: (lambda item: item.frecency, True),
}


@dataclass(frozen=True, slots=True)
class SidebarEntry:
    kind: str = "all"
    value: Optional[str] = None

    @property
    def label(self) -> str:
        if self.kind == "all":
            return "All"
        return f"{self.kind}:{self.value}"


ALL_ITEMS = SidebarEntry()


def _plural(count: int) -> str:
    return "item" if count == 1 else "items"


def count_message(verb: str, applied: int, failed: int) -> str:
    """``Deleted 3 items`` or ``Deleted 4/5 items (1 failed)``."""

    if not failed:
        return f"{verb} {applied} {_plural(applied)}"
    total = applied + failed
    return f"{verb} {applied}/{total} {_plural(total)} ({failed} failed)"


def batch_message(verb: str, result: ActionResult) -> str:
    return count_message(verb, result.applied, len(result.failed))


class LibrarySession:
    """Owns the visible item list, cursors and every mutation path.

    All structural changes go through :meth:`commit`, which applies an action
    to the store and records its inverse on the undo stack.
    """

    def __init__(
        self,
        store: ItemStore,
        *,
        config: Optional[EngineConfig] = None,
        registers: Optional[RegisterBank] = None,
        history: Optional[UndoTimeline] = None,
        search: Optional[SearchFn] = None,
        sort_key: SortKey = SortKey.UPDATED,
        name: str = "library",
    ) -> None:
        self.name = name
        self.store = store
        self.config = config if config is not None else EngineConfig.from_env()
        if registers is None:
            registers = RegisterBank(clipboard=SystemClipboard(enabled=self.config.clipboard))
        self.registers = registers
        self.history = history if history is not None else UndoTimeline()
        self.search = search if search is not None else default_search
        self.marks = Marks()
        self.jumps = JumpList(limit=self.config.jump_limit)
        self.items: List[LibraryItem] = []
        self.all_items: List[LibraryItem] = []
        self.cursor = 0
        self.viewport_offset = 0
        self.sidebar_index = 0
        self.preview_scroll = 0
        self.active_panel = Panel.LIST
        self.filter = ALL_ITEMS
        self.sort_key = sort_key
        self.search_query: Optional[str] = None
        self.last_jump: Optional[int] = None
        self.status_message = ""
        self.should_quit = False
        self.refresh()

    # -- list state -------------------------------------------------------

    def refresh(self) -> None:
        self.all_items = self.store.list()
        if self.filter.kind == "library":
            items = self.store.list(library=self.filter.value)
        elif self.filter.kind == "tag":
            items = self.store.list(tag=self.filter.value)
        else:
            items = list(self.all_items)
        key, reverse = _SORTERS[self.sort_key]
        items.sort(key=key, reverse=reverse)  # type: ignore[arg-type]
        if self.search_query:
            items = self.search(self.search_query, items)
        self.items = items
        self.cursor = max(0, min(self.cursor, len(self.items) - 1))
        self.sidebar_index = max(0, min(self.sidebar_index, len(self.sidebar_entries) - 1))
        self.ensure_visible()

    @property
    def current_item(self) -> Optional[LibraryItem]:
        if not self.items:
            return None
        return self.items[self.cursor]

    def item_at(self, index: int) -> Optional[LibraryItem]:
        if 0 <= index < len(self.items):
            return self.items[index]
        return None

    def items_at(self, indices: Sequence[int]) -> List[LibraryItem]:
        seen = set()
        picked = []
        for index in sorted(indices):
            if index in seen:
                continue
            seen.add(index)
            item = self.item_at(index)
            if item is not None:
                picked.append(item)
        return picked

    def index_of(self, item_id: str) -> Optional[int]:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        return None

    def group_key(self, item: LibraryItem) -> Hashable:
        if self.sort_key is SortKey.TITLE:
            return item.title[:1].upper()
        if self.sort_key in (SortKey.YEAR, SortKey.YEAR_ASC):
            return item.year
        if self.sort_key is SortKey.RATING:
            return item.rating
        return item.read_status.value

    @property
    def sidebar_entries(self) -> List[SidebarEntry]:
        libraries = sorted({lib for item in self.all_items for lib in item.libraries})
        tags = sorted({tag for item in self.all_items for tag in item.tags})
        return (
            [ALL_ITEMS]
            + [SidebarEntry("library", name) for name in libraries]
            + [SidebarEntry("tag", name) for name in tags]
        )

    def preview_lines(self) -> List[str]:
        item = self.current_item
        if item is None:
            return []
        lines = [item.title]
        if item.authors:
            lines.append("by " + ", ".join(item.authors))
        if item.year is not None:
            lines.append(f"year: {item.year}")
        lines.append(f"status: {item.read_status.value}")
        if item.rating is not None:
            lines.append(f"rating: {item.rating}/5")
        if item.tags:
            lines.append("tags: " + ", ".join(item.tags))
        if item.libraries:
            lines.append("libraries: " + ", ".join(item.libraries))
        if item.path:
            lines.append(f"file: {item.path}")
        return lines

    def view(self, panel: Optional[Panel] = None) -> ListView:
        panel = panel or self.active_panel
        height = self.config.visible_height
        if panel is Panel.SIDEBAR:
            entries = self.sidebar_entries
            return ListView(
                length=len(entries),
                visible_height=height,
                labels=tuple(entry.label for entry in entries),
                group_keys=tuple(entry.kind for entry in entries),
            )
        if panel is Panel.PREVIEW:
            return ListView(length=len(self.preview_lines()), visible_height=height)
        return ListView(
            length=len(self.items),
            viewport_offset=self.viewport_offset,
            visible_height=height,
            labels=tuple(item.title for item in self.items),
            group_keys=tuple(self.group_key(item) for item in self.items),
        )

    # -- cursor & viewport -------------------------------------------------

    @property
    def position(self) -> int:
        if self.active_panel is Panel.SIDEBAR:
            return self.sidebar_index
        if self.active_panel is Panel.PREVIEW:
            return self.preview_scroll
        return self.cursor

    def move_to(self, index: int) -> None:
        if self.active_panel is Panel.SIDEBAR:
            self.sidebar_index = index
        elif self.active_panel is Panel.PREVIEW:
            self.preview_scroll = index
        else:
            self.set_cursor(index)

    def set_cursor(self, index: int) -> None:
        if not self.items:
            self.cursor = 0
            return
        previous = self.cursor
        self.cursor = max(0, min(index, len(self.items) - 1))
        if self.cursor != previous:
            self.preview_scroll = 0
        self.ensure_visible()

    def ensure_visible(self) -> None:
        height = self.config.visible_height
        if self.cursor < self.viewport_offset:
            self.viewport_offset = self.cursor
        elif self.cursor >= self.viewport_offset + height:
            self.viewport_offset = self.cursor - height + 1
        self.viewport_offset = max(0, self.viewport_offset)

    def scroll_viewport(self, lines: int) -> None:
        height = self.config.visible_height
        top = max(0, len(self.items) - height)
        self.viewport_offset = max(0, min(self.viewport_offset + lines, top))
        low = self.viewport_offset
        high = max(low, min(low + height - 1, len(self.items) - 1))
        self.cursor = max(low, min(self.cursor, high)) if self.items else 0

    def align_viewport(self, where: str) -> None:
        height = self.config.visible_height
        if where == "top":
            self.viewport_offset = self.cursor
        elif where == "bottom":
            self.viewport_offset = max(0, self.cursor - height + 1)
        else:
            self.viewport_offset = max(0, self.cursor - height // 2)

    def focus(self, panel: Panel) -> None:
        self.active_panel = panel

    # -- jumps & marks -----------------------------------------------------

    def record_jump(self) -> None:
        self.jumps.push(self.cursor)
        self.last_jump = self.cursor

    def jump_back(self) -> bool:
        target = self.jumps.back(self.cursor)
        if target is None:
            self.status_message = "Jump list is empty"
            return False
        self.set_cursor(target)
        return True

    def jump_forward(self) -> bool:
        target = self.jumps.forward(self.cursor)
        if target is None:
            self.status_message = "Already at newest jump"
            return False
        self.set_cursor(target)
        return True

    def jump_last(self) -> bool:
        if self.last_jump is None:
            self.status_message = "No previous jump"
            return False
        target = self.last_jump
        self.last_jump = self.cursor
        self.set_cursor(target)
        return True

    def set_mark(self, letter: str) -> None:
        self.marks.set(letter, self.cursor)
        self.status_message = f"Mark '{letter}' set"

    def jump_to_mark(self, letter: str) -> bool:
        index = self.marks.get(letter)
        if index is None:
            self.status_message = f"No mark '{letter}'"
            return False
        if index >= len(self.items):
            self.status_message = f"Mark '{letter}' out of range"
            return False
        self.record_jump()
        self.set_cursor(index)
        return True

    # -- mutations ---------------------------------------------------------

    def commit(self, description: str, action: Action) -> ActionResult:
        with Transaction(self, description) as tx:
            result = tx.apply(action)
        self.refresh()
        return result

    def _write_register(self, register: Optional[str], items: Sequence[LibraryItem]) -> None:
        name = register or UNNAMED
        self.registers.set(name, content_for(tuple(items)))
        if self.registers.is_clipboard(name):
            text = "\n".join(item.title for item in items)
            try:
                self.registers.clipboard_set(text)
            except ClipboardError as exc:
                telemetry.record_failure("registers.clipboard_set", exc)
                self.status_message += f" (clipboard unavailable: {exc})"

    def _load_current(
        self, items: Sequence[LibraryItem]
    ) -> Tuple[List[LibraryItem], List[str]]:
        """Re-read ``items`` from the store; ids that fail to load are returned apart."""

        loaded: List[LibraryItem] = []
        failed: List[str] = []
        for item in items:
            try:
                stored = self.store.load_by_id(item.id)
            except StoreError as exc:
                telemetry.record_failure("session.load", exc, data={"item": item.id})
                failed.append(item.id)
                continue
            loaded.append(stored or item)
        return loaded, failed

    def yank_indices(self, indices: Sequence[int], register: Optional[str] = None) -> int:
        targets = self.items_at(indices)
        if not targets:
            self.status_message = "Nothing to yank"
            return 0
        items, failed = self._load_current(targets)
        if failed:
            self.status_message = count_message("Yanked", len(items), len(failed))
            if items:
                self._write_register(register, items)
            return len(items)
        if len(items) == 1:
            self.status_message = f'Yanked "{items[0].title}"'
        else:
            self.status_message = f"Yanked {len(items)} items"
        self._write_register(register, items)
        return len(items)

    def yank_path(self, index: int, register: Optional[str] = None) -> bool:
        item = self.item_at(index)
        if item is None or not item.path:
            self.status_message = "No file path"
            return False
        self._write_text_register(register, Path(item.path), item.path)
        self.status_message = f"Yanked path: {item.path}"
        return True

    def yank_title(self, index: int, register: Optional[str] = None) -> bool:
        item = self.item_at(index)
        if item is None:
            self.status_message = "Nothing to yank"
            return False
        self._write_text_register(register, Text(item.title), item.title)
        self.status_message = f"Yanked title: {item.title}"
        return True

    def _write_text_register(
        self, register: Optional[str], content: Text | Path, text: str
    ) -> None:
        name = register or UNNAMED
        self.registers.set(name, content)
        if self.registers.is_clipboard(name):
            try:
                self.registers.clipboard_set(text)
            except ClipboardError as exc:
                telemetry.record_failure("registers.clipboard_set", exc)

    def delete_indices(
        self, indices: Sequence[int], register: Optional[str] = None
    ) -> Optional[ActionResult]:
        items = self.items_at(indices)
        if not items:
            self.status_message = "Nothing to delete"
            return None
        snapshot, unreadable = self._load_current(items)
        if not snapshot:
            self.status_message = count_message("Deleted", 0, len(unreadable))
            return None
        description = (
            f'Delete "{snapshot[0].title}"'
            if len(snapshot) == 1
            else f"Delete {len(snapshot)} items"
        )
        result = self.commit(description, DeleteItems(tuple(snapshot)))
        result.failed.extend(unreadable)
        self.status_message = batch_message("Deleted", result)
        self._write_register(register, snapshot)
        return result

    def paste(self, register: Optional[str] = None) -> Optional[ActionResult]:
        name = register or UNNAMED
        if self.registers.is_clipboard(name):
            try:
                text = self.registers.clipboard_get()
            except ClipboardError as exc:
                telemetry.record_failure("registers.clipboard_get", exc)
                text = None
            if text:
                self.status_message = f"Pasted from clipboard: {text.splitlines()[0]}"
                return None

        register_value = self.registers.get(name)
        if register_value is None:
            self.status_message = f"Register {name} is empty"
            return None
        content = register_value.content
        if isinstance(content, SingleItem):
            copies: Tuple[LibraryItem, ...] = (content.item.duplicate(self.config.copy_suffix),)
        elif isinstance(content, MultipleItems):
            copies = tuple(item.duplicate() for item in content.items)
        else:
            self.status_message = f"Register {name}: {content.summary()}"
            return None

        result = self.commit(f"Paste {len(copies)} {_plural(len(copies))}", UpsertItems(copies))
        self.status_message = batch_message("Pasted", result)
        index = self.index_of(copies[0].id)
        if index is not None:
            self.set_cursor(index)
        return result

    def _follow(self, item_id: str) -> None:
        index = self.index_of(item_id)
        if index is not None:
            self.set_cursor(index)

    def _edit_batch(
        self,
        indices: Sequence[int],
        description: str,
        verb: str,
        edit: Callable[[LibraryItem], LibraryItem],
    ) -> Optional[ActionResult]:
        changed = []
        for item in self.items_at(indices):
            edited = edit(item)
            if edited is not item:
                changed.append(edited)
        if not changed:
            self.status_message = f"{verb} 0 items"
            return None
        anchor = self.current_item
        result = self.commit(description, UpsertItems(tuple(changed)))
        if anchor is not None:
            self._follow(anchor.id)
        self.status_message = batch_message(verb, result)
        return result

    def add_tag(self, indices: Sequence[int], tag: str) -> Optional[ActionResult]:
        return self._edit_batch(
            indices, f"Tag +{tag}", f"Tagged #{tag} on", lambda item: item.with_tag(tag)
        )

    def remove_tag(self, indices: Sequence[int], tag: str) -> Optional[ActionResult]:
        return self._edit_batch(
            indices, f"Tag -{tag}", f"Removed #{tag} from", lambda item: item.without_tag(tag)
        )

    def cycle_status(self, index: int) -> Optional[ActionResult]:
        item = self.item_at(index)
        if item is None:
            return None
        updated = item.edited(read_status=item.read_status.next())
        result = self.commit(f'Status "{item.title}"', UpsertItems((updated,)))
        self._follow(item.id)
        if result.ok:
            self.status_message = f"{item.title}: {updated.read_status.value}"
        return result

    def rename(self, index: int, title: str) -> Optional[ActionResult]:
        item = self.item_at(index)
        if item is None or not title or title == item.title:
            return None
        result = self.commit(f'Rename "{item.title}"', UpsertItems((item.edited(title=title),)))
        self._follow(item.id)
        self.status_message = f"Renamed to {title}" if result.ok else batch_message("Renamed", result)
        return result

    def create_item(self, title: str) -> Optional[ActionResult]:
        if not title:
            return None
        libraries = (self.filter.value,) if self.filter.kind == "library" else ()
        tags = (self.filter.value,) if self.filter.kind == "tag" else ()
        item = LibraryItem.new(title, libraries=libraries, tags=tags)  # type: ignore[arg-type]
        result = self.commit(f'Add "{title}"', UpsertItems((item,)))
        index = self.index_of(item.id)
        if index is not None:
            self.set_cursor(index)
        self.status_message = f"Added {title}" if result.ok else batch_message("Added", result)
        return result

    def undo(self, count: int = 1) -> int:
        return self._walk(count, redo=False)

    def redo(self, count: int = 1) -> int:
        return self._walk(count, redo=True)

    def _walk(self, count: int, *, redo: bool) -> int:
        label = "redo" if redo else "undo"
        steps = 0
        message = ""
        for _ in range(max(1, count)):
            with telemetry.span(f"session::{label}", component="session"):
                outcome = self.history.redo(self.store) if redo else self.history.undo(self.store)
            if outcome is None:
                break
            entry, result = outcome
            steps += 1
            message = f"{label.capitalize()}: {entry.description}"
            if not result.ok:
                message += f" ({len(result.failed)} failed)"
        self.refresh()
        if steps == 0:
            self.status_message = "Already at newest change" if redo else "Already at oldest change"
        else:
            self.status_message = message
        telemetry.record_event(f"session.{label}", data={"steps": steps})
        return steps

    # -- list shaping ------------------------------------------------------

    def sort_by(self, key: SortKey) -> None:
        self.sort_key = key
        self.refresh()
        self.status_message = f"Sorted by {key.value}"

    def filter_by(self, entry: SidebarEntry) -> None:
        self.filter = entry
        self.search_query = None
        self.cursor = 0
        self.refresh()
        self.status_message = f"Filter: {entry.label} ({len(self.items)})"

    def set_search_query(self, query: Optional[str]) -> None:
        self.search_query = query or None
        self.cursor = 0
        self.refresh()

    def search_next(self, term: str, *, forward: bool = True, count: int = 1) -> Optional[int]:
        total = len(self.items)
        if not term or total == 0:
            self.status_message = f"Pattern not found: {term}"
            return None
        index = self.cursor
        for _ in range(max(1, count)):
            for step in range(1, total + 1):
                candidate = (index + step) % total if forward else (index - step) % total
                if matches_term(self.items[candidate], term):
                    index = candidate
                    break
            else:
                self.status_message = f"Pattern not found: {term}"
                return None
        self.set_cursor(index)
        self.status_message = f"/{term} [{index + 1}/{total}]"
        return index

    def doctor(self) -> str:
        items = self.all_items
        untagged = sum(1 for item in items if not item.tags)
        missing_path = sum(1 for item in items if not item.path)
        return (
            f"{len(items)} items, {untagged} untagged, {missing_path} without file, "
            f"{len(self.history)} undo entries"
        )


class Transaction(AbstractContextManager["Transaction"]):
    """Applies one action inside a telemetry span and records its inverse."""

    def __init__(self, session: LibrarySession, label: str) -> None:
        self.session = session
        self.label = label
        self._span_cm: Optional[ContextManager[telemetry.SpanHandle]] = None
        self._handle: Optional[telemetry.SpanHandle] = None

    def __enter__(self) -> "Transaction":
        self._span_cm = telemetry.span(
            name=f"session::{self.label}",
            component="session",
            metadata={"session": self.session.name},
        )
        self._handle = self._span_cm.__enter__()
        return self

    def apply(self, action: Action) -> ActionResult:
        result = apply_action(self.session.store, action)
        if self._handle is not None:
            self._handle.add_metadata("applied", result.applied)
            self._handle.add_metadata("failed", len(result.failed))
        if result.applied:
            self.session.history.push(self.label, result.inverse)
        return result

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._span_cm is not None:
            self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = [
    "ALL_ITEMS",
    "LibrarySession",
    "SidebarEntry",
    "SortKey",
    "Transaction",
    "batch_message",
    "count_message",
]
