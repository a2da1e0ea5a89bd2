"""Library items, persistence boundary, registers, undo and the session façade."""

from .item import LibraryItem, ReadStatus
from .store import InMemoryItemStore, ItemStore, StoreError
from .undo import (
    ActionResult,
    DeleteItems,
    UndoEntry,
    UndoTimeline,
    UpsertItems,
    apply_action,
)
from .registers import (
    ClipboardError,
    MultipleItems,
    Path,
    Register,
    RegisterBank,
    SingleItem,
    SystemClipboard,
    Text,
)
from .navigation import JumpList, Marks
from .search import default_search
from .session import LibrarySession, SidebarEntry, SortKey, Transaction
from .sync import SessionMirror

__all__ = [
    "ActionResult",
    "ClipboardError",
    "DeleteItems",
    "InMemoryItemStore",
    "ItemStore",
    "JumpList",
    "LibraryItem",
    "LibrarySession",
    "Marks",
    "MultipleItems",
    "Path",
    "ReadStatus",
    "Register",
    "RegisterBank",
    "SessionMirror",
    "SidebarEntry",
    "SingleItem",
    "SortKey",
    "StoreError",
    "SystemClipboard",
    "Text",
    "Transaction",
    "UndoEntry",
    "UndoTimeline",
    "UpsertItems",
    "apply_action",
    "default_search",
]
