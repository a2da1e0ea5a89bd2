"""Persistent store boundary and the in-memory implementation."""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from .item import LibraryItem


class StoreError(RuntimeError):
    """Raised when the store cannot read or write a single item."""

    def __init__(self, message: str, *, item_id: str | None = None) -> None:
        super().__init__(message)
        self.item_id = item_id


class ItemStore(Protocol):
    """What the engine needs from the host's persistence layer."""

    def load_by_id(self, item_id: str) -> Optional[LibraryItem]:
        """Return the stored item or ``None`` when the id is unknown."""
        ...

    def upsert(self, item: LibraryItem) -> None:
        """Insert or replace ``item`` by identity."""
        ...

    def delete(self, item_id: str) -> None:
        """Remove the item; deleting a missing id is not an error."""
        ...

    def list(
        self, *, library: Optional[str] = None, tag: Optional[str] = None
    ) -> List[LibraryItem]:
        """Return items in insertion order, optionally filtered."""
        ...


class InMemoryItemStore:
    """Dict-backed store that keeps insertion order across delete/restore.

    An item that is deleted and later upserted again (undo of a delete) goes
    back to its original position instead of the end of the list.
    """

    def __init__(self, items: Optional[List[LibraryItem]] = None) -> None:
        self._items: Dict[str, LibraryItem] = {}
        self._order: Dict[str, int] = {}
        self._next_position = 0
        for item in items or []:
            self.upsert(item)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def load_by_id(self, item_id: str) -> Optional[LibraryItem]:
        return self._items.get(item_id)

    def upsert(self, item: LibraryItem) -> None:
        if item.id not in self._order:
            self._order[item.id] = self._next_position
            self._next_position += 1
        self._items[item.id] = item

    def delete(self, item_id: str) -> None:
        self._items.pop(item_id, None)

    def list(
        self, *, library: Optional[str] = None, tag: Optional[str] = None
    ) -> List[LibraryItem]:
        items = sorted(self._items.values(), key=lambda item: self._order[item.id])
        if library is not None:
            items = [item for item in items if library in item.libraries]
        if tag is not None:
            items = [item for item in items if tag in item.tags]
        return items


__all__ = ["InMemoryItemStore", "ItemStore", "StoreError"]
