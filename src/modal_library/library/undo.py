"""Undo/redo stacks over reversible store actions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, Union

from modal_library.runtime import telemetry

from .item import LibraryItem
from .store import ItemStore

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class UpsertItems:
    items: Tuple[LibraryItem, ...]

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class DeleteItems:
    items: Tuple[LibraryItem, ...]

    def __len__(self) -> int:
        return len(self.items)


Action = Union[UpsertItems, DeleteItems]


@dataclass(frozen=True, slots=True)
class UndoEntry:
    description: str
    action: Action
    timestamp: datetime


@dataclass(slots=True)
class ActionResult:
    """Outcome of applying an action item by item."""

    inverse: Action
    applied: int
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return self.applied + len(self.failed)


def apply_action(store: ItemStore, action: Action) -> ActionResult:
    """Apply ``action`` and return the action that reverses it.

    Upserts capture whatever the store holds for each identity first; the
    inverse deletes the items when none of them existed, otherwise it
    restores the captured prior versions. Deletes invert to an upsert of the
    deleted snapshot. Failures are counted per item and leave earlier writes
    in place; the inverse only covers items that were written.
    """

    done: List[LibraryItem] = []
    priors: List[LibraryItem] = []
    failed: List[str] = []

    for item in action.items:
        try:
            if isinstance(action, UpsertItems):
                prior = store.load_by_id(item.id)
                store.upsert(item)
                if prior is not None:
                    priors.append(prior)
            else:
                store.delete(item.id)
        except Exception as exc:
            telemetry.record_failure(
                "undo.apply_item",
                exc,
                data={"item": item.id, "action": type(action).__name__},
            )
            failed.append(item.id)
            continue
        done.append(item)

    inverse: Action
    if isinstance(action, DeleteItems):
        inverse = UpsertItems(tuple(done))
    elif priors:
        inverse = UpsertItems(tuple(priors))
    else:
        inverse = DeleteItems(tuple(done))
    return ActionResult(inverse=inverse, applied=len(done), failed=failed)


class UndoTimeline:
    """Two plain stacks; entries move between them as computed inverses."""

    def __init__(self, *, clock: Optional[Clock] = None) -> None:
        self._undo: List[UndoEntry] = []
        self._redo: List[UndoEntry] = []
        self._clock = clock or utc_now

    def __len__(self) -> int:
        return len(self._undo)

    @property
    def entries(self) -> List[UndoEntry]:
        return list(self._undo)

    @property
    def redo_entries(self) -> List[UndoEntry]:
        return list(self._redo)

    def now(self) -> datetime:
        return self._clock()

    def push(self, description: str, action: Action) -> UndoEntry:
        entry = UndoEntry(description=description, action=action, timestamp=self.now())
        self._undo.append(entry)
        self._redo.clear()
        telemetry.record_event(
            "undo.push", level="debug", data={"description": description}
        )
        return entry

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def peek(self) -> Optional[UndoEntry]:
        return self._undo[-1] if self._undo else None

    def peek_redo(self) -> Optional[UndoEntry]:
        return self._redo[-1] if self._redo else None

    def undo(self, store: ItemStore) -> Optional[Tuple[UndoEntry, ActionResult]]:
        if not self._undo:
            return None
        entry = self._undo.pop()
        result = apply_action(store, entry.action)
        self._redo.append(self._inverse_entry(entry, result))
        return entry, result

    def redo(self, store: ItemStore) -> Optional[Tuple[UndoEntry, ActionResult]]:
        if not self._redo:
            return None
        entry = self._redo.pop()
        result = apply_action(store, entry.action)
        self._undo.append(self._inverse_entry(entry, result))
        return entry, result

    def _inverse_entry(self, entry: UndoEntry, result: ActionResult) -> UndoEntry:
        return UndoEntry(
            description=entry.description,
            action=result.inverse,
            timestamp=self.now(),
        )

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()


__all__ = [
    "Action",
    "ActionResult",
    "DeleteItems",
    "UndoEntry",
    "UndoTimeline",
    "UpsertItems",
    "apply_action",
    "utc_now",
]
