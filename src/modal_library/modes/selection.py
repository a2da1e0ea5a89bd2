"""Visual selection: anchor/cursor ranges and scattered index sets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from .state import EditorMode


@dataclass(slots=True)
class VisualSelection:
    variant: Optional[EditorMode] = None
    anchor: int = 0
    cursor: int = 0
    scattered: Optional[Set[int]] = None
    last_range: Optional[Tuple[int, int]] = None

    @property
    def active(self) -> bool:
        return self.variant is not None

    def enter(self, variant: EditorMode, position: int) -> None:
        self.variant = variant
        self.anchor = position
        self.cursor = position
        self.scattered = None

    def bounds(self) -> Tuple[int, int]:
        return (min(self.anchor, self.cursor), max(self.anchor, self.cursor))

    def move_to(self, position: int) -> None:
        """Any motion collapses a scattered set back into a contiguous range."""

        self.cursor = position
        self.scattered = None

    def toggle(self, length: int) -> None:
        """Flip the item under the cursor and advance one row."""

        if self.scattered is None:
            low, high = self.bounds()
            self.scattered = set(range(low, high + 1))
        if self.cursor in self.scattered:
            self.scattered.remove(self.cursor)
        else:
            self.scattered.add(self.cursor)
        if self.cursor < length - 1:
            self.cursor += 1

    def swap(self) -> None:
        self.anchor, self.cursor = self.cursor, self.anchor

    def select_all(self, length: int) -> None:
        self.scattered = None
        self.anchor = 0
        self.cursor = max(0, length - 1)

    def selected(self) -> List[int]:
        if not self.active:
            return []
        if self.scattered is not None:
            return sorted(self.scattered)
        low, high = self.bounds()
        return list(range(low, high + 1))

    def exit(self) -> None:
        if self.active and self.scattered is None:
            self.last_range = self.bounds()
        self.variant = None
        self.scattered = None

    def reselect(self, length: int) -> Optional[int]:
        """Restore ``last_range`` (``gv``) clamped to ``length``; returns the cursor."""

        if self.last_range is None or length == 0:
            return None
        low, high = self.last_range
        last = length - 1
        self.anchor = min(low, last)
        self.cursor = min(high, last)
        self.scattered = None
        self.variant = EditorMode.VISUAL
        return self.cursor


__all__ = ["VisualSelection"]
