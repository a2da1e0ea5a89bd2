"""Marks and the back/forward jump list."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional


class Marks:
    """Letter bookmarks onto list indices.

    Marks are never adjusted when the list changes; an index past the end is
    reported as stale by the caller.
    """

    def __init__(self) -> None:
        self._marks: Dict[str, int] = {}

    def set(self, letter: str, index: int) -> None:
        self._marks[letter] = index

    def get(self, letter: str) -> Optional[int]:
        return self._marks.get(letter)

    def delete(self, letters: Iterable[str]) -> int:
        removed = 0
        for letter in letters:
            if self._marks.pop(letter, None) is not None:
                removed += 1
        return removed

    def clear(self) -> None:
        self._marks.clear()

    def items(self) -> List[tuple[str, int]]:
        return sorted(self._marks.items())

    def __len__(self) -> int:
        return len(self._marks)


class JumpList:
    def __init__(self, *, limit: int = 100) -> None:
        self.limit = limit
        self._back: List[int] = []
        self._forward: List[int] = []

    def push(self, index: int) -> None:
        self._forward.clear()
        if self._back and self._back[-1] == index:
            return
        self._back.append(index)
        if len(self._back) > self.limit:
            del self._back[0]

    def back(self, current: int) -> Optional[int]:
        if not self._back:
            return None
        target = self._back.pop()
        self._forward.append(current)
        return target

    def forward(self, current: int) -> Optional[int]:
        if not self._forward:
            return None
        target = self._forward.pop()
        self._back.append(current)
        return target

    @property
    def back_stack(self) -> List[int]:
        return list(self._back)

    @property
    def forward_stack(self) -> List[int]:
        return list(self._forward)


__all__ = ["JumpList", "Marks"]
