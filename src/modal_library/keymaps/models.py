"""Value types describing panels, motions and the list a motion runs over."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Hashable, Optional, Tuple


class Panel(str, Enum):
    SIDEBAR = "sidebar"
    LIST = "list"
    PREVIEW = "preview"

    def left(self) -> "Panel":
        return Panel.SIDEBAR if self is not Panel.PREVIEW else Panel.LIST

    def right(self) -> "Panel":
        return Panel.PREVIEW if self is not Panel.SIDEBAR else Panel.LIST


class MotionKind(str, Enum):
    DOWN = "down"
    UP = "up"
    TOP = "top"
    BOTTOM = "bottom"
    FIRST = "first"
    LAST = "last"
    SCREEN_TOP = "screen_top"
    SCREEN_MIDDLE = "screen_middle"
    SCREEN_BOTTOM = "screen_bottom"
    NEXT_GROUP = "next_group"
    PREV_GROUP = "prev_group"
    HALF_PAGE_DOWN = "half_page_down"
    HALF_PAGE_UP = "half_page_up"
    PAGE_DOWN = "page_down"
    PAGE_UP = "page_up"
    FIND_FORWARD = "f"
    FIND_BACKWARD = "F"
    TILL_FORWARD = "t"
    TILL_BACKWARD = "T"

    @property
    def is_find(self) -> bool:
        return self in _FIND_KINDS


_FIND_KINDS = frozenset(
    {
        MotionKind.FIND_FORWARD,
        MotionKind.FIND_BACKWARD,
        MotionKind.TILL_FORWARD,
        MotionKind.TILL_BACKWARD,
    }
)


@dataclass(frozen=True, slots=True)
class Motion:
    kind: MotionKind
    target: Optional[str] = None

    @classmethod
    def find(cls, leader: str, char: str) -> "Motion":
        return cls(MotionKind(leader), char)

    def reversed(self) -> "Motion":
        """The motion ``,`` repeats: f<->F and t<->T."""

        flipped = _REVERSED.get(self.kind, self.kind)
        return Motion(flipped, self.target)


_REVERSED = {
    MotionKind.FIND_FORWARD: MotionKind.FIND_BACKWARD,
    MotionKind.FIND_BACKWARD: MotionKind.FIND_FORWARD,
    MotionKind.TILL_FORWARD: MotionKind.TILL_BACKWARD,
    MotionKind.TILL_BACKWARD: MotionKind.TILL_FORWARD,
}


# Single keys that resolve to a motion without a second key.
MOTION_KEYS: Dict[str, MotionKind] = {
    "j": MotionKind.DOWN,
    "DOWN": MotionKind.DOWN,
    "k": MotionKind.UP,
    "UP": MotionKind.UP,
    "G": MotionKind.BOTTOM,
    "0": MotionKind.FIRST,
    "HOME": MotionKind.FIRST,
    "$": MotionKind.LAST,
    "END": MotionKind.LAST,
    "H": MotionKind.SCREEN_TOP,
    "M": MotionKind.SCREEN_MIDDLE,
    "L": MotionKind.SCREEN_BOTTOM,
    "{": MotionKind.PREV_GROUP,
    "}": MotionKind.NEXT_GROUP,
}

FIND_LEADERS = frozenset({"f", "F", "t", "T"})


@dataclass(frozen=True, slots=True)
class ListView:
    """Just enough of a panel's contents for motions to be resolved purely.

    ``labels`` feed find-char motions, ``group_keys`` feed ``{``/``}``; both
    are either empty or aligned with the list indices.
    """

    length: int
    viewport_offset: int = 0
    visible_height: int = 20
    labels: Tuple[str, ...] = ()
    group_keys: Tuple[Hashable, ...] = ()

    @property
    def last(self) -> int:
        return self.length - 1

    def clamp(self, index: int) -> int:
        return max(0, min(index, self.last))


__all__ = [
    "FIND_LEADERS",
    "ListView",
    "MOTION_KEYS",
    "Motion",
    "MotionKind",
    "Panel",
]
