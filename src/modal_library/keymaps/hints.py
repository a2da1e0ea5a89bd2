"""Which-key style hints for sequences awaiting their second key."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class KeyHint:
    key: str
    description: str


def _hints(*pairs: Tuple[str, str]) -> Tuple[KeyHint, ...]:
    return tuple(KeyHint(key, description) for key, description in pairs)


LEADER_HINTS: Dict[str, Tuple[KeyHint, ...]] = {
    "g": _hints(
        ("g", "go to top"),
        ("v", "reselect last visual range"),
        ("l", "jump back"),
        ("z", "center cursor"),
        ("*", "search current author"),
        ("y", "yank title"),
        ("r", "reset filter"),
    ),
    "z": _hints(("z", "center"), ("t", "cursor to top"), ("b", "cursor to bottom")),
    "m": _hints(("a-z", "set mark")),
    "'": _hints(
        ("a-z", "jump to mark"),
        ("'", "last jump position"),
        ("<", "visual start"),
        (">", "visual end"),
    ),
    "[": _hints(("[", "previous group")),
    "]": _hints(("]", "next group")),
    " ": _hints(("j", "label items below"), ("k", "label items above"), (" ", "label visible items")),
    "q": _hints(("a-z", "record macro")),
    "@": _hints(("a-z", "replay macro"), ("@", "replay last macro")),
    "f": _hints(("<char>", "find next title starting with")),
    "F": _hints(("<char>", "find previous title starting with")),
    "t": _hints(("<char>", "till next title starting with")),
    "T": _hints(("<char>", "till previous title starting with")),
}

OPERATOR_HINTS: Tuple[KeyHint, ...] = _hints(
    ("j/k", "down/up"),
    ("G/gg", "to bottom/top"),
    ("{/}", "group"),
    ("f/t", "find char"),
    ("i/a", "text object"),
    ("<op>", "current item"),
)


def hints_for(
    leader: Optional[str], operator_pending: bool = False
) -> Tuple[KeyHint, ...]:
    if leader is not None:
        return LEADER_HINTS.get(leader, ())
    if operator_pending:
        return OPERATOR_HINTS
    return ()


__all__ = ["KeyHint", "LEADER_HINTS", "OPERATOR_HINTS", "hints_for"]
