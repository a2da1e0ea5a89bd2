"""Input state shared by every mode: counts, leaders, operators, registers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from modal_library.keymaps.models import Motion


class EditorMode(str, Enum):
    NORMAL = "normal"
    INSERT = "insert"
    VISUAL = "visual"
    VISUAL_LINE = "visual_line"
    VISUAL_BLOCK = "visual_block"
    COMMAND = "command"
    SEARCH = "search"
    PENDING = "pending"

    @property
    def is_visual(self) -> bool:
        return self in VISUAL_MODES


VISUAL_MODES = frozenset(
    {EditorMode.VISUAL, EditorMode.VISUAL_LINE, EditorMode.VISUAL_BLOCK}
)


class OperatorKind(str, Enum):
    DELETE = "d"
    YANK = "y"
    CHANGE = "c"
    ADD_TAG = ">"
    REMOVE_TAG = "<"


@dataclass(frozen=True, slots=True)
class Operator:
    kind: OperatorKind
    tag: Optional[str] = None

    @property
    def key(self) -> str:
        return self.kind.value


@dataclass(frozen=True, slots=True)
class InsertTarget:
    """Title being edited in Insert mode; ``item_id`` is None for a new item."""

    item_id: Optional[str] = None
    text: str = ""


@dataclass(frozen=True, slots=True)
class CommandPrefill:
    """Command line text and item targets handed over by an operator."""

    text: str
    targets: Tuple[int, ...] = ()


OPERATOR_KEYS: Dict[str, OperatorKind] = {kind.value: kind for kind in OperatorKind}

# Leaders whose second key is taken literally, digits included.
LITERAL_LEADERS = frozenset({"f", "F", "t", "T", "m", "'", "q", "@"})


@dataclass(slots=True)
class InputState:
    """Everything a partially typed key sequence carries.

    ``reset`` runs at every sequence boundary; ``last_find`` and the search
    fields survive it so ``;``/``,`` and ``n``/``N`` keep working.
    """

    mode: EditorMode = EditorMode.NORMAL
    pending_leader: Optional[str] = None
    pending_operator: Optional[Operator] = None
    operator_count: int = 0
    count: int = 0
    explicit_count: bool = False
    register: Optional[str] = None
    pending_register_select: bool = False
    last_find: Optional[Motion] = None
    last_search: Optional[str] = None
    search_forward: bool = True
    hints: Dict[str, int] = field(default_factory=dict)
    count_limit: int = 9999

    def push_digit(self, char: str) -> bool:
        """Accumulate ``char`` into the count; ``False`` if it is no count digit."""

        if len(char) != 1 or not char.isdigit():
            return False
        if char == "0" and self.count == 0:
            return False
        self.count = min(self.count * 10 + int(char), self.count_limit)
        self.explicit_count = True
        return True

    def count_or_one(self) -> int:
        return self.count if self.count > 0 else 1

    def begin_operator(self, operator: Operator) -> None:
        self.pending_operator = operator
        self.operator_count = self.count if self.explicit_count else 0
        self.count = 0
        self.explicit_count = False

    def effective_count(self) -> int:
        """``3d2j`` covers 6 items: both counts multiply."""

        return min(max(self.operator_count, 1) * self.count_or_one(), self.count_limit)

    def has_explicit_count(self) -> bool:
        return self.explicit_count or self.operator_count > 0

    @property
    def is_pending(self) -> bool:
        return (
            self.pending_leader is not None
            or self.pending_operator is not None
            or self.pending_register_select
            or self.register is not None
        )

    def echo(self) -> str:
        """Pending-sequence echo for the mode indicator, e.g. ``"a3d``."""

        parts = []
        if self.register:
            parts.append(f'"{self.register}')
        if self.pending_register_select:
            parts.append('"')
        if self.operator_count:
            parts.append(str(self.operator_count))
        if self.pending_operator:
            parts.append(self.pending_operator.key)
        if self.count:
            parts.append(str(self.count))
        if self.pending_leader:
            parts.append("<space>" if self.pending_leader == " " else self.pending_leader)
        return "".join(parts)

    def reset(self) -> None:
        self.pending_leader = None
        self.pending_operator = None
        self.operator_count = 0
        self.count = 0
        self.explicit_count = False
        self.register = None
        self.pending_register_select = False
        self.hints.clear()


__all__ = [
    "CommandPrefill",
    "EditorMode",
    "InputState",
    "InsertTarget",
    "LITERAL_LEADERS",
    "OPERATOR_KEYS",
    "Operator",
    "OperatorKind",
    "VISUAL_MODES",
]
