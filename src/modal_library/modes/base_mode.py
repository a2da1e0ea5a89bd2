"""Base classes and shared utilities for engine modes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple

from modal_library.library import LibrarySession, RegisterBank

from .state import EditorMode, InputState

if TYPE_CHECKING:
    from .macros import MacroRecorder
    from .selection import VisualSelection

NAMED_KEYS = frozenset(
    {
        "ESC",
        "ENTER",
        "BACKSPACE",
        "TAB",
        "BACKTAB",
        "UP",
        "DOWN",
        "LEFT",
        "RIGHT",
        "HOME",
        "END",
    }
)


@dataclass(frozen=True, slots=True)
class KeyInput:
    """Normalized key event passed to modes.

    ``key`` is a single character or one of ``NAMED_KEYS``; modifiers are
    upper-case names (``CTRL``, ``SHIFT``, ``ALT``).
    """

    key: str
    modifiers: Tuple[str, ...] = ()
    text: Optional[str] = None

    @classmethod
    def parse(cls, token: str) -> "KeyInput":
        """Build an event from ``"j"``, ``"ESC"``, ``"ctrl+r"`` or ``"space"``."""

        if len(token) > 1 and "+" in token:
            *mods, key = token.split("+")
            return cls(key=key if len(key) == 1 else key.upper(), modifiers=tuple(m.upper() for m in mods))
        if token.lower() == "space":
            return cls(key=" ", text=" ")
        if len(token) == 1:
            return cls(key=token, text=token)
        return cls(key=token.upper())

    @property
    def ctrl(self) -> bool:
        return "CTRL" in self.modifiers

    @property
    def char(self) -> Optional[str]:
        """The literal character for unmodified printable keys."""

        if len(self.key) == 1 and not self.ctrl and "ALT" not in self.modifiers:
            return self.key
        return None

    def is_ctrl(self, letter: str) -> bool:
        return self.ctrl and self.key.lower() == letter


@dataclass(slots=True)
class ModeResult:
    """Result returned from ``Mode.handle_key``.

    ``status == "pending"`` marks a sequence that is still being typed; any
    other status ends the sequence and the manager resets the input state.
    """

    consumed: bool
    switch_to: Optional[EditorMode] = None
    status: str = "ok"
    message: Optional[str] = None


@dataclass(slots=True)
class ModeContext:
    """Shared services every mode can access."""

    session: LibrarySession
    registers: RegisterBank
    state: InputState
    bus: "ModeBus"
    selection: "VisualSelection"
    macros: "MacroRecorder"
    extras: Dict[str, object] = field(default_factory=dict)


class ModeBus:
    """Minimal event bus letting modes exchange structured signals."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in self._subscribers.get(event, []):
            callback(payload)


def pending(message: Optional[str] = None) -> ModeResult:
    return ModeResult(consumed=True, status="pending", message=message)


def ignored() -> ModeResult:
    """Inapplicable input: swallowed, sequence state reset."""

    return ModeResult(consumed=False, status="ignored")


class Mode:
    """Base class all concrete modes inherit from.

    A single handler may serve several ``EditorMode`` values (the visual
    variants share one); ``names`` lists them.
    """

    names: Tuple[EditorMode, ...] = ()

    def __init__(self, context: ModeContext) -> None:
        self.context = context

    @property
    def name(self) -> EditorMode:
        return self.names[0]

    @property
    def session(self) -> LibrarySession:
        return self.context.session

    @property
    def state(self) -> InputState:
        return self.context.state

    def on_enter(
        self, previous: Optional[EditorMode]
    ) -> None:  # pragma: no cover - default no-op
        del previous

    def on_exit(
        self, next_mode: Optional[EditorMode]
    ) -> None:  # pragma: no cover - default no-op
        del next_mode

    def handle_key(
        self, key: KeyInput
    ) -> ModeResult:  # pragma: no cover - abstract override
        raise NotImplementedError

    def status(self, message: str, status: str = "ok", **kwargs: object) -> ModeResult:
        self.session.status_message = message
        return ModeResult(consumed=True, status=status, message=message, **kwargs)  # type: ignore[arg-type]


__all__ = [
    "KeyInput",
    "Mode",
    "ModeBus",
    "ModeContext",
    "ModeResult",
    "NAMED_KEYS",
    "ignored",
    "pending",
]
