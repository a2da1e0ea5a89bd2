"""Register storage and clipboard integration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Protocol, Tuple, Union

import pyperclip

from .item import LibraryItem

UNNAMED = '"'
CLIPBOARD_REGISTERS = frozenset({"+", "*"})


class ClipboardError(RuntimeError):
    """Raised when the OS clipboard cannot be read or written."""


@dataclass(frozen=True, slots=True)
class SingleItem:
    item: LibraryItem

    def summary(self) -> str:
        return self.item.title


@dataclass(frozen=True, slots=True)
class MultipleItems:
    items: Tuple[LibraryItem, ...]

    def summary(self) -> str:
        return f"{len(self.items)} items"


@dataclass(frozen=True, slots=True)
class Text:
    text: str

    def summary(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class Path:
    path: str

    def summary(self) -> str:
        return self.path


RegisterContent = Union[SingleItem, MultipleItems, Text, Path]


@dataclass(frozen=True, slots=True)
class Register:
    content: RegisterContent
    append: bool = False

    @property
    def items(self) -> Tuple[LibraryItem, ...]:
        if isinstance(self.content, SingleItem):
            return (self.content.item,)
        if isinstance(self.content, MultipleItems):
            return self.content.items
        return ()


def content_for(items: Tuple[LibraryItem, ...]) -> RegisterContent:
    if len(items) == 1:
        return SingleItem(items[0])
    return MultipleItems(items)


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...

    def paste(self) -> Optional[str]: ...


class SystemClipboard:
    """Clipboard bridge backed by pyperclip."""

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled

    def copy(self, text: str) -> None:
        if not self.enabled:
            raise ClipboardError("clipboard integration disabled")
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            raise ClipboardError(str(exc)) from exc

    def paste(self) -> Optional[str]:
        if not self.enabled:
            return None
        try:
            text = pyperclip.paste()
        except pyperclip.PyperclipException as exc:
            raise ClipboardError(str(exc)) from exc
        return text or None


class RegisterBank:
    """Named slots; every write is mirrored into the unnamed register.

    ``a``-``z`` overwrite, ``A``-``Z`` append to their lowercase slot. ``+``
    and ``*`` additionally push item titles to the OS clipboard.
    """

    def __init__(self, *, clipboard: Optional[Clipboard] = None) -> None:
        self._registers: Dict[str, Register] = {}
        self.clipboard: Clipboard = clipboard or SystemClipboard()

    @staticmethod
    def is_valid_name(name: str) -> bool:
        return len(name) == 1 and (
            name.isalpha() or name == UNNAMED or name in CLIPBOARD_REGISTERS
        )

    @staticmethod
    def is_clipboard(name: str) -> bool:
        return name in CLIPBOARD_REGISTERS

    def get(self, name: str = UNNAMED) -> Optional[Register]:
        return self._registers.get(name.lower())

    def set(self, name: str, content: RegisterContent) -> Register:
        append = name.isupper()
        key = name.lower()
        if append:
            content = self._appended(self._registers.get(key), content)
        register = Register(content=content, append=append)
        self._registers[key] = register
        if key != UNNAMED:
            self._registers[UNNAMED] = register
        return register

    def _appended(
        self, existing: Optional[Register], content: RegisterContent
    ) -> RegisterContent:
        if existing is None:
            return content
        if isinstance(existing.content, Text) and isinstance(content, Text):
            return Text(existing.content.text + "\n" + content.text)
        new_items = Register(content=content).items
        if existing.items and new_items:
            return MultipleItems(existing.items + new_items)
        return content

    def clipboard_set(self, text: str) -> None:
        self.clipboard.copy(text)

    def clipboard_get(self) -> Optional[str]:
        return self.clipboard.paste()

    def serialize(self) -> Mapping[str, Register]:
        return dict(self._registers)

    def names(self) -> list[str]:
        return sorted(self._registers)


__all__ = [
    "CLIPBOARD_REGISTERS",
    "Clipboard",
    "ClipboardError",
    "MultipleItems",
    "Path",
    "Register",
    "RegisterBank",
    "RegisterContent",
    "SingleItem",
    "SystemClipboard",
    "Text",
    "UNNAMED",
    "content_for",
]
