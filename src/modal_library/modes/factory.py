"""Builds a ModeManager wired with the standard mode set."""

from __future__ import annotations

from typing import Iterable, Optional

from modal_library.library import (
    InMemoryItemStore,
    ItemStore,
    LibraryItem,
    LibrarySession,
    RegisterBank,
    SortKey,
    SystemClipboard,
    UndoTimeline,
)
from modal_library.library.registers import Clipboard
from modal_library.library.search import SearchFn
from modal_library.library.undo import Clock
from modal_library.runtime import EngineConfig

from .base_mode import ModeBus, ModeContext
from .command_mode import CommandMode
from .insert_mode import InsertMode
from .macros import MacroRecorder
from .mode_manager import ModeManager
from .normal_mode import NormalMode
from .pending_mode import PendingMode
from .search_mode import SearchMode
from .selection import VisualSelection
from .state import InputState
from .visual_mode import VisualMode


def create_manager(
    store: Optional[ItemStore] = None,
    *,
    items: Iterable[LibraryItem] = (),
    config: Optional[EngineConfig] = None,
    clipboard: Optional[Clipboard] = None,
    search: Optional[SearchFn] = None,
    clock: Optional[Clock] = None,
    sort_key: SortKey = SortKey.UPDATED,
) -> ModeManager:
    """Build a session over ``store`` and a manager starting in Normal mode.

    ``items`` seeds a fresh in-memory store when no store is given.
    """

    config = config if config is not None else EngineConfig.from_env()
    if store is None:
        store = InMemoryItemStore(list(items))
    registers = RegisterBank(
        clipboard=clipboard if clipboard is not None else SystemClipboard(enabled=config.clipboard)
    )
    session = LibrarySession(
        store,
        config=config,
        registers=registers,
        history=UndoTimeline(clock=clock),
        search=search,
        sort_key=sort_key,
    )
    context = ModeContext(
        session=session,
        registers=registers,
        state=InputState(count_limit=config.count_limit),
        bus=ModeBus(),
        selection=VisualSelection(),
        macros=MacroRecorder(),
    )
    manager = ModeManager(context)
    manager.register_mode(NormalMode)
    manager.register_mode(PendingMode)
    manager.register_mode(VisualMode)
    manager.register_mode(InsertMode)
    manager.register_mode(CommandMode)
    manager.register_mode(SearchMode)
    return manager


__all__ = ["create_manager"]
