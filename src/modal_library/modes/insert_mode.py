"""Insert mode: a one-line title editor for new or renamed items."""

from __future__ import annotations

from typing import List, Optional

from modal_library.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeContext, ModeResult
from .state import EditorMode, InsertTarget


class InsertMode(Mode):
    names = (EditorMode.INSERT,)

    def __init__(self, context: ModeContext) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger("modal_library.modes.insert")
        self._target = InsertTarget()
        self._typed: List[str] = []

    @property
    def text(self) -> str:
        return "".join(self._typed)

    def on_enter(self, previous: Optional[EditorMode]) -> None:
        del previous
        target = self.context.extras.pop("insert_target", None)
        self._target = target if isinstance(target, InsertTarget) else InsertTarget()
        self._typed = list(self._target.text)
        self._sync()

    def on_exit(self, next_mode: Optional[EditorMode]) -> None:
        del next_mode
        self._typed.clear()
        self.context.extras.pop("insert_state", None)

    def handle_key(self, key: KeyInput) -> ModeResult:
        if key.key == "ESC":
            self.session.status_message = ""
            return ModeResult(consumed=True, switch_to=EditorMode.NORMAL, status="insert_cancel")
        if key.key == "ENTER":
            return self._commit()
        if key.key == "BACKSPACE":
            if self._typed:
                self._typed.pop()
            self._sync()
            return ModeResult(consumed=True, status="editing")
        if key.is_ctrl("u"):
            self._typed.clear()
            self._sync()
            return ModeResult(consumed=True, status="editing")
        text = key.text if key.text is not None else key.char
        if text and not key.ctrl:
            self._typed.append(text)
            self._sync()
            return ModeResult(consumed=True, status="editing")
        return ModeResult(consumed=False, status="ignored")

    def _commit(self) -> ModeResult:
        session = self.session
        title = self.text.strip()
        if not title:
            return ModeResult(consumed=True, switch_to=EditorMode.NORMAL, status="insert_cancel")
        if self._target.item_id is None:
            result = session.create_item(title)
        else:
            index = session.index_of(self._target.item_id)
            result = session.rename(index, title) if index is not None else None
        if result is not None:
            self.context.bus.emit("items.changed", {"action": "insert", "title": title})
        return ModeResult(consumed=True, switch_to=EditorMode.NORMAL, status="insert_commit")

    def _sync(self) -> None:
        self.context.extras["insert_state"] = {"text": self.text}
        self.session.status_message = f"-- INSERT -- {self.text}"


__all__ = ["InsertMode"]
