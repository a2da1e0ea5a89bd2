"""Command-line mode with inline editing, history and name completion."""

from __future__ import annotations

from typing import List, MutableMapping, Optional, Tuple, cast

from modal_library.actions import command as command_actions
from modal_library.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeContext, ModeResult
from .state import CommandPrefill, EditorMode


class CommandMode(Mode):
    names = (EditorMode.COMMAND,)

    def __init__(self, context: ModeContext) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger("modal_library.modes.command")
        self.history: List[str] = []
        self._typed: List[str] = []
        self._targets: Tuple[int, ...] = ()
        self._history_index: Optional[int] = None
        self._completions: List[str] = []
        self._completion_index = 0

    @property
    def current_command(self) -> str:
        return "".join(self._typed)

    def on_enter(self, previous: Optional[EditorMode]) -> None:
        del previous
        prefill = self.context.extras.pop("command_prefill", None)
        if isinstance(prefill, CommandPrefill):
            self._typed = list(prefill.text)
            self._targets = prefill.targets
        else:
            self._typed = []
            self._targets = ()
        self._history_index = None
        self._completions = []
        self.context.bus.emit("command.start", None)
        self._sync_command_state()

    def on_exit(self, next_mode: Optional[EditorMode]) -> None:
        del next_mode
        self.context.bus.emit("command.end", self.current_command)
        self._typed.clear()
        self._targets = ()
        self.context.extras.pop("command_state", None)

    def handle_key(self, key: KeyInput) -> ModeResult:
        if key.key != "TAB":
            self._completions = []
        if key.key == "ESC" or key.is_ctrl("c"):
            self.session.status_message = ""
            return ModeResult(consumed=True, switch_to=EditorMode.NORMAL, status="command_cancel")
        if key.key == "ENTER":
            return self._submit()
        if key.key == "BACKSPACE":
            if not self._typed:
                return ModeResult(
                    consumed=True, switch_to=EditorMode.NORMAL, status="command_cancel"
                )
            self._typed.pop()
            return self._edited()
        if key.is_ctrl("u"):
            self._typed.clear()
            return self._edited()
        if key.key in ("UP", "DOWN"):
            self._browse_history(older=key.key == "UP")
            return self._edited()
        if key.key == "TAB":
            self._complete()
            return self._edited()
        text = key.text if key.text is not None else key.char
        if text and not key.ctrl:
            self._typed.append(text)
            self._history_index = None
            return self._edited()
        return ModeResult(consumed=False, status="ignored")

    def _submit(self) -> ModeResult:
        command = self.current_command
        self._remember(command)
        targets = self._targets
        self._typed.clear()
        self._sync_command_state()
        result = command_actions.execute_command(self.context, command, targets)
        if result.switch_to is None or result.switch_to == EditorMode.COMMAND:
            return ModeResult(
                consumed=True,
                switch_to=EditorMode.NORMAL,
                status=result.status,
                message=result.message,
            )
        return result

    def _remember(self, command: str) -> None:
        command = command.strip()
        if not command:
            return
        if not self.history or self.history[-1] != command:
            self.history.append(command)
        limit = self.session.config.history_limit
        if len(self.history) > limit:
            del self.history[: len(self.history) - limit]

    def _browse_history(self, *, older: bool) -> None:
        if not self.history:
            return
        if self._history_index is None:
            if not older:
                return
            index = len(self.history) - 1
        else:
            index = self._history_index + (-1 if older else 1)
        if index >= len(self.history):
            self._history_index = None
            self._typed = []
            return
        self._history_index = max(index, 0)
        self._typed = list(self.history[self._history_index])

    def _complete(self) -> None:
        if not self._completions:
            prefix = self.current_command
            if " " in prefix:
                return
            self._completions = [
                name for name in command_actions.command_names() if name.startswith(prefix)
            ]
            self._completion_index = 0
        else:
            self._completion_index = (self._completion_index + 1) % len(self._completions)
        if self._completions:
            self._typed = list(self._completions[self._completion_index])

    def _edited(self) -> ModeResult:
        self._sync_command_state()
        return ModeResult(consumed=True, status="editing")

    def _command_state(self) -> MutableMapping[str, object]:
        return cast(
            MutableMapping[str, object],
            self.context.extras.setdefault("command_state", {}),
        )

    def _sync_command_state(self) -> None:
        state = self._command_state()
        state["prefix"] = ":"
        state["text"] = self.current_command
        state["targets"] = self._targets


__all__ = ["CommandMode"]
