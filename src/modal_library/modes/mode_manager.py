"""Mode manager: owns the active mode, dispatches keys, drives macro replay."""

from __future__ import annotations

from typing import Dict, Optional, Type

from modal_library.keymaps.hints import hints_for
from modal_library.library import RegisterBank, SessionMirror
from modal_library.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeContext, ModeResult, pending
from .state import EditorMode

# Modes in which `"x` selects the register for the next operator or paste.
_REGISTER_MODES = frozenset(
    {
        EditorMode.NORMAL,
        EditorMode.PENDING,
        EditorMode.VISUAL,
        EditorMode.VISUAL_LINE,
        EditorMode.VISUAL_BLOCK,
    }
)


class ModeManager:
    """Single entry point for input events.

    Every key goes through :meth:`handle_key`, including keys replayed from
    a macro. After each result the manager enforces the reset discipline:
    any status other than ``"pending"`` clears counts, leaders, operators
    and the selected register.
    """

    def __init__(self, context: ModeContext) -> None:
        self.context = context
        self._modes: Dict[EditorMode, Mode] = {}
        self._active: Optional[EditorMode] = None
        self._replay_depth = 0
        self.logger = telemetry.get_logger("modal_library.modes")
        self.context.extras.setdefault("mode_manager", self)

    @property
    def active_mode(self) -> Optional[Mode]:
        if self._active is None:
            return None
        return self._modes.get(self._active)

    @property
    def mode(self) -> Optional[EditorMode]:
        return self._active

    @property
    def display_mode(self) -> Optional[EditorMode]:
        """``PENDING`` while a leader, operator or register key awaits input."""

        if self.context.state.is_pending:
            return EditorMode.PENDING
        return self._active

    @property
    def replaying(self) -> bool:
        return self._replay_depth > 0

    def register_mode(
        self,
        mode_cls: Type[Mode],
        /,
        *mode_args: object,
        **mode_kwargs: object,
    ) -> Mode:
        mode = mode_cls(self.context, *mode_args, **mode_kwargs)
        for name in mode.names:
            if name in self._modes:
                raise ValueError(f"Mode '{name.value}' already registered")
            self._modes[name] = mode
        if self._active is None:
            self._active = mode.name
            self.context.state.mode = mode.name
            mode.on_enter(None)
        return mode

    def switch_mode(self, name: EditorMode) -> None:
        if name not in self._modes:
            raise KeyError(f"Unknown mode '{name.value}'")
        if self._active == name:
            return
        previous_name = self._active
        previous = self.active_mode
        if previous:
            previous.on_exit(name)
        self._active = name
        self.context.state.mode = name
        self._modes[name].on_enter(previous_name)
        telemetry.record_event("mode.switch", level="debug", data={"mode": name.value})
        self.context.bus.emit("mode.switch", name.value)

    def handle_key(self, key: KeyInput) -> ModeResult:
        mode = self.active_mode
        if mode is None or self._active is None:
            raise RuntimeError("No active mode registered")
        macros = self.context.macros
        recording = macros.is_recording and not self.replaying
        with telemetry.span(
            name=f"mode::{self._active.value}",
            component=True,
            metadata={"key": key.key, "mode": self._active.value},
        ):
            result = self._select_register(key)
            if result is None:
                result = mode.handle_key(key)
        result = self._after_mode_result(result)
        if recording and macros.is_recording and not self.replaying:
            macros.record(key)
        return result

    def _select_register(self, key: KeyInput) -> Optional[ModeResult]:
        state = self.context.state
        if self._active not in _REGISTER_MODES:
            return None
        if state.pending_register_select:
            state.pending_register_select = False
            name = key.char
            if name and RegisterBank.is_valid_name(name):
                state.register = name
                return pending()
            if key.key != "ESC":
                self.context.session.status_message = f"Invalid register: {key.key}"
            return ModeResult(consumed=True, status="register_cancel")
        if key.char == '"' and state.pending_leader is None:
            state.pending_register_select = True
            return pending()
        return None

    def _after_mode_result(self, result: ModeResult) -> ModeResult:
        if result.switch_to:
            self.switch_mode(result.switch_to)
        if result.status != "pending":
            self.context.state.reset()
        return result

    def replay_macro(self, register: str, count: int = 1) -> ModeResult:
        macros = self.context.macros
        session = self.context.session
        if register == "@":
            if macros.last_played is None:
                session.status_message = "No previously played macro"
                return ModeResult(consumed=True, status="macro_missing")
            register = macros.last_played
        keys = macros.get(register)
        if not keys:
            session.status_message = f"Macro @{register} is empty"
            return ModeResult(consumed=True, status="macro_empty")

        macros.last_played = register
        self.context.state.reset()
        self._replay_depth += 1
        try:
            with telemetry.span(
                "macro::replay",
                component="macros",
                metadata={"register": register, "count": count},
            ):
                for _ in range(count):
                    for key in keys:
                        self.handle_key(key)
        finally:
            self._replay_depth -= 1
        suffix = f" ×{count}" if count > 1 else ""
        session.status_message = f"Replayed @{register}{suffix}"
        return ModeResult(consumed=True, status="macro_replayed")

    def mirror(self) -> SessionMirror:
        context = self.context
        session = context.session
        state = context.state
        display = self.display_mode
        command_state = context.extras.get("command_state")
        command = ""
        if isinstance(command_state, dict):
            command = str(command_state.get("prefix", "")) + str(command_state.get("text", ""))
        hints = hints_for(state.pending_leader, state.pending_operator is not None)
        return SessionMirror(
            mode=display.value if display else "?",
            pending=state.echo(),
            rows=tuple(item.title for item in session.items),
            cursor=session.cursor,
            viewport_offset=session.viewport_offset,
            selection=tuple(context.selection.selected()),
            panel=session.active_panel.value,
            status=session.status_message,
            command=command,
            recording=context.macros.recording_register,
            sidebar=tuple(entry.label for entry in session.sidebar_entries),
            sidebar_index=session.sidebar_index,
            preview=tuple(session.preview_lines()),
            hints=tuple(f"{hint.key} {hint.description}" for hint in hints),
        )


__all__ = ["ModeManager"]
