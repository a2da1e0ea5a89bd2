"""Visual mode (character, line and block variants share one handler)."""

from __future__ import annotations

from typing import Optional

from modal_library.actions import visual as visual_actions
from modal_library.keymaps.models import FIND_LEADERS, MOTION_KEYS, Motion, MotionKind, Panel
from modal_library.keymaps.resolver import resolve
from modal_library.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeContext, ModeResult, ignored, pending
from .operator_pipeline import OperatorPipeline
from .state import OPERATOR_KEYS, VISUAL_MODES, CommandPrefill, EditorMode, Operator, OperatorKind

_VARIANT_KEYS = {"v": EditorMode.VISUAL, "V": EditorMode.VISUAL_LINE}


class VisualMode(Mode):
    names = (EditorMode.VISUAL, EditorMode.VISUAL_LINE, EditorMode.VISUAL_BLOCK)

    def __init__(self, context: ModeContext) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger("modal_library.modes.visual")
        self.pipeline = OperatorPipeline(context)

    def on_enter(self, previous: Optional[EditorMode]) -> None:
        del previous
        selection = self.context.selection
        variant = self.state.mode
        if selection.active:
            selection.variant = variant
        else:
            selection.enter(variant, self.session.cursor)
        self.session.focus(Panel.LIST)
        visual_actions.refresh_selection(self.context)

    def on_exit(self, next_mode: Optional[EditorMode]) -> None:
        if next_mode in VISUAL_MODES:
            return
        self.context.selection.exit()
        self.context.bus.emit("visual.selection", None)

    def handle_key(self, key: KeyInput) -> ModeResult:
        state = self.state
        char = key.char
        if state.pending_leader is not None:
            leader = state.pending_leader
            state.pending_leader = None
            return self._finish_leader(leader, key)
        if char and state.push_digit(char):
            return pending()
        if key.key == "ESC":
            return self._exit()
        if key.ctrl:
            return self._handle_ctrl(key)
        if char is None:
            if key.key in MOTION_KEYS:
                return self._move(Motion(MOTION_KEYS[key.key]))
            return ignored()
        return self._handle_char(char)

    def _handle_char(self, char: str) -> ModeResult:
        state = self.state
        selection = self.context.selection
        if char in _VARIANT_KEYS:
            return self._switch_variant(_VARIANT_KEYS[char])
        if char == "o":
            return visual_actions.swap_anchor(self.context)
        if char == " ":
            return visual_actions.toggle_item(self.context)
        if char == "g" or char in FIND_LEADERS:
            state.pending_leader = char
            return pending()
        if char in (";", ",") and state.last_find is not None:
            return self._move(state.last_find.reversed() if char == "," else state.last_find)
        if char in MOTION_KEYS:
            return self._move(Motion(MOTION_KEYS[char]))
        if char in ("h", "l"):
            panel = self.session.active_panel
            self.session.focus(panel.left() if char == "h" else panel.right())
            return self._exit()
        if char in OPERATOR_KEYS or char == "x":
            kind = OperatorKind.DELETE if char == "x" else OPERATOR_KEYS[char]
            return self.pipeline.execute(Operator(kind), selection.selected(), "visual")
        if char == ":":
            self.context.extras["command_prefill"] = CommandPrefill(
                text="", targets=tuple(selection.selected())
            )
            return ModeResult(consumed=True, switch_to=EditorMode.COMMAND, status="command_start")
        return ignored()

    def _handle_ctrl(self, key: KeyInput) -> ModeResult:
        letter = key.key.lower()
        if letter == "v":
            return self._switch_variant(EditorMode.VISUAL_BLOCK)
        if letter == "a":
            return visual_actions.select_all(self.context)
        if letter == "d":
            return self._move(Motion(MotionKind.HALF_PAGE_DOWN))
        if letter == "u":
            return self._move(Motion(MotionKind.HALF_PAGE_UP))
        return ignored()

    def _finish_leader(self, leader: str, key: KeyInput) -> ModeResult:
        char = key.char
        if char is None:
            return ModeResult(consumed=True, status="cancel")
        if leader == "g":
            if char == "g":
                return self._move(Motion(MotionKind.TOP))
            return ignored()
        motion = Motion.find(leader, char)
        self.state.last_find = motion
        return self._move(motion)

    def _move(self, motion: Motion) -> ModeResult:
        session = self.session
        target = resolve(
            session.cursor,
            motion,
            self.state.count_or_one(),
            Panel.LIST,
            session.view(Panel.LIST),
            explicit=self.state.explicit_count,
        )
        if target is None:
            return ModeResult(consumed=True, status="motion")
        return visual_actions.extend_to(self.context, target)

    def _switch_variant(self, variant: EditorMode) -> ModeResult:
        if variant == self.state.mode:
            return self._exit()
        return ModeResult(consumed=True, switch_to=variant, status="visual")

    def _exit(self) -> ModeResult:
        self.session.status_message = ""
        return ModeResult(consumed=True, switch_to=EditorMode.NORMAL, status="visual_exit")


__all__ = ["VisualMode"]
