"""Operator-pending mode: waits for the motion or text object an operator covers."""

from __future__ import annotations

from typing import List, Optional

from modal_library.keymaps.models import FIND_LEADERS, MOTION_KEYS, Motion, MotionKind
from modal_library.keymaps.resolver import motion_range
from modal_library.keymaps.text_objects import OBJECT_KEYS, select_text_object
from modal_library.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeContext, ModeResult, pending
from .operator_pipeline import OperatorPipeline
from .state import EditorMode, Operator

_LEADERS = frozenset({"g", "i", "a"}) | FIND_LEADERS


class PendingMode(Mode):
    names = (EditorMode.PENDING,)

    def __init__(self, context: ModeContext) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger("modal_library.modes.pending")
        self.pipeline = OperatorPipeline(context)

    def handle_key(self, key: KeyInput) -> ModeResult:
        state = self.state
        operator = state.pending_operator
        if operator is None:
            return self._cancel()
        if key.key == "ESC" or key.ctrl:
            return self._cancel()

        char = key.char or key.key
        leader = state.pending_leader
        if leader is not None:
            state.pending_leader = None
            return self._finish_leader(operator, leader, char)
        if state.push_digit(char):
            return pending()
        if char == operator.key:
            return self._linewise(operator)
        if char in _LEADERS:
            state.pending_leader = char
            return pending()
        if char in (";", ",") and state.last_find is not None:
            motion = state.last_find.reversed() if char == "," else state.last_find
            return self._apply_motion(operator, motion)
        if char in MOTION_KEYS:
            return self._apply_motion(operator, Motion(MOTION_KEYS[char]))
        return self._cancel()

    def _finish_leader(self, operator: Operator, leader: str, char: str) -> ModeResult:
        if leader == "g":
            if char == "g":
                return self._apply_motion(operator, Motion(MotionKind.TOP))
            return self._cancel()
        if leader in FIND_LEADERS:
            if len(char) != 1:
                return self._cancel()
            motion = Motion.find(leader, char)
            self.state.last_find = motion
            return self._apply_motion(operator, motion)
        if char not in OBJECT_KEYS:
            return self._cancel()
        session = self.session
        view = session.view()
        indices = select_text_object(
            leader == "i", char, session.cursor, session.items, view.group_keys
        )
        return self._run(operator, indices, f"object:{leader}{char}")

    def _linewise(self, operator: Operator) -> ModeResult:
        session = self.session
        if not session.items:
            return self._cancel()
        count = self.state.effective_count()
        last = min(session.cursor + count - 1, len(session.items) - 1)
        return self._run(operator, list(range(session.cursor, last + 1)), "linewise")

    def _apply_motion(self, operator: Operator, motion: Motion) -> ModeResult:
        session = self.session
        state = self.state
        indices = motion_range(
            session.cursor,
            motion,
            state.effective_count(),
            session.active_panel,
            session.view(),
            explicit=state.has_explicit_count(),
        )
        return self._run(operator, indices, f"motion:{motion.kind.value}")

    def _run(
        self, operator: Operator, indices: Optional[List[int]], source: str
    ) -> ModeResult:
        if not indices:
            self.session.status_message = "No target for motion"
            return self._cancel()
        return self.pipeline.execute(operator, indices, source)

    def _cancel(self) -> ModeResult:
        return ModeResult(consumed=True, switch_to=EditorMode.NORMAL, status="cancel")


__all__ = ["PendingMode"]
