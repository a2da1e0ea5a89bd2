"""Normal mode: counts, leaders, motions, operators and one-key verbs."""

from __future__ import annotations

import string
from typing import Optional

from modal_library.actions import core as core_actions
from modal_library.keymaps.models import FIND_LEADERS, MOTION_KEYS, Motion, MotionKind, Panel
from modal_library.keymaps.resolver import resolve
from modal_library.library.session import ALL_ITEMS
from modal_library.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeContext, ModeResult, ignored, pending
from .state import (
    LITERAL_LEADERS,
    OPERATOR_KEYS,
    EditorMode,
    InsertTarget,
    Operator,
)

LEADER_KEYS = frozenset({"g", "z", "m", "'", "[", "]", " ", "@"}) | FIND_LEADERS

# Jumps that land far from the cursor and are worth a jump-list entry.
_JUMP_MOTIONS = frozenset({MotionKind.BOTTOM, MotionKind.TOP})

_HINT_LABELS = "asdfghjklqwertyuiopzxcvbnm"

_CTRL_MOTIONS = {
    "d": MotionKind.HALF_PAGE_DOWN,
    "u": MotionKind.HALF_PAGE_UP,
    "f": MotionKind.PAGE_DOWN,
    "b": MotionKind.PAGE_UP,
}


def move(
    context: ModeContext, motion: Motion, *, jump: bool = False
) -> Optional[int]:
    """Resolve ``motion`` for the active panel and move there."""

    session = context.session
    state = context.state
    target = resolve(
        session.position,
        motion,
        state.count_or_one(),
        session.active_panel,
        session.view(),
        explicit=state.explicit_count,
    )
    if target is None:
        if motion.kind.is_find and session.active_panel is Panel.LIST:
            session.status_message = f"No title starting with '{motion.target}'"
        return None
    if jump and session.active_panel is Panel.LIST:
        session.record_jump()
    session.move_to(target)
    return target


def search_author(context: ModeContext, *, forward: bool = True) -> ModeResult:
    session = context.session
    item = session.current_item
    if item is None or item.first_author is None:
        session.status_message = "No author under cursor"
        return ModeResult(consumed=True, status="search_miss")
    context.state.last_search = item.first_author
    context.state.search_forward = forward
    session.search_next(item.first_author, forward=forward, count=context.state.count_or_one())
    return ModeResult(consumed=True, status="search")


class NormalMode(Mode):
    names = (EditorMode.NORMAL,)

    def __init__(self, context: ModeContext) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger("modal_library.modes.normal")

    def on_enter(self, previous: Optional[EditorMode]) -> None:
        del previous
        self.context.selection.exit()

    def handle_key(self, key: KeyInput) -> ModeResult:
        state = self.state
        char = key.char
        literal = state.pending_leader in LITERAL_LEADERS
        if char and not literal and state.pending_leader != "hint" and state.push_digit(char):
            return pending()
        if state.pending_leader is not None:
            leader = state.pending_leader
            state.pending_leader = None
            return self._handle_leader(leader, key)
        if key.ctrl:
            return self._handle_ctrl(key)
        if char is None:
            return self._handle_named(key)
        return self._handle_char(char)

    # -- single keys -------------------------------------------------------

    def _handle_char(self, char: str) -> ModeResult:
        session = self.session
        state = self.state
        macros = self.context.macros

        if char == "q":
            if macros.is_recording:
                register = macros.stop()
                self.context.bus.emit("macro.stop", register)
                return self.status(f"Recorded @{register}", "macro_stop")
            state.pending_leader = "q"
            return pending()
        if char in LEADER_KEYS:
            state.pending_leader = char
            return pending()
        if char in MOTION_KEYS:
            kind = MOTION_KEYS[char]
            move(self.context, Motion(kind), jump=kind in _JUMP_MOTIONS)
            return ModeResult(consumed=True, status="motion")
        if char in OPERATOR_KEYS:
            if session.active_panel is not Panel.LIST:
                return ignored()
            state.begin_operator(Operator(OPERATOR_KEYS[char]))
            return ModeResult(consumed=True, switch_to=EditorMode.PENDING, status="pending")
        if char in ("h", "l"):
            panel = session.active_panel
            session.focus(panel.left() if char == "h" else panel.right())
            return ModeResult(consumed=True, status="focus")
        if char == "v":
            return self._enter_visual(EditorMode.VISUAL)
        if char == "V":
            return self._enter_visual(EditorMode.VISUAL_LINE)
        if char in ("/", "?"):
            state.search_forward = char == "/"
            return ModeResult(consumed=True, switch_to=EditorMode.SEARCH, status="search_start")
        if char in ("n", "N"):
            return self._repeat_search(reverse=char == "N")
        if char in ("*", "#"):
            return search_author(self.context, forward=char == "*")
        if char in (";", ","):
            return self._repeat_find(reverse=char == ",")
        if char in ("p", "P"):
            return core_actions.paste_register(self.context)
        if char == "Y":
            session.yank_path(session.cursor, state.register)
            return ModeResult(consumed=True, status="yank_path")
        if char == "u":
            session.undo(state.count_or_one())
            self.context.bus.emit("items.changed", {"action": "undo"})
            return ModeResult(consumed=True, status="undo")
        if char == "s":
            session.cycle_status(session.cursor)
            return ModeResult(consumed=True, status="cycle_status")
        if char in ("i", "a"):
            self.context.extras["insert_target"] = InsertTarget()
            return ModeResult(consumed=True, switch_to=EditorMode.INSERT, status="insert")
        if char == "o":
            return self._open()
        if char == ":":
            return ModeResult(consumed=True, switch_to=EditorMode.COMMAND, status="command_start")
        return ignored()

    def _handle_named(self, key: KeyInput) -> ModeResult:
        session = self.session
        if key.key in MOTION_KEYS:
            move(self.context, Motion(MOTION_KEYS[key.key]))
            return ModeResult(consumed=True, status="motion")
        if key.key in ("LEFT", "BACKTAB"):
            session.focus(session.active_panel.left())
            return ModeResult(consumed=True, status="focus")
        if key.key in ("RIGHT", "TAB"):
            session.focus(session.active_panel.right())
            return ModeResult(consumed=True, status="focus")
        if key.key == "ENTER":
            return self._open()
        if key.key == "ESC":
            return ModeResult(consumed=True, status="cancel")
        return ignored()

    def _handle_ctrl(self, key: KeyInput) -> ModeResult:
        session = self.session
        letter = key.key.lower()
        if letter in _CTRL_MOTIONS:
            move(self.context, Motion(_CTRL_MOTIONS[letter]))
            return ModeResult(consumed=True, status="scroll")
        if letter in ("e", "y"):
            lines = self.state.count_or_one()
            session.scroll_viewport(lines if letter == "e" else -lines)
            return ModeResult(consumed=True, status="scroll")
        if letter == "o":
            session.jump_back()
            return ModeResult(consumed=True, status="jump")
        if letter == "i":
            session.jump_forward()
            return ModeResult(consumed=True, status="jump")
        if letter == "r":
            session.redo(self.state.count_or_one())
            self.context.bus.emit("items.changed", {"action": "redo"})
            return ModeResult(consumed=True, status="redo")
        if letter == "v":
            return self._enter_visual(EditorMode.VISUAL_BLOCK)
        return ignored()

    # -- leaders -----------------------------------------------------------

    def _handle_leader(self, leader: str, key: KeyInput) -> ModeResult:
        char = key.char
        if key.key == "ESC" or char is None:
            return ModeResult(consumed=True, status="cancel")
        if leader in FIND_LEADERS:
            motion = Motion.find(leader, char)
            self.state.last_find = motion
            move(self.context, motion)
            return ModeResult(consumed=True, status="motion")
        if leader == "q":
            if char not in string.ascii_lowercase:
                return self.status("Macro register must be a-z", "macro_invalid")
            self.context.macros.start(char)
            self.context.bus.emit("macro.record", char)
            return self.status(f"recording @{char}", "macro_record")
        if leader == "@":
            if char != "@" and char not in string.ascii_lowercase:
                return self.status("Macro register must be a-z", "macro_invalid")
            manager = self.context.extras["mode_manager"]
            return manager.replay_macro(char, self.state.count_or_one())  # type: ignore[attr-defined]
        if leader == "m":
            if char not in string.ascii_letters:
                return ignored()
            self.session.set_mark(char)
            return ModeResult(consumed=True, status="mark_set")
        if leader == "'":
            return self._jump_mark(char)
        if leader == "g":
            return self._handle_g(char)
        if leader == "z":
            return self._handle_z(char)
        if leader in ("[", "]"):
            if char != leader:
                return ignored()
            kind = MotionKind.PREV_GROUP if leader == "[" else MotionKind.NEXT_GROUP
            move(self.context, Motion(kind))
            return ModeResult(consumed=True, status="motion")
        if leader == " ":
            return self._label_items(char)
        if leader == "hint":
            return self._jump_to_label(char)
        return ignored()

    def _handle_g(self, char: str) -> ModeResult:
        session = self.session
        if char == "g":
            move(self.context, Motion(MotionKind.TOP), jump=True)
            return ModeResult(consumed=True, status="motion")
        if char == "v":
            selection = self.context.selection
            cursor = selection.reselect(len(session.items))
            if cursor is None:
                return self.status("No previous visual selection", "reselect_miss")
            session.set_cursor(cursor)
            return ModeResult(consumed=True, switch_to=EditorMode.VISUAL, status="reselect")
        if char == "l":
            session.jump_back()
            return ModeResult(consumed=True, status="jump")
        if char == "z":
            session.align_viewport("center")
            return ModeResult(consumed=True, status="scroll")
        if char == "*":
            return search_author(self.context)
        if char == "y":
            session.yank_title(session.cursor, self.state.register)
            return ModeResult(consumed=True, status="yank_title")
        if char in ("r", "h"):
            session.filter_by(ALL_ITEMS)
            return ModeResult(consumed=True, status="filter")
        return ignored()

    def _handle_z(self, char: str) -> ModeResult:
        where = {"z": "center", "t": "top", "b": "bottom"}.get(char)
        if where is None:
            return ignored()
        self.session.align_viewport(where)
        return ModeResult(consumed=True, status="scroll")

    def _jump_mark(self, char: str) -> ModeResult:
        session = self.session
        if char == "'":
            session.jump_last()
            return ModeResult(consumed=True, status="jump")
        if char in ("<", ">"):
            last_range = self.context.selection.last_range
            if last_range is None:
                return self.status("No previous visual selection", "mark_miss")
            session.record_jump()
            session.set_cursor(last_range[0] if char == "<" else last_range[1])
            return ModeResult(consumed=True, status="jump")
        if char not in string.ascii_letters:
            return ignored()
        session.jump_to_mark(char)
        return ModeResult(consumed=True, status="jump")

    def _label_items(self, char: str) -> ModeResult:
        session = self.session
        view = session.view()
        top = session.viewport_offset
        bottom = min(view.length, top + view.visible_height)
        if char == "j":
            targets = range(session.cursor + 1, bottom)
        elif char == "k":
            targets = range(session.cursor - 1, top - 1, -1)
        elif char == " ":
            targets = range(top, bottom)
        else:
            return ignored()
        labels = dict(zip(_HINT_LABELS, targets))
        if not labels:
            return self.status("No targets", "hint_miss")
        self.state.hints.update(labels)
        self.state.pending_leader = "hint"
        return pending()

    def _jump_to_label(self, char: str) -> ModeResult:
        target = self.state.hints.get(char)
        if target is None:
            return ModeResult(consumed=True, status="cancel")
        self.session.record_jump()
        self.session.set_cursor(target)
        return ModeResult(consumed=True, status="jump")

    # -- helpers -----------------------------------------------------------

    def _enter_visual(self, variant: EditorMode) -> ModeResult:
        if not self.session.items or self.session.active_panel is not Panel.LIST:
            return ignored()
        return ModeResult(consumed=True, switch_to=variant, status="visual")

    def _repeat_search(self, *, reverse: bool) -> ModeResult:
        state = self.state
        if not state.last_search:
            return self.status("No previous search", "search_miss")
        forward = state.search_forward != reverse
        self.session.search_next(state.last_search, forward=forward, count=state.count_or_one())
        return ModeResult(consumed=True, status="search")

    def _repeat_find(self, *, reverse: bool) -> ModeResult:
        last = self.state.last_find
        if last is None:
            return ignored()
        move(self.context, last.reversed() if reverse else last)
        return ModeResult(consumed=True, status="motion")

    def _open(self) -> ModeResult:
        session = self.session
        if session.active_panel is Panel.SIDEBAR:
            entries = session.sidebar_entries
            session.filter_by(entries[session.sidebar_index])
            session.focus(Panel.LIST)
            return ModeResult(consumed=True, status="filter")
        item = session.current_item
        if item is None:
            return ignored()
        self.context.bus.emit("item.open", item)
        return self.status(f"Opening {item.title}", "open")


__all__ = ["NormalMode", "move", "search_author"]
