"""Minimal Textual adapter that wires ModeManager events into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from modal_library.library import SessionMirror
from modal_library.modes import KeyInput, ModeResult
from modal_library.modes.mode_manager import ModeManager

_SUBSCRIBED_EVENTS = (
    "mode.switch",
    "visual.selection",
    "items.changed",
    "register.write",
    "command.start",
    "command.end",
    "command.submit",
    "command.write",
    "command.quit",
    "command.error",
    "popup.open",
    "search.overlay",
    "search.update",
    "search.submit",
    "export.request",
    "item.open",
    "macro.record",
    "macro.stop",
)


_NAMED_KEYS = {
    "escape": "ESC",
    "enter": "ENTER",
    "return": "ENTER",
    "backspace": "BACKSPACE",
    "tab": "TAB",
    "shift+tab": "BACKTAB",
    "up": "UP",
    "down": "DOWN",
    "left": "LEFT",
    "right": "RIGHT",
    "home": "HOME",
    "end": "END",
}


def translate_key(key: str, character: Optional[str] = None) -> Optional[KeyInput]:
    """Map a Textual key name (plus its printable character) onto a KeyInput.

    Returns ``None`` for keys the engine has no use for.
    """

    if key in _NAMED_KEYS:
        return KeyInput(key=_NAMED_KEYS[key])
    if key == "space":
        return KeyInput(key=" ", text=" ")
    if key.startswith("ctrl+"):
        letter = key.split("+", 1)[1]
        if len(letter) != 1:
            return None
        return KeyInput(key=letter, modifiers=("CTRL",))
    if character and len(character) == 1 and character.isprintable():
        return KeyInput(key=character, text=character)
    return None


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_view: Callable[[SessionMirror], None]
    update_status: Callable[[str], None] = _noop
    show_command: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


class TextualLibraryAdapter:
    """Bridges ModeManager + bus events to a Textual-friendly surface."""

    def __init__(self, manager: ModeManager, hooks: TextualUIHooks) -> None:
        self.manager = manager
        self.hooks = hooks
        self._subscribe_events()
        self._refresh_view()
        self._refresh_command_line()

    @property
    def should_quit(self) -> bool:
        return self.manager.context.session.should_quit

    def handle_textual_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
    ) -> ModeResult:
        """Translate a Textual key event into a KeyInput and dispatch it."""

        normalized_modifiers = tuple(str(mod).upper() for mod in modifiers)
        self._log_state("key ->", key=key, text=text, mods=normalized_modifiers)
        result = self.manager.handle_key(
            KeyInput(key=key, text=text, modifiers=normalized_modifiers)
        )
        self._after_mode_result(result)
        self._log_state(
            "result <-",
            consumed=result.consumed,
            status=result.status,
            switch_to=result.switch_to.value if result.switch_to else None,
        )
        return result

    def handle_textual_event(
        self, key: str, character: Optional[str] = None
    ) -> Optional[ModeResult]:
        """Dispatch a raw Textual key; untranslatable keys are dropped."""

        translated = translate_key(key, character)
        if translated is None:
            self._log_state("key -x", key=key)
            return None
        return self.handle_textual_key(
            translated.key, text=translated.text, modifiers=translated.modifiers
        )

    def _after_mode_result(self, result: ModeResult) -> None:
        del result
        self.hooks.update_status(self.manager.context.session.status_message)
        self._refresh_view()
        self._refresh_command_line()

    def _subscribe_events(self) -> None:
        bus = self.manager.context.bus
        for event in _SUBSCRIBED_EVENTS:
            bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name)
        self.hooks.handle_event(name, payload)
        if name.startswith("command") or name.startswith("search"):
            self._refresh_command_line()

    def _refresh_view(self) -> None:
        self.hooks.update_view(self.manager.mirror())

    def _refresh_command_line(self) -> None:
        state = self.manager.context.extras.get("command_state")
        if isinstance(state, dict):
            text = str(state.get("prefix", "")) + str(state.get("text", ""))
        else:
            text = ""
        self.hooks.show_command(text)

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        context = self.manager.context
        mode = self.manager.display_mode
        return {
            "mode": mode.value if mode else "?",
            "cursor": context.session.cursor,
            "selection": len(context.selection.selected()),
            "pending": context.state.echo(),
            "library": context.session.name,
        }


__all__ = ["TextualLibraryAdapter", "TextualUIHooks", "translate_key"]
