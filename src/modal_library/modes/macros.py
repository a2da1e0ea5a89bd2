"""Macro recording storage."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from modal_library.runtime import telemetry

from .base_mode import KeyInput


class MacroRecorder:
    """Raw key buffers by register letter.

    Replay is driven by ``ModeManager.replay_macro`` so recorded keys travel
    through the same dispatch path as live input.
    """

    def __init__(self) -> None:
        self.recording_register: Optional[str] = None
        self.buffer: List[KeyInput] = []
        self.macros: Dict[str, Tuple[KeyInput, ...]] = {}
        self.last_played: Optional[str] = None

    @property
    def is_recording(self) -> bool:
        return self.recording_register is not None

    def start(self, register: str) -> None:
        self.recording_register = register
        self.buffer = []
        telemetry.record_event("macro.record", data={"register": register})

    def record(self, key: KeyInput) -> None:
        if self.recording_register is not None:
            self.buffer.append(key)

    def stop(self) -> Optional[str]:
        register = self.recording_register
        if register is None:
            return None
        self.macros[register] = tuple(self.buffer)
        self.recording_register = None
        self.buffer = []
        telemetry.record_event(
            "macro.stop",
            data={"register": register, "keys": len(self.macros[register])},
        )
        return register

    def get(self, register: str) -> Tuple[KeyInput, ...]:
        return self.macros.get(register, ())

    def list_macros(self) -> List[Tuple[str, Tuple[KeyInput, ...]]]:
        return sorted(self.macros.items())

    @staticmethod
    def describe(keys: Tuple[KeyInput, ...]) -> str:
        parts = []
        for key in keys:
            if key.ctrl:
                parts.append(f"<C-{key.key.lower()}>")
            elif len(key.key) == 1:
                parts.append("<Space>" if key.key == " " else key.key)
            else:
                parts.append(f"<{key.key.capitalize()}>")
        return "".join(parts)


__all__ = ["MacroRecorder"]
