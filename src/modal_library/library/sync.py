"""Adapter boundary types for handing session state to a renderer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(slots=True)
class SessionMirror:
    """Host-friendly snapshot of everything a frame needs to draw.

    The renderer makes no decisions; it only reads this value.
    """

    mode: str
    pending: str
    rows: Tuple[str, ...]
    cursor: int
    viewport_offset: int
    selection: Tuple[int, ...]
    panel: str
    status: str
    command: str = ""
    recording: Optional[str] = None
    sidebar: Tuple[str, ...] = ()
    sidebar_index: int = 0
    preview: Tuple[str, ...] = ()
    hints: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def mode_label(self) -> str:
        label = f"-- {self.mode.upper()} --"
        if self.recording:
            label += f" recording @{self.recording}"
        return label


__all__ = ["SessionMirror"]
