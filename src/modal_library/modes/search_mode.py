"""Search mode: `/` and `?` narrow the list while the query is typed."""

from __future__ import annotations

from typing import List, Optional

from modal_library.runtime import telemetry

from .base_mode import KeyInput, Mode, ModeContext, ModeResult
from .state import EditorMode


class SearchMode(Mode):
    names = (EditorMode.SEARCH,)

    def __init__(self, context: ModeContext) -> None:
        super().__init__(context)
        self.logger = telemetry.get_logger("modal_library.modes.search")
        self._typed: List[str] = []
        self._previous_query: Optional[str] = None
        self._previous_cursor = 0

    @property
    def query(self) -> str:
        return "".join(self._typed)

    @property
    def prefix(self) -> str:
        return "/" if self.state.search_forward else "?"

    def on_enter(self, previous: Optional[EditorMode]) -> None:
        del previous
        self._typed = []
        self._previous_query = self.session.search_query
        self._previous_cursor = self.session.cursor
        self._sync()

    def on_exit(self, next_mode: Optional[EditorMode]) -> None:
        del next_mode
        self._typed.clear()
        self.context.extras.pop("command_state", None)

    def handle_key(self, key: KeyInput) -> ModeResult:
        session = self.session
        if key.key == "ESC" or key.is_ctrl("c"):
            session.set_search_query(self._previous_query)
            session.set_cursor(self._previous_cursor)
            session.status_message = ""
            return ModeResult(consumed=True, switch_to=EditorMode.NORMAL, status="search_cancel")
        if key.key == "ENTER":
            return self._accept()
        if key.key == "BACKSPACE":
            if not self._typed:
                session.set_search_query(self._previous_query)
                return ModeResult(
                    consumed=True, switch_to=EditorMode.NORMAL, status="search_cancel"
                )
            self._typed.pop()
            return self._live_filter()
        if key.is_ctrl("u"):
            self._typed.clear()
            return self._live_filter()
        text = key.text if key.text is not None else key.char
        if text and not key.ctrl:
            self._typed.append(text)
            return self._live_filter()
        return ModeResult(consumed=False, status="ignored")

    def _live_filter(self) -> ModeResult:
        self.session.set_search_query(self.query)
        self._sync()
        self.context.bus.emit("search.update", {"query": self.query, "count": len(self.session.items)})
        return ModeResult(consumed=True, status="editing")

    def _accept(self) -> ModeResult:
        session = self.session
        query = self.query.strip()
        if query:
            self.state.last_search = query
            session.set_search_query(query)
            session.status_message = f"{self.prefix}{query} ({len(session.items)} matches)"
        else:
            session.set_search_query(None)
            session.status_message = ""
        telemetry.record_event(
            "search.submit", level="debug", data={"query": query, "matches": len(session.items)}
        )
        self.context.bus.emit("search.submit", query)
        return ModeResult(consumed=True, switch_to=EditorMode.NORMAL, status="search_submit")

    def _sync(self) -> None:
        state = self.context.extras.setdefault("command_state", {})
        state["prefix"] = self.prefix
        state["text"] = self.query


__all__ = ["SearchMode"]
