"""Executable Textual app that hosts the library engine."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use modal_library.adapters.textual.app"
    ) from exc

from modal_library.library import LibraryItem, ReadStatus, SessionMirror, SortKey
from modal_library.modes import create_manager
from modal_library.modes.mode_manager import ModeManager
from modal_library.runtime import EngineConfig, telemetry

from .controller import TextualLibraryAdapter, TextualUIHooks


def demo_items() -> List[LibraryItem]:
    """A small catalogue so the demo has something to move through."""

    rows = [
        ("Rust in Action", ("Tim McNamara",), 2021, ("rust", "systems"), "Programming"),
        ("Rust for Rustaceans", ("Jon Gjengset",), 2021, ("rust",), "Programming"),
        ("Fluent Python", ("Luciano Ramalho",), 2022, ("python",), "Programming"),
        ("Structure and Interpretation of Computer Programs", ("Harold Abelson", "Gerald Sussman"), 1996, ("lisp", "classic"), "Programming"),
        ("The Pragmatic Programmer", ("David Thomas", "Andrew Hunt"), 2019, ("craft",), "Programming"),
        ("Designing Data-Intensive Applications", ("Martin Kleppmann",), 2017, ("systems", "databases"), "Programming"),
        ("Dune", ("Frank Herbert",), 1965, ("scifi",), "Fiction"),
        ("Children of Dune", ("Frank Herbert",), 1976, ("scifi",), "Fiction"),
        ("The Left Hand of Darkness", ("Ursula K. Le Guin",), 1969, ("scifi", "classic"), "Fiction"),
        ("A Wizard of Earthsea", ("Ursula K. Le Guin",), 1968, ("fantasy",), "Fiction"),
        ("Gödel, Escher, Bach", ("Douglas Hofstadter",), 1979, ("math", "classic"), "Nonfiction"),
        ("The Art of Computer Programming", ("Donald Knuth",), 1968, ("math", "classic"), "Programming"),
    ]
    return [
        LibraryItem.new(
            title,
            authors=authors,
            tags=tags,
            libraries=(library,),
            year=year,
            read_status=ReadStatus.READ if index % 3 == 0 else ReadStatus.UNREAD,
        )
        for index, (title, authors, year, tags, library) in enumerate(rows)
    ]


def create_demo_manager(config: Optional[EngineConfig] = None) -> ModeManager:
    return create_manager(items=demo_items(), config=config, sort_key=SortKey.ADDED)


@dataclass
class UIState:
    list_text: str = ""
    status_text: str = ""
    command_text: str = ""


def render_rows(mirror: SessionMirror, height: int) -> str:
    """Render the visible window of the list with cursor and selection marks."""

    selected = set(mirror.selection)
    start = mirror.viewport_offset
    lines = []
    for index in range(start, min(start + height, len(mirror.rows))):
        cursor = ">" if index == mirror.cursor and mirror.panel == "list" else " "
        mark = "*" if index in selected else " "
        lines.append(f"{cursor}{mark}{index + 1:>4}  {mirror.rows[index]}")
    return "\n".join(lines)


def render_sidebar(mirror: SessionMirror) -> str:
    lines = []
    for index, label in enumerate(mirror.sidebar):
        cursor = ">" if index == mirror.sidebar_index and mirror.panel == "sidebar" else " "
        lines.append(f"{cursor} {label}")
    return "\n".join(lines)


class LibraryEngineApp(App[None]):
    """Three-panel Textual UI embedding the library engine."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#panels {
		height: 1fr;
	}

	#sidebar-view {
		width: 24;
		border: round $secondary;
		padding: 0 1;
	}

	#list-view {
		width: 1fr;
		border: round $accent;
		padding: 0 1;
	}

	#preview-view {
		width: 40;
		border: round $secondary;
		padding: 0 1;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#command-line {
		height: 1;
		background: $surface-darken-2;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, *, config: Optional[EngineConfig] = None) -> None:
        super().__init__()
        self._config = config or EngineConfig.from_env()
        self._state = UIState()
        self.manager: ModeManager | None = None
        self.adapter: TextualLibraryAdapter | None = None
        self._sidebar_widget: Static | None = None
        self._list_widget: Static | None = None
        self._preview_widget: Static | None = None
        self._status_widget: Static | None = None
        self._command_widget: Static | None = None
        self.logger = telemetry.get_logger("modal_library.adapters.textual")

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="panels"):
            self._sidebar_widget = Static("", id="sidebar-view")
            self._list_widget = Static("", id="list-view")
            self._preview_widget = Static("", id="preview-view")
            yield self._sidebar_widget
            yield self._list_widget
            yield self._preview_widget
        self._status_widget = Static("", id="status-line")
        self._command_widget = Static("", id="command-line")
        yield self._status_widget
        yield self._command_widget
        yield Footer()

    async def on_mount(self) -> None:
        self.manager = create_demo_manager(self._config)
        hooks = TextualUIHooks(
            update_view=self._update_view,
            update_status=self._update_status,
            show_command=self._show_command,
            handle_event=self._handle_event,
            log=self._log_line,
        )
        self.adapter = TextualLibraryAdapter(self.manager, hooks)

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter:
            return
        if event.key == "ctrl+q":
            return
        character = event.character if event.is_printable else None
        if self.adapter.handle_textual_event(event.key, character) is None:
            return
        event.stop()
        if self.adapter.should_quit:
            self.exit()

    def _update_view(self, mirror: SessionMirror) -> None:
        self._state.list_text = render_rows(mirror, self._config.visible_height)
        if self._list_widget:
            self._list_widget.update(self._state.list_text)
        if self._sidebar_widget:
            self._sidebar_widget.update(render_sidebar(mirror))
        if self._preview_widget:
            self._preview_widget.update("\n".join(mirror.preview))
        if self._status_widget and not self._state.status_text:
            self._status_widget.update(mirror.mode_label)

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            mode = self.manager.mirror().mode_label if self.manager else ""
            self._status_widget.update(f"{mode}  {status}".rstrip())

    def _show_command(self, command: str) -> None:
        self._state.command_text = command
        if self._command_widget:
            self._command_widget.update(command)

    def _handle_event(self, name: str, payload: Any | None) -> None:
        if name == "popup.open" and isinstance(payload, dict):
            lines = payload.get("lines")
            if lines:
                self.notify("\n".join(str(line) for line in lines), title=str(payload.get("popup")))
        elif name == "export.request" and isinstance(payload, dict):
            self.notify(f"export {payload.get('format')}: {len(payload.get('items', []))} items")
        elif name == "item.open" and isinstance(payload, LibraryItem):
            self.notify(payload.path or "no file attached", title=payload.title)

    def _log_line(self, line: str) -> None:
        self.logger.debug(line)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the modal library Textual demo.")
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Visible list rows used for paging and H/M/L (default: MODAL_LIBRARY_VISIBLE_HEIGHT or 20)",
    )
    parser.add_argument(
        "--no-clipboard",
        action="store_true",
        help="Keep + and * registers in memory instead of the system clipboard",
    )
    parser.add_argument(
        "--log-preset",
        choices=("development", "production", "quiet"),
        default=None,
        help="telelog preset for engine logs",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.log_preset:
        telemetry.configure(preset=args.log_preset)
    config = EngineConfig.from_env()
    overrides: dict[str, Any] = {}
    if args.height:
        overrides["visible_height"] = args.height
    if args.no_clipboard:
        overrides["clipboard"] = False
    if overrides:
        config = replace(config, **overrides)
    app = LibraryEngineApp(config=config)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
