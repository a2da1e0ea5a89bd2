"""Actions that evaluate `:` command lines."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from modal_library.library.session import ALL_ITEMS, SidebarEntry, SortKey
from modal_library.modes.base_mode import ModeContext, ModeResult
from modal_library.modes.state import EditorMode
from modal_library.runtime import telemetry

from . import core as core_actions

CommandHandler = Callable[[ModeContext, List[str], Tuple[int, ...]], ModeResult]

_DURATION = re.compile(r"^(\d+)([a-zA-Z]*)$")
_DURATION_UNITS = {"s": 1, "m": 60, "h": 3600}

_SORT_FIELDS = {
    "title": SortKey.TITLE,
    "year": SortKey.YEAR,
    "year_asc": SortKey.YEAR_ASC,
    "rating": SortKey.RATING,
    "frecency": SortKey.FRECENCY,
    "updated": SortKey.UPDATED,
    "added": SortKey.ADDED,
}


class CommandError(ValueError):
    """A command line that parsed but cannot run; shown as a status message."""


@dataclass(frozen=True, slots=True)
class GlobalCommand:
    pattern: str
    command: str
    invert: bool = False


def parse_duration(text: str) -> timedelta:
    """``30s``/``5m``/``2h``; anything else is a zero duration."""

    match = _DURATION.match(text.strip())
    if match is None:
        return timedelta(0)
    value, unit = match.groups()
    return timedelta(seconds=int(value) * _DURATION_UNITS.get(unit.lower(), 0))


def parse_global(text: str) -> Optional[GlobalCommand]:
    """Parse ``g/pattern/cmd``, ``g!/pattern/cmd`` or ``v/pattern/cmd``."""

    for prefix, invert in (("g/", False), ("g!/", True), ("v/", True)):
        if text.startswith(prefix):
            parts = text[len(prefix):].split("/", 1)
            if len(parts) != 2:
                raise CommandError(f"Usage: {prefix}pattern/command")
            pattern, command = parts
            return GlobalCommand(pattern=pattern, command=command.strip(), invert=invert)
    return None


def _done(context: ModeContext, message: Optional[str], status: str) -> ModeResult:
    if message is not None:
        context.session.status_message = message
    return ModeResult(
        consumed=True, switch_to=EditorMode.NORMAL, status=status, message=message
    )


def _targets(context: ModeContext, targets: Tuple[int, ...]) -> List[int]:
    if targets:
        return list(targets)
    session = context.session
    return [session.cursor] if session.items else []


def _show_listing(
    context: ModeContext, name: str, lines: List[str], summary: str
) -> ModeResult:
    context.bus.emit("popup.open", {"popup": name, "lines": lines})
    return _done(context, summary, f"command_{name}")


def execute_command(
    context: ModeContext, text: str, targets: Sequence[int] = ()
) -> ModeResult:
    """Run one command line; failures become status messages."""

    text = text.strip()
    if text.startswith(":"):
        text = text[1:].strip()
    context.bus.emit("command.submit", text)
    if not text:
        return _done(context, None, "command_empty")
    target_tuple = tuple(targets)
    word = text.split()[0]
    telemetry.record_event("command.execute", level="debug", data={"command": text})
    with telemetry.span(f"command::{word}", component="commands"):
        try:
            global_command = parse_global(text)
            if global_command is not None:
                return _run_global(context, global_command)
            handler = _COMMAND_HANDLERS.get(word)
            if handler is None:
                context.bus.emit("command.error", word)
                return _done(context, f"Unknown command: {word}", "command_error")
            return handler(context, text.split()[1:], target_tuple)
        except CommandError as exc:
            return _done(context, str(exc), "command_error")


def _run_global(context: ModeContext, command: GlobalCommand) -> ModeResult:
    session = context.session
    try:
        regex = re.compile(command.pattern)
    except re.error:
        return _done(context, f"Invalid regex pattern: {command.pattern}", "command_error")
    matches = [
        index
        for index, item in enumerate(session.items)
        if bool(regex.search(item.search_text())) != command.invert
    ]
    if not matches:
        return _done(context, f"No matches for pattern: {command.pattern}", "command_global")

    verb, _, argument = command.command.partition(" ")
    argument = argument.strip()
    if verb in ("d", "delete"):
        core_actions.delete_items(context, matches)
    elif verb in ("y", "yank"):
        core_actions.yank_items(context, matches)
    elif verb in ("tag", "untag") and argument:
        core_actions.tag_items(context, matches, argument, add=verb == "tag")
    else:
        raise CommandError(f"Unsupported global command: {command.command}")
    return _done(context, None, "command_global")


def _handle_quit(
    context: ModeContext, args: List[str], targets: Tuple[int, ...], *, force: bool = False
) -> ModeResult:
    del args, targets
    context.session.should_quit = True
    context.bus.emit("command.quit", {"force": force})
    return _done(context, "quit", "command_quit")


def _handle_write(
    context: ModeContext, args: List[str], targets: Tuple[int, ...], *, quit: bool = False
) -> ModeResult:
    del targets
    session = context.session
    context.bus.emit("command.write", {"args": list(args), "items": len(session.all_items)})
    if quit:
        return _handle_quit(context, [], ())
    return _done(context, f"Written {len(session.all_items)} items", "command_write")


def _handle_popup(
    context: ModeContext, args: List[str], targets: Tuple[int, ...], *, popup: str
) -> ModeResult:
    del targets
    if popup == "add" and args:
        context.session.create_item(" ".join(args))
        return _done(context, None, "command_add")
    context.bus.emit("popup.open", {"popup": popup, "args": list(args)})
    return _done(context, None, f"command_{popup}")


def _handle_search(
    context: ModeContext, args: List[str], targets: Tuple[int, ...]
) -> ModeResult:
    del targets
    session = context.session
    query = " ".join(args)
    results = session.search(query, session.items)
    context.bus.emit("search.overlay", {"query": query, "results": results})
    return _done(context, f"{len(results)} matches for '{query}'", "command_search")


def _handle_refresh(
    context: ModeContext, args: List[str], targets: Tuple[int, ...]
) -> ModeResult:
    del args, targets
    context.session.refresh()
    return _done(context, f"Refreshed {len(context.session.items)} items", "command_refresh")


def _handle_sort(
    context: ModeContext, args: List[str], targets: Tuple[int, ...]
) -> ModeResult:
    del targets
    if not args:
        raise CommandError("Usage: sort <" + "|".join(_SORT_FIELDS) + ">")
    key = _SORT_FIELDS.get(args[0].lower())
    if key is None:
        raise CommandError(f"Unknown sort field: {args[0]}")
    context.session.sort_by(key)
    return _done(context, None, "command_sort")


def _handle_filter(
    context: ModeContext, args: List[str], targets: Tuple[int, ...], *, kind: str
) -> ModeResult:
    del targets
    session = context.session
    if kind == "all" or (args and args[0] == "all"):
        session.filter_by(ALL_ITEMS)
        return _done(context, None, "command_filter")
    if not args:
        raise CommandError(f"Usage: {'library' if kind == 'library' else 'filter'} <name>")
    entry = SidebarEntry(kind, " ".join(args))
    if entry not in session.sidebar_entries:
        raise CommandError(f"Unknown {kind}: {entry.value}")
    session.filter_by(entry)
    return _done(context, None, "command_filter")


def _handle_tag(
    context: ModeContext, args: List[str], targets: Tuple[int, ...], *, add: bool
) -> ModeResult:
    if not args:
        raise CommandError("Usage: tag <name>" if add else "Usage: untag <name>")
    indices = _targets(context, targets)
    if not indices:
        raise CommandError("Nothing selected")
    core_actions.tag_items(context, indices, " ".join(args), add=add)
    return _done(context, None, "command_tag" if add else "command_untag")


def _handle_marks(
    context: ModeContext, args: List[str], targets: Tuple[int, ...]
) -> ModeResult:
    del args, targets
    session = context.session
    lines = []
    for letter, index in session.marks.items():
        item = session.item_at(index)
        lines.append(f"{letter}  {index + 1:>4}  {item.title if item else '(out of range)'}")
    summary = f"{len(lines)} marks" if lines else "No marks set"
    return _show_listing(context, "marks", lines, summary)


def _handle_delmarks(
    context: ModeContext, args: List[str], targets: Tuple[int, ...], *, everything: bool = False
) -> ModeResult:
    del targets
    marks = context.session.marks
    if everything:
        removed = len(marks)
        marks.clear()
    elif args:
        removed = marks.delete("".join(args))
    else:
        raise CommandError("Usage: delmarks <letters> or delmarks!")
    return _done(context, f"Deleted {removed} marks", "command_delmarks")


def _handle_registers(
    context: ModeContext, args: List[str], targets: Tuple[int, ...]
) -> ModeResult:
    del targets
    registers = context.registers
    names = [arg for name in args for arg in name] or registers.names()
    lines = []
    for name in names:
        register = registers.get(name)
        if register is not None:
            lines.append(f'"{name}  {register.content.summary()}')
    summary = f"{len(lines)} registers" if lines else "Registers are empty"
    return _show_listing(context, "registers", lines, summary)


def _handle_macros(
    context: ModeContext, args: List[str], targets: Tuple[int, ...]
) -> ModeResult:
    del args, targets
    macros = context.macros
    lines = [f"@{name}  {macros.describe(keys)}" for name, keys in macros.list_macros()]
    summary = f"{len(lines)} macros" if lines else "No macros recorded"
    return _show_listing(context, "macros", lines, summary)


def _handle_undolist(
    context: ModeContext, args: List[str], targets: Tuple[int, ...]
) -> ModeResult:
    del args, targets
    entries = context.session.history.entries
    lines = [
        f"{number:>3}  {entry.timestamp:%H:%M:%S}  {entry.description}"
        for number, entry in enumerate(reversed(entries), start=1)
    ]
    return _show_listing(context, "undolist", lines, f"{len(lines)} undo entries")


def _handle_time_travel(
    context: ModeContext, args: List[str], targets: Tuple[int, ...], *, backward: bool
) -> ModeResult:
    del targets
    if not args:
        raise CommandError("Usage: earlier <Ns|Nm|Nh>" if backward else "Usage: later <Ns|Nm|Nh>")
    session = context.session
    history = session.history
    cutoff = history.now() - parse_duration(args[0])
    steps = 0
    while True:
        entry = history.peek() if backward else history.peek_redo()
        if entry is None or entry.timestamp < cutoff:
            break
        walked = session.undo() if backward else session.redo()
        if not walked:
            break
        steps += walked
    if steps:
        context.bus.emit("items.changed", {"action": "undo" if backward else "redo"})
    verb = "Undid" if backward else "Redid"
    return _done(context, f"{verb} {steps} changes", "command_earlier" if backward else "command_later")


def _handle_doctor(
    context: ModeContext, args: List[str], targets: Tuple[int, ...]
) -> ModeResult:
    del args, targets
    return _done(context, context.session.doctor(), "command_doctor")


def _handle_export(
    context: ModeContext, args: List[str], targets: Tuple[int, ...], *, fmt: str
) -> ModeResult:
    session = context.session
    items = session.items_at(_targets(context, targets))
    if not items:
        raise CommandError("Nothing to export")
    style = args[0] if args else fmt
    context.bus.emit("export.request", {"format": style, "items": items})
    noun = "item" if len(items) == 1 else "items"
    return _done(context, f"Export {style}: {len(items)} {noun}", "command_export")


_COMMAND_HANDLERS: Dict[str, CommandHandler] = {
    "q": _handle_quit,
    "quit": _handle_quit,
    "q!": partial(_handle_quit, force=True),
    "quit!": partial(_handle_quit, force=True),
    "w": _handle_write,
    "write": _handle_write,
    "wq": partial(_handle_write, quit=True),
    "x": partial(_handle_write, quit=True),
    "add": partial(_handle_popup, popup="add"),
    "open": partial(_handle_popup, popup="open"),
    "tags": partial(_handle_popup, popup="tags"),
    "help": partial(_handle_popup, popup="help"),
    "h": partial(_handle_popup, popup="help"),
    "search": _handle_search,
    "find": _handle_search,
    "refresh": _handle_refresh,
    "sort": _handle_sort,
    "library": partial(_handle_filter, kind="library"),
    "lib": partial(_handle_filter, kind="library"),
    "filter": partial(_handle_filter, kind="tag"),
    "nofilter": partial(_handle_filter, kind="all"),
    "tag": partial(_handle_tag, add=True),
    "untag": partial(_handle_tag, add=False),
    "marks": _handle_marks,
    "delmarks": _handle_delmarks,
    "delmarks!": partial(_handle_delmarks, everything=True),
    "registers": _handle_registers,
    "reg": _handle_registers,
    "macros": _handle_macros,
    "undolist": _handle_undolist,
    "earlier": partial(_handle_time_travel, backward=True),
    "later": partial(_handle_time_travel, backward=False),
    "doctor": _handle_doctor,
    "cite": partial(_handle_export, fmt="apa"),
    "bibtex": partial(_handle_export, fmt="bibtex"),
    "export": partial(_handle_export, fmt="json"),
}


def command_names() -> List[str]:
    return sorted(_COMMAND_HANDLERS)


__all__ = [
    "CommandError",
    "GlobalCommand",
    "command_names",
    "execute_command",
    "parse_duration",
    "parse_global",
]
