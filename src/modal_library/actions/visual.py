"""Actions dedicated to Visual mode selection management."""

from __future__ import annotations

from modal_library.modes.base_mode import ModeContext, ModeResult


def _emit_selection(context: ModeContext) -> None:
    selection = context.selection
    context.bus.emit(
        "visual.selection",
        {
            "anchor": selection.anchor,
            "cursor": selection.cursor,
            "selected": selection.selected(),
        },
    )


def _describe(context: ModeContext) -> None:
    selection = context.selection
    count = len(selection.selected())
    label = (selection.variant.value if selection.variant else "visual").replace("_", " ")
    context.session.status_message = f"-- {label.upper()} -- {count} selected"


def extend_to(context: ModeContext, target: int) -> ModeResult:
    """Move the cursor end of the selection; the range is recomputed."""

    context.selection.move_to(target)
    context.session.set_cursor(target)
    _describe(context)
    _emit_selection(context)
    return ModeResult(consumed=True, status="visual_select")


def swap_anchor(context: ModeContext) -> ModeResult:
    selection = context.selection
    selection.swap()
    context.session.set_cursor(selection.cursor)
    _emit_selection(context)
    return ModeResult(consumed=True, status="visual_swap")


def toggle_item(context: ModeContext) -> ModeResult:
    selection = context.selection
    selection.toggle(len(context.session.items))
    context.session.set_cursor(selection.cursor)
    _describe(context)
    _emit_selection(context)
    return ModeResult(consumed=True, status="visual_toggle")


def select_all(context: ModeContext) -> ModeResult:
    selection = context.selection
    selection.select_all(len(context.session.items))
    context.session.set_cursor(selection.cursor)
    _describe(context)
    _emit_selection(context)
    return ModeResult(consumed=True, status="visual_select")


def refresh_selection(context: ModeContext) -> None:
    _describe(context)
    _emit_selection(context)


__all__ = [
    "extend_to",
    "refresh_selection",
    "select_all",
    "swap_anchor",
    "toggle_item",
]
