"""Operator verbs shared by operator-pending and Visual mode."""

from __future__ import annotations

from typing import Sequence

from modal_library.modes.base_mode import ModeContext, ModeResult
from modal_library.modes.state import (
    CommandPrefill,
    EditorMode,
    InsertTarget,
    Operator,
    OperatorKind,
)


def _done(status: str, switch_to: EditorMode | None = EditorMode.NORMAL) -> ModeResult:
    return ModeResult(consumed=True, switch_to=switch_to, status=status)


def delete_items(context: ModeContext, indices: Sequence[int]) -> ModeResult:
    result = context.session.delete_indices(indices, context.state.register)
    if result is not None:
        context.bus.emit("items.changed", {"action": "delete", "count": result.applied})
        context.bus.emit("register.write", context.state.register or '"')
    return _done("operator_delete")


def yank_items(context: ModeContext, indices: Sequence[int]) -> ModeResult:
    if context.session.yank_indices(indices, context.state.register):
        context.bus.emit("register.write", context.state.register or '"')
    return _done("operator_yank")


def change_item(context: ModeContext, indices: Sequence[int]) -> ModeResult:
    item = context.session.item_at(min(indices))
    if item is None:
        return _done("operator_change")
    context.extras["insert_target"] = InsertTarget(item_id=item.id, text=item.title)
    return _done("operator_change", EditorMode.INSERT)


def tag_items(context: ModeContext, indices: Sequence[int], tag: str, *, add: bool) -> ModeResult:
    session = context.session
    result = session.add_tag(indices, tag) if add else session.remove_tag(indices, tag)
    if result is not None:
        context.bus.emit(
            "items.changed",
            {"action": "tag" if add else "untag", "tag": tag, "count": result.applied},
        )
    return _done("operator_tag" if add else "operator_untag")


def prompt_for_tag(context: ModeContext, indices: Sequence[int], *, add: bool) -> ModeResult:
    """Open the command line prefilled with ``tag ``/``untag `` for ``indices``."""

    text = "tag "
    if not add:
        tags = sorted({tag for item in context.session.items_at(indices) for tag in item.tags})
        if not tags:
            context.session.status_message = "No tags to remove"
            return _done("operator_untag")
        text = "untag " + (tags[0] if len(tags) == 1 else "")
    context.extras["command_prefill"] = CommandPrefill(text=text, targets=tuple(indices))
    return _done("operator_prompt", EditorMode.COMMAND)


def execute_operator(
    context: ModeContext, operator: Operator, indices: Sequence[int]
) -> ModeResult:
    """Apply ``operator`` to ``indices`` and leave the sequence."""

    if not indices or not context.session.items:
        context.session.status_message = "Nothing selected"
        return _done("operator_empty")
    kind = operator.kind
    if kind is OperatorKind.DELETE:
        return delete_items(context, indices)
    if kind is OperatorKind.YANK:
        return yank_items(context, indices)
    if kind is OperatorKind.CHANGE:
        return change_item(context, indices)
    add = kind is OperatorKind.ADD_TAG
    if operator.tag:
        return tag_items(context, indices, operator.tag, add=add)
    return prompt_for_tag(context, indices, add=add)


def paste_register(context: ModeContext) -> ModeResult:
    result = context.session.paste(context.state.register)
    if result is not None:
        context.bus.emit("items.changed", {"action": "paste", "count": result.applied})
    return ModeResult(consumed=True, status="paste")


__all__ = [
    "change_item",
    "delete_items",
    "execute_operator",
    "paste_register",
    "prompt_for_tag",
    "tag_items",
    "yank_items",
]
