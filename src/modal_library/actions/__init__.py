"""High-level verbs reused across modes."""

from .core import (
    change_item,
    delete_items,
    execute_operator,
    paste_register,
    prompt_for_tag,
    tag_items,
    yank_items,
)
from .visual import extend_to, refresh_selection, select_all, swap_anchor, toggle_item
from .command import CommandError, command_names, execute_command, parse_duration

__all__ = [
    "CommandError",
    "change_item",
    "command_names",
    "delete_items",
    "execute_command",
    "execute_operator",
    "extend_to",
    "parse_duration",
    "paste_register",
    "prompt_for_tag",
    "refresh_selection",
    "select_all",
    "swap_anchor",
    "tag_items",
    "toggle_item",
    "yank_items",
]
