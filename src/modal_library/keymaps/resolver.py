"""Pure motion resolution: (position, motion, count, panel) -> new position."""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional

from .models import ListView, Motion, MotionKind, Panel

_STEP_AND_BOUNDS = frozenset(
    {
        MotionKind.DOWN,
        MotionKind.UP,
        MotionKind.TOP,
        MotionKind.BOTTOM,
        MotionKind.FIRST,
        MotionKind.LAST,
        MotionKind.HALF_PAGE_DOWN,
        MotionKind.HALF_PAGE_UP,
        MotionKind.PAGE_DOWN,
        MotionKind.PAGE_UP,
    }
)

_PANEL_MOTIONS: Dict[Panel, FrozenSet[MotionKind]] = {
    Panel.LIST: frozenset(MotionKind),
    Panel.SIDEBAR: frozenset(MotionKind) - frozenset(k for k in MotionKind if k.is_find),
    Panel.PREVIEW: _STEP_AND_BOUNDS,
}


def _find(view: ListView, position: int, motion: Motion, count: int) -> Optional[int]:
    if not motion.target or not view.labels:
        return None
    needle = motion.target.lower()
    forward = motion.kind in (MotionKind.FIND_FORWARD, MotionKind.TILL_FORWARD)
    indices = range(position + 1, view.length) if forward else range(position - 1, -1, -1)
    seen = 0
    for index in indices:
        if view.labels[index].lower().startswith(needle):
            seen += 1
            if seen == count:
                break
    else:
        return None
    if motion.kind is MotionKind.TILL_FORWARD:
        return max(index - 1, position)
    if motion.kind is MotionKind.TILL_BACKWARD:
        return min(index + 1, position)
    return index


def _group_step(view: ListView, position: int, forward: bool) -> int:
    keys = view.group_keys
    current = keys[position]
    if forward:
        for index in range(position + 1, view.length):
            if keys[index] != current:
                return index
        return position
    start = position
    while start > 0 and keys[start - 1] == current:
        start -= 1
    if start != position:
        return start
    if start == 0:
        return position
    previous = keys[start - 1]
    while start > 0 and keys[start - 1] == previous:
        start -= 1
    return start


def _target(
    position: int, motion: Motion, count: int, view: ListView, explicit: bool
) -> Optional[int]:
    kind = motion.kind
    half = max(1, view.visible_height // 2)
    if kind is MotionKind.DOWN:
        return view.clamp(position + count)
    if kind is MotionKind.UP:
        return view.clamp(position - count)
    if kind is MotionKind.HALF_PAGE_DOWN:
        return view.clamp(position + half * count)
    if kind is MotionKind.HALF_PAGE_UP:
        return view.clamp(position - half * count)
    if kind is MotionKind.PAGE_DOWN:
        return view.clamp(position + view.visible_height * count)
    if kind is MotionKind.PAGE_UP:
        return view.clamp(position - view.visible_height * count)
    if kind is MotionKind.TOP:
        return view.clamp(count - 1) if explicit else 0
    if kind is MotionKind.BOTTOM:
        return view.clamp(count - 1) if explicit else view.last
    if kind is MotionKind.FIRST:
        return 0
    if kind is MotionKind.LAST:
        return view.last
    if kind is MotionKind.SCREEN_TOP:
        return view.clamp(view.viewport_offset)
    if kind is MotionKind.SCREEN_MIDDLE:
        return view.clamp(view.viewport_offset + view.visible_height // 2)
    if kind is MotionKind.SCREEN_BOTTOM:
        return view.clamp(view.viewport_offset + view.visible_height - 1)
    if kind in (MotionKind.NEXT_GROUP, MotionKind.PREV_GROUP):
        if len(view.group_keys) != view.length:
            return None
        target = position
        for _ in range(count):
            target = _group_step(view, target, kind is MotionKind.NEXT_GROUP)
        return target
    return _find(view, position, motion, count)


def resolve(
    position: int,
    motion: Motion,
    count: int,
    panel: Panel,
    view: ListView,
    *,
    explicit: bool = False,
) -> Optional[int]:
    """Return the new index, or ``None`` for a no-op.

    No-op covers an empty list, a motion the panel does not support, a
    find/group motion without a target and a target equal to ``position``.
    ``explicit`` turns ``gg``/``G`` into absolute 1-based jumps.
    """

    if view.length == 0 or motion.kind not in _PANEL_MOTIONS[panel]:
        return None
    position = view.clamp(position)
    target = _target(position, motion, max(1, count), view, explicit)
    if target is None or target == position:
        return None
    return target


def motion_range(
    position: int,
    motion: Motion,
    count: int,
    panel: Panel,
    view: ListView,
    *,
    explicit: bool = False,
) -> Optional[List[int]]:
    """Inclusive index range an operator covers, ``None`` when unresolved.

    A bound motion from the bound itself (``dG`` on the last item) still
    covers the current item.
    """

    if view.length == 0 or motion.kind not in _PANEL_MOTIONS[panel]:
        return None
    position = view.clamp(position)
    target = _target(position, motion, max(1, count), view, explicit)
    if target is None:
        return None
    low, high = sorted((position, target))
    return list(range(low, high + 1))


__all__ = ["motion_range", "resolve"]
