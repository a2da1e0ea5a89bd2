from __future__ import annotations

import pytest

from modal_library.keymaps import (
    ListView,
    Motion,
    MotionKind,
    Panel,
    motion_range,
    resolve,
    select_text_object,
)
from modal_library.library import LibraryItem


def make_view(length: int = 10, **kwargs: object) -> ListView:
    return ListView(length=length, **kwargs)  # type: ignore[arg-type]


def test_step_motions_multiply_by_count() -> None:
    view = make_view()

    assert resolve(0, Motion(MotionKind.DOWN), 5, Panel.LIST, view) == 5
    assert resolve(5, Motion(MotionKind.UP), 2, Panel.LIST, view) == 3
    assert resolve(8, Motion(MotionKind.DOWN), 50, Panel.LIST, view) == 9


def test_motion_at_bound_is_noop() -> None:
    view = make_view()

    assert resolve(9, Motion(MotionKind.DOWN), 1, Panel.LIST, view) is None
    assert resolve(0, Motion(MotionKind.UP), 1, Panel.LIST, view) is None
    assert resolve(0, Motion(MotionKind.DOWN), 1, Panel.LIST, make_view(0)) is None


def test_bottom_with_explicit_count_is_absolute() -> None:
    view = make_view()

    assert resolve(0, Motion(MotionKind.BOTTOM), 1, Panel.LIST, view) == 9
    assert resolve(0, Motion(MotionKind.BOTTOM), 4, Panel.LIST, view, explicit=True) == 3
    assert resolve(9, Motion(MotionKind.TOP), 1, Panel.LIST, view) == 0


def test_screen_relative_motions_follow_viewport() -> None:
    view = make_view(50, viewport_offset=10, visible_height=20)

    assert resolve(15, Motion(MotionKind.SCREEN_TOP), 1, Panel.LIST, view) == 10
    assert resolve(15, Motion(MotionKind.SCREEN_MIDDLE), 1, Panel.LIST, view) == 20
    assert resolve(15, Motion(MotionKind.SCREEN_BOTTOM), 1, Panel.LIST, view) == 29


def test_group_motions_jump_between_runs() -> None:
    view = make_view(5, group_keys=("a", "a", "b", "b", "c"))

    assert resolve(0, Motion(MotionKind.NEXT_GROUP), 1, Panel.LIST, view) == 2
    assert resolve(0, Motion(MotionKind.NEXT_GROUP), 2, Panel.LIST, view) == 4
    assert resolve(3, Motion(MotionKind.PREV_GROUP), 1, Panel.LIST, view) == 2
    assert resolve(2, Motion(MotionKind.PREV_GROUP), 1, Panel.LIST, view) == 0
    assert resolve(4, Motion(MotionKind.NEXT_GROUP), 1, Panel.LIST, view) is None


@pytest.mark.parametrize(
    ("leader", "char", "position", "count", "expected"),
    [
        ("f", "b", 0, 1, 1),
        ("f", "b", 0, 2, 2),
        ("t", "c", 0, 1, 2),
        ("F", "a", 3, 1, 0),
        ("T", "a", 3, 1, 1),
        ("f", "z", 0, 1, None),
    ],
)
def test_find_motions_match_title_prefix(
    leader: str, char: str, position: int, count: int, expected: int | None
) -> None:
    view = make_view(4, labels=("Alpha", "Beta", "bravo", "Charlie"))

    assert resolve(position, Motion.find(leader, char), count, Panel.LIST, view) == expected


def test_find_motions_are_list_only() -> None:
    view = make_view(4, labels=("Alpha", "Beta", "Bravo", "Charlie"))
    motion = Motion.find("f", "b")

    assert resolve(0, motion, 1, Panel.SIDEBAR, view) is None
    assert resolve(0, motion, 1, Panel.PREVIEW, view) is None
    assert resolve(0, Motion(MotionKind.DOWN), 1, Panel.PREVIEW, view) == 1


def test_reversed_find_flips_direction() -> None:
    assert Motion.find("t", "c").reversed() == Motion(MotionKind.TILL_BACKWARD, "c")
    assert Motion.find("F", "c").reversed() == Motion(MotionKind.FIND_FORWARD, "c")
    assert Motion(MotionKind.DOWN).reversed() == Motion(MotionKind.DOWN)


def test_motion_range_is_inclusive() -> None:
    view = make_view()

    assert motion_range(2, Motion(MotionKind.DOWN), 3, Panel.LIST, view) == [2, 3, 4, 5]
    assert motion_range(4, Motion(MotionKind.TOP), 1, Panel.LIST, view) == [0, 1, 2, 3, 4]
    assert motion_range(9, Motion(MotionKind.BOTTOM), 1, Panel.LIST, view) == [9]
    assert motion_range(0, Motion.find("f", "q"), 1, Panel.LIST, view) is None


def test_text_objects_select_by_author() -> None:
    items = [
        LibraryItem.new("A", authors=("Le Guin",)),
        LibraryItem.new("B", authors=("Le Guin",)),
        LibraryItem.new("C", authors=("Herbert",)),
        LibraryItem.new("D", authors=("Le Guin",)),
    ]

    assert select_text_object(True, "a", 0, items) == [0, 1]
    assert select_text_object(False, "a", 0, items) == [0, 1, 3]
    assert select_text_object(True, "b", 2, items) == [2]
    assert select_text_object(False, "f", 2, items) == [0, 1, 2, 3]


def test_text_object_without_anchor_value_is_none() -> None:
    items = [LibraryItem.new("A"), LibraryItem.new("B", tags=("x",))]

    assert select_text_object(True, "t", 0, items) is None
    assert select_text_object(True, "y", 0, items) is None
    assert select_text_object(False, "t", 1, items) == [1]
