"""Item text objects for operator-pending mode (``dia``, ``yat``, ...).

``i`` keeps the contiguous run of matching items around the cursor, ``a``
takes every matching item in the visible list.
"""

from __future__ import annotations

from typing import Callable, Dict, Hashable, List, Optional, Sequence

from modal_library.library.item import LibraryItem

Predicate = Callable[[LibraryItem], bool]


def _same_author(anchor: LibraryItem) -> Optional[Predicate]:
    author = anchor.first_author
    if author is None:
        return None
    return lambda item: author in item.authors


def _same_tag(anchor: LibraryItem) -> Optional[Predicate]:
    if not anchor.tags:
        return None
    tags = set(anchor.tags)
    return lambda item: bool(tags.intersection(item.tags))


def _same_year(anchor: LibraryItem) -> Optional[Predicate]:
    if anchor.year is None:
        return None
    return lambda item: item.year == anchor.year


def _same_library(anchor: LibraryItem) -> Optional[Predicate]:
    if not anchor.libraries:
        return None
    libraries = set(anchor.libraries)
    return lambda item: bool(libraries.intersection(item.libraries))


_OBJECTS: Dict[str, Callable[[LibraryItem], Optional[Predicate]]] = {
    "a": _same_author,
    "t": _same_tag,
    "y": _same_year,
    "l": _same_library,
}

OBJECT_KEYS = frozenset(set(_OBJECTS) | {"b", "g", "f"})


def select_text_object(
    inner: bool,
    key: str,
    position: int,
    items: Sequence[LibraryItem],
    group_keys: Sequence[Hashable] = (),
) -> Optional[List[int]]:
    if not items or not 0 <= position < len(items):
        return None
    if key == "b":
        return [position]
    if key == "f":
        return list(range(len(items)))

    if key == "g":
        if len(group_keys) != len(items):
            return None
        wanted = group_keys[position]
        matches = [group == wanted for group in group_keys]
    else:
        factory = _OBJECTS.get(key)
        predicate = factory(items[position]) if factory else None
        if predicate is None:
            return None
        matches = [predicate(item) for item in items]

    if not inner:
        return [index for index, hit in enumerate(matches) if hit]

    start = position
    while start > 0 and matches[start - 1]:
        start -= 1
    end = position
    while end < len(items) - 1 and matches[end + 1]:
        end += 1
    return list(range(start, end + 1))


__all__ = ["OBJECT_KEYS", "select_text_object"]
